"""API tests: addresses, meters, readings, billing and occupancy."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentals.core.database import Base, get_db
from rentals.main import app
from rentals.models.meter import Meter

PERIOD = "2024-03"


# Test database setup
@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def building(client: TestClient) -> dict[str, int]:
    """An address with two apartments and one meter of each scope."""
    address_id = client.post("/api/addresses/", json={"display_name": "Vilniaus g. 1"}).json()["id"]

    ids = {"address": address_id}
    for number, area, persons in (("1", "50", 2), ("2", "70", 3)):
        resp = client.post(
            f"/api/addresses/{address_id}/apartments",
            json={"number": number, "area": area, "person_count": persons},
        )
        assert resp.status_code == 201
        ids[f"apt{number}"] = resp.json()["id"]

    meters = [
        (
            "water",
            {
                "name": "Cold water",
                "distribution_method": "per_consumption",
                "price_per_unit": "2.00",
                "collection_mode": "tenant_photo",
                "requires_photo": True,
            },
        ),
        ("elevator", {"name": "Elevator", "distribution_method": "per_apartment", "price_per_unit": "1.00"}),
        ("internet", {"name": "Internet", "distribution_method": "fixed_split", "fixed_price": "10.00"}),
    ]
    for key, body in meters:
        resp = client.post("/api/meters/", json={"address_id": address_id, **body})
        assert resp.status_code == 201, resp.text
        ids[key] = resp.json()["id"]
    return ids


def _submit(client: TestClient, meter_id: int, current: str, previous: str | None = None, **extra):
    body = {
        "meter_id": meter_id,
        "period": PERIOD,
        "reading_date": "2024-03-31",
        "current_value": current,
        "submitted_by": "landlord",
        **extra,
    }
    if previous is not None:
        body["previous_value"] = previous
    return client.post("/api/readings/", json=body)


def test_health_endpoint(client: TestClient) -> None:
    """Test the health endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestAddresses:
    """Tests for address and apartment endpoints."""

    def test_create_and_get_address(self, client: TestClient) -> None:
        """Addresses can be created and read back."""
        response = client.post("/api/addresses/", json={"display_name": "Home", "address": "Main 1"})
        assert response.status_code == 201
        address_id = response.json()["id"]

        response = client.get(f"/api/addresses/{address_id}")
        assert response.status_code == 200
        assert response.json()["address"] == "Main 1"

    def test_unknown_address(self, client: TestClient) -> None:
        """Unknown addresses are 404."""
        assert client.get("/api/addresses/999").status_code == 404

    def test_duplicate_apartment_number(self, client: TestClient, building: dict[str, int]) -> None:
        """Apartment numbers are unique per address."""
        response = client.post(
            f"/api/addresses/{building['address']}/apartments", json={"number": "1"}
        )
        assert response.status_code == 400


class TestMeters:
    """Tests for meter configuration and sync."""

    def test_inferred_shape(self, client: TestClient, building: dict[str, int]) -> None:
        """Scope and kind are inferred from the method and name."""
        water = client.get(f"/api/meters/{building['water']}").json()
        internet = client.get(f"/api/meters/{building['internet']}").json()
        assert (water["scope"], water["kind"]) == ("apartment", "water_cold")
        assert (internet["scope"], internet["kind"]) == ("none", "internet")

    def test_disallowed_method_rejected(self, client: TestClient, building: dict[str, int]) -> None:
        """Distribution methods outside a kind's policy are refused."""
        response = client.post(
            "/api/meters/",
            json={
                "address_id": building["address"],
                "name": "Internet 2",
                "kind": "internet",
                "scope": "building",
                "distribution_method": "per_consumption",
            },
        )
        assert response.status_code == 400

    def test_fixed_fee_must_be_fixed_split(self, client: TestClient, building: dict[str, int]) -> None:
        """A meter without physical scope cannot be split by consumption."""
        response = client.post(
            "/api/meters/",
            json={
                "address_id": building["address"],
                "name": "Fee",
                "scope": "none",
                "distribution_method": "per_area",
            },
        )
        assert response.status_code == 422

    def test_apartment_meters(self, client: TestClient, building: dict[str, int]) -> None:
        """Apartments see the address meters; tenants only the photo meters."""
        response = client.get(f"/api/apartments/{building['apt1']}/meters")
        assert response.status_code == 200
        data = response.json()
        assert [m["id"] for m in data["meters"]] == [
            building["water"],
            building["elevator"],
            building["internet"],
        ]
        assert data["tenant_visible_meter_ids"] == [building["water"]]

    def test_sync_is_idempotent(self, client: TestClient, test_db, building: dict[str, int]) -> None:
        """Re-running the sync leaves exactly one mirror per apartment and meter."""
        url = f"/api/addresses/{building['address']}/meters/sync"
        first = client.post(url).json()
        second = client.post(url).json()
        assert first["mirrors"] == second["mirrors"] == 6

        mirrors = (
            test_db.query(Meter)
            .filter(Meter.apartment_id.is_not(None), Meter.is_custom.is_(False))
            .all()
        )
        assert len(mirrors) == 6

    def test_update_propagates_to_mirrors(
        self, client: TestClient, test_db, building: dict[str, int]
    ) -> None:
        """Address meter edits reach every apartment."""
        response = client.patch(f"/api/meters/{building['elevator']}", json={"price_per_unit": "3.00"})
        assert response.status_code == 200

        test_db.expire_all()
        prices = {
            m.price_per_unit
            for m in test_db.query(Meter).filter(Meter.source_meter_id == building["elevator"])
        }
        assert prices == {Decimal("3.00")}

    def test_override_replaces_address_meter(self, client: TestClient, building: dict[str, int]) -> None:
        """A custom override wins for its apartment only."""
        response = client.post(
            f"/api/apartments/{building['apt1']}/meters",
            json={
                "name": "Cold water",
                "source_meter_id": building["water"],
                "distribution_method": "per_consumption",
                "price_per_unit": "2.50",
            },
        )
        assert response.status_code == 201
        override_id = response.json()["id"]

        apt1 = client.get(f"/api/apartments/{building['apt1']}/meters").json()
        apt2 = client.get(f"/api/apartments/{building['apt2']}/meters").json()
        assert apt1["meters"][0]["id"] == override_id
        assert apt2["meters"][0]["id"] == building["water"]

    def test_delete_removes_meter(self, client: TestClient, building: dict[str, int]) -> None:
        """Deactivated meters disappear from apartments."""
        assert client.delete(f"/api/meters/{building['elevator']}").status_code == 204
        data = client.get(f"/api/apartments/{building['apt1']}/meters").json()
        assert building["elevator"] not in [m["id"] for m in data["meters"]]


class TestReadings:
    """Tests for reading submission and review."""

    def test_landlord_reading_approved(self, client: TestClient, building: dict[str, int]) -> None:
        """Landlord readings are approved on entry."""
        response = _submit(client, building["elevator"], "300", "100")
        assert response.status_code == 201
        data = response.json()
        assert data["approval_status"] == "approved"
        assert Decimal(data["consumption"]) == Decimal("200")
        assert data["apartment_id"] is None

    def test_tenant_requires_photo(self, client: TestClient, building: dict[str, int]) -> None:
        """Tenant submissions without the required photo are refused."""
        response = _submit(
            client,
            building["water"],
            "15",
            apartment_id=building["apt1"],
            submitted_by="tenant",
        )
        assert response.status_code == 400

    def test_tenant_on_landlord_meter(self, client: TestClient, building: dict[str, int]) -> None:
        """Tenants cannot read landlord-only meters."""
        response = _submit(
            client, building["elevator"], "300", submitted_by="tenant", photo_url="https://img/1"
        )
        assert response.status_code == 400

    def test_fixed_fee_takes_no_reading(self, client: TestClient, building: dict[str, int]) -> None:
        """Fixed fees reject readings."""
        assert _submit(client, building["internet"], "1").status_code == 400

    def test_one_open_submission_per_period(self, client: TestClient, building: dict[str, int]) -> None:
        """An approved period cannot be resubmitted."""
        assert _submit(client, building["elevator"], "300", "100").status_code == 201
        assert _submit(client, building["elevator"], "310", "100").status_code == 409

    def test_review_flow(self, client: TestClient, building: dict[str, int]) -> None:
        """Pending submissions are reviewed once; rejection reopens the period."""
        tenant = {"apartment_id": building["apt1"], "submitted_by": "tenant", "photo_url": "https://img/1"}
        pending = _submit(client, building["water"], "15", **tenant)
        assert pending.status_code == 201
        assert pending.json()["approval_status"] == "pending_approval"
        reading_id = pending.json()["id"]

        rejected = client.post(f"/api/readings/{reading_id}/review", json={"approve": False, "note": "blurry"})
        assert rejected.status_code == 200
        assert rejected.json()["approval_status"] == "rejected"

        again = client.post(f"/api/readings/{reading_id}/review", json={"approve": True})
        assert again.status_code == 409

        assert _submit(client, building["water"], "15", **tenant).status_code == 201

    def test_previous_value_defaults_to_last_approved(
        self, client: TestClient, building: dict[str, int]
    ) -> None:
        """The last approved reading is the baseline of the next one."""
        _submit(client, building["elevator"], "300", "100")
        response = client.post(
            "/api/readings/",
            json={
                "meter_id": building["elevator"],
                "period": "2024-04",
                "reading_date": "2024-04-30",
                "current_value": "350",
                "submitted_by": "landlord",
            },
        )
        assert Decimal(response.json()["previous_value"]) == Decimal("300")

        history = client.get(f"/api/readings/meter/{building['elevator']}/history").json()
        assert history["total"] == 2

    def test_collection_status(self, client: TestClient, building: dict[str, int]) -> None:
        """Collection status lists what is still missing for a period."""
        _submit(client, building["elevator"], "300", "100")
        response = client.get(
            f"/api/readings/apartment/{building['apt1']}/status", params={"period": PERIOD}
        )
        assert response.status_code == 200
        progress = response.json()["progress"]
        assert progress["missing"] == ["Cold water"]
        assert progress["complete"] is False

    def test_invalid_period(self, client: TestClient, building: dict[str, int]) -> None:
        """Periods must be YYYY-MM."""
        body = {
            "meter_id": building["elevator"],
            "period": "2024-13",
            "reading_date": "2024-03-31",
            "current_value": "1",
            "submitted_by": "landlord",
        }
        assert client.post("/api/readings/", json=body).status_code == 422


class TestBilling:
    """Tests for the apartment bill endpoint."""

    def test_bill(self, client: TestClient, building: dict[str, int]) -> None:
        """Approved readings are allocated; pending ones are not billed yet."""
        _submit(client, building["elevator"], "300", "100")
        pending = _submit(
            client,
            building["water"],
            "15",
            "5",
            apartment_id=building["apt1"],
            submitted_by="tenant",
            photo_url="https://img/1",
        )

        url = f"/api/billing/apartments/{building['apt1']}"
        bill = client.get(url, params={"period": PERIOD}).json()
        assert Decimal(bill["total"]) == Decimal("110.00")
        assert bill["pending_meters"] == ["Cold water"]

        client.post(f"/api/readings/{pending.json()['id']}/review", json={"approve": True})
        bill = client.get(url, params={"period": PERIOD}).json()
        assert Decimal(bill["total"]) == Decimal("130.00")
        assert bill["pending_meters"] == []
        labels = {line["name"]: line["status_label"] for line in bill["lines"]}
        assert labels == {
            "Cold water": "20,00 €",
            "Elevator": "100,00 €",
            "Internet": "fixed fee",
        }

    def test_tenant_reading_is_per_apartment(self, client: TestClient, building: dict[str, int]) -> None:
        """One apartment's water reading does not bill the other."""
        _submit(client, building["water"], "15", "5", apartment_id=building["apt1"])
        bill = client.get(
            f"/api/billing/apartments/{building['apt2']}", params={"period": PERIOD}
        ).json()
        assert "Cold water" in bill["pending_meters"]

    def test_bill_requires_period(self, client: TestClient, building: dict[str, int]) -> None:
        """The period query parameter is mandatory."""
        assert client.get(f"/api/billing/apartments/{building['apt1']}").status_code == 422

    def _line(self, client: TestClient, apartment_id: int, name: str) -> dict:
        bill = client.get(f"/api/billing/apartments/{apartment_id}", params={"period": PERIOD})
        return next(line for line in bill.json()["lines"] if line["name"] == name)

    def test_apartment_meter_not_divided(self, client: TestClient, building: dict[str, int]) -> None:
        """An apartment meter split per apartment is still charged in full."""
        response = client.post(
            "/api/meters/",
            json={
                "address_id": building["address"],
                "name": "Gas",
                "scope": "apartment",
                "distribution_method": "per_apartment",
                "price_per_unit": "2.00",
            },
        )
        assert response.status_code == 201
        _submit(client, response.json()["id"], "110", "10", apartment_id=building["apt1"])

        line = self._line(client, building["apt1"], "Gas")
        assert Decimal(line["allocation"]["amount"]) == Decimal("200.00")
        assert line["allocation"]["basis"] == "consumption"

    def test_building_fixed_split(self, client: TestClient, building: dict[str, int]) -> None:
        """A shared fixed amount is divided among the apartments without a reading."""
        response = client.post(
            "/api/meters/",
            json={
                "address_id": building["address"],
                "name": "Cleaning",
                "scope": "building",
                "distribution_method": "fixed_split",
                "price_per_unit": "5.00",
                "fixed_price": "40.00",
            },
        )
        assert response.status_code == 201

        line = self._line(client, building["apt1"], "Cleaning")
        assert Decimal(line["allocation"]["amount"]) == Decimal("20.00")
        assert line["allocation"]["basis"] == "fixed"
        assert line["status_label"] == "20,00 €"

    def test_fixed_price_fraction_of_cent_rejected(
        self, client: TestClient, building: dict[str, int]
    ) -> None:
        """Fixed prices are whole cents."""
        response = client.post(
            "/api/meters/",
            json={
                "address_id": building["address"],
                "name": "Fee",
                "distribution_method": "fixed_split",
                "fixed_price": "12.345",
            },
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("via_mirror", [False, True])
    def test_reading_lands_on_override(
        self, client: TestClient, test_db, building: dict[str, int], via_mirror: bool
    ) -> None:
        """Readings for an overridden meter are filed on the apartment's override."""
        override = client.post(
            f"/api/apartments/{building['apt1']}/meters",
            json={
                "name": "Cold water",
                "source_meter_id": building["water"],
                "distribution_method": "per_consumption",
                "price_per_unit": "2.50",
            },
        ).json()

        meter_id = building["water"]
        if via_mirror:
            mirror = (
                test_db.query(Meter)
                .filter(
                    Meter.apartment_id == building["apt1"],
                    Meter.source_meter_id == building["water"],
                    Meter.is_custom.is_(False),
                )
                .one()
            )
            meter_id = mirror.id

        response = _submit(client, meter_id, "15", "5", apartment_id=building["apt1"])
        assert response.status_code == 201
        assert response.json()["meter_id"] == override["id"]

        line = self._line(client, building["apt1"], "Cold water")
        assert Decimal(line["allocation"]["amount"]) == Decimal("25.00")


class TestOccupancy:
    """Tests for tenancy and occupancy endpoints."""

    def _occupancy(self, client: TestClient, apartment_id: int, on: str) -> str:
        response = client.get(
            f"/api/apartments/{apartment_id}/occupancy", params={"reference_date": on}
        )
        assert response.status_code == 200
        return response.json()["state"]

    def test_no_tenancy_is_vacant(self, client: TestClient, building: dict[str, int]) -> None:
        """An apartment that was never let is vacant."""
        assert self._occupancy(client, building["apt1"], "2024-06-01") == "VACANT"

    def test_lifecycle(self, client: TestClient, building: dict[str, int]) -> None:
        """Occupancy follows the lease and the move-out."""
        apartment_id = building["apt1"]
        response = client.post(
            f"/api/apartments/{apartment_id}/tenancy",
            json={"tenant_name": "Ona", "lease_start": "2024-01-01", "lease_end": "2024-12-31"},
        )
        assert response.status_code == 201

        assert self._occupancy(client, apartment_id, "2023-12-01") == "RESERVED"
        assert self._occupancy(client, apartment_id, "2024-06-01") == "OCCUPIED"

        response = client.put(
            f"/api/apartments/{apartment_id}/move-out",
            json={"notice_date": "2024-06-01", "planned_date": "2024-07-01", "status": "scheduled"},
        )
        assert response.status_code == 200
        assert self._occupancy(client, apartment_id, "2024-06-15") == "NOTICE_GIVEN"
        assert self._occupancy(client, apartment_id, "2024-08-01") == "MOVED_OUT_PENDING"

        assert client.delete(f"/api/apartments/{apartment_id}/move-out").status_code == 204
        assert self._occupancy(client, apartment_id, "2024-08-01") == "OCCUPIED"

    def test_invalid_lease_order(self, client: TestClient, building: dict[str, int]) -> None:
        """A lease cannot end before it starts."""
        response = client.post(
            f"/api/apartments/{building['apt1']}/tenancy",
            json={"tenant_name": "Ona", "lease_start": "2024-05-01", "lease_end": "2024-01-01"},
        )
        assert response.status_code == 422
