"""Enum definitions for meters, readings and occupancy."""

from enum import Enum


class MeterScope(str, Enum):
    """Where a meter's cost lands."""

    NONE = "none"  # Fixed fee, no physical meter
    BUILDING = "building"  # Communal, shared across apartments
    APARTMENT = "apartment"  # Individual, billed to one unit


class MeterUnit(str, Enum):
    """Physical unit of measure."""

    M3 = "m3"
    KWH = "kWh"
    GJ = "GJ"
    OTHER = "other"  # Non-metered fees


class DistributionMethod(str, Enum):
    """Formula used to divide a meter's cost among apartments."""

    PER_APARTMENT = "per_apartment"
    PER_PERSON = "per_person"
    PER_AREA = "per_area"
    PER_CONSUMPTION = "per_consumption"
    FIXED_SPLIT = "fixed_split"


class CollectionMode(str, Enum):
    """Who supplies the reading for a meter."""

    LANDLORD_ONLY = "landlord_only"
    TENANT_PHOTO = "tenant_photo"


class SubmittedBy(str, Enum):
    """Author of a meter reading."""

    LANDLORD = "landlord"
    TENANT = "tenant"


class ApprovalStatus(str, Enum):
    """Lifecycle of a reading within one billing period."""

    NOT_SUBMITTED = "not_submitted"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class AllocationBasis(str, Enum):
    """How an allocated amount was arrived at."""

    FIXED = "fixed"
    CONSUMPTION = "consumption"
    EQUAL_SPLIT = "equal-split"
    PENDING = "pending"


class MeterKind(str, Enum):
    """Catalogue of meter kinds used for distribution policy."""

    WATER_COLD = "water_cold"
    WATER_HOT = "water_hot"
    ELECTRICITY_IND = "electricity_ind"
    GAS_IND = "gas_ind"
    HEATING = "heating"
    ELECTRICITY_SHARED = "electricity_shared"
    VENTILATION = "ventilation"
    ELEVATOR = "elevator"
    INTERNET = "internet"
    TRASH = "trash"
    CUSTOM = "custom"


class OccupancyState(str, Enum):
    """Derived lifecycle phase of an apartment's tenancy."""

    VACANT = "VACANT"
    RESERVED = "RESERVED"
    OCCUPIED = "OCCUPIED"
    NOTICE_GIVEN = "NOTICE_GIVEN"
    MOVED_OUT_PENDING = "MOVED_OUT_PENDING"
