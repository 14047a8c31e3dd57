"""Models package - SQLAlchemy ORM models."""
from .billing import Billing
from .doctor import Doctor
from .enums import (
    BillingType,
    Gender,
    PatientStatus,
    PaymentMode,
    PaymentStatus,
    Role,
)
from .inventory import InventoryItem
from .operation import Operation
from .patient import Patient
from .prescription import Prescription
from .staff import Staff
from .tenant import Tenant, UserTenant
from .user import User
from .visit import Visit

__all__ = [
    "Billing",
    "BillingType",
    "Doctor",
    "Gender",
    "InventoryItem",
    "Operation",
    "Patient",
    "PatientStatus",
    "PaymentMode",
    "PaymentStatus",
    "Prescription",
    "Role",
    "Staff",
    "Tenant",
    "User",
    "UserTenant",
    "Visit",
]
