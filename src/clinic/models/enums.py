"""Shared Enums for the application.

Values are stored as plain strings in the database and used as-is in
request/response schemas.
"""
from enum import Enum


class Role(str, Enum):
    """Role a user holds inside one tenant.

    Attributes:
        ADMIN: Manages personnel, inventory and deletions
        DOCTOR: Clinical work (visits, operations, prescriptions)
        STAFF: Front desk work (registration, visits, billing)
        NURSE: Read access plus visit recording
    """
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    STAFF = "STAFF"
    NURSE = "NURSE"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class PatientStatus(str, Enum):
    ACTIVE = "ACTIVE"
    REFERRED = "REFERRED"
    DISCHARGED = "DISCHARGED"


class BillingType(str, Enum):
    """What a billing row charges for."""
    REGISTRATION = "REGISTRATION"
    CONSULTATION = "CONSULTATION"
    OPERATION = "OPERATION"
    OTHER = "OTHER"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentMode(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    INSURANCE = "INSURANCE"
