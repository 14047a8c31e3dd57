"""Repositories package - Data access layer."""
from .billing_repository import BillingRepository
from .inventory_repository import InventoryRepository
from .operation_repository import OperationRepository
from .patient_repository import PatientRepository
from .personnel_repository import DoctorRepository, StaffRepository
from .prescription_repository import PrescriptionRepository
from .tenant_repository import MembershipRepository, TenantRepository
from .user_repository import UserRepository
from .visit_repository import VisitRepository

__all__ = [
    "BillingRepository",
    "DoctorRepository",
    "InventoryRepository",
    "MembershipRepository",
    "OperationRepository",
    "PatientRepository",
    "PrescriptionRepository",
    "StaffRepository",
    "TenantRepository",
    "UserRepository",
    "VisitRepository",
]
