"""Services package - Business logic layer."""
from .auth_service import AuthService, TenantCodeGenerator
from .billing_service import BillingCoordinator, BillingService
from .doctor_service import DoctorService
from .inventory_service import InventoryService
from .operation_service import OperationService
from .patient_service import PatientService
from .prescription_service import PrescriptionService
from .staff_service import StaffService
from .visit_service import VisitService

__all__ = [
    "AuthService",
    "BillingCoordinator",
    "BillingService",
    "DoctorService",
    "InventoryService",
    "OperationService",
    "PatientService",
    "PrescriptionService",
    "StaffService",
    "TenantCodeGenerator",
    "VisitService",
]
