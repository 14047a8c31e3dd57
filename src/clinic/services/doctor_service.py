"""Doctor service."""
from ..core.rbac import DOCTOR_READ
from ..models.enums import Role
from ..repositories.personnel_repository import DoctorRepository
from ..schemas.personnel import DoctorResponse
from .personnel_service import PersonnelService


class DoctorService(PersonnelService):
    label = "Doctor"
    role = Role.DOCTOR
    read_roles = DOCTOR_READ
    repository_class = DoctorRepository
    response_schema = DoctorResponse
    profile_fields = ("phone", "specialty")
