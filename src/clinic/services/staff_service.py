"""Staff service."""
from ..core.rbac import STAFF_READ
from ..models.enums import Role
from ..repositories.personnel_repository import StaffRepository
from ..schemas.personnel import StaffResponse
from .personnel_service import PersonnelService


class StaffService(PersonnelService):
    label = "Staff"
    role = Role.STAFF
    read_roles = STAFF_READ
    repository_class = StaffRepository
    response_schema = StaffResponse
