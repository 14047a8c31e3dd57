"""API v1 - versioned router.

Router structure
----------------
PUBLIC (no auth):
  /health, /ready, /live  → health checks
  /auth/signup            → create admin user + clinic
  /auth/login             → email/password login, tenant selection

AUTHENTICATED (bearer token scoped to one clinic):
  /auth/me                → caller profile and memberships
  /patients/*             → registration and patient records
  /doctors/*, /staffs/*   → personnel (writes admin only)
  /visits/*               → visits and the fee waiver window
  /operations/*           → operations and their bills
  /prescriptions/*        → prescriptions per visit
  /billing/*              → list, read, settle bills
  /inventory/*            → stock items (admin only)

Every authenticated endpoint declares ``CurrentCaller``; role checks happen
in the services against the caller's membership in the token's clinic.
"""
from fastapi import APIRouter

from .endpoints import (
    auth,
    billing,
    doctors,
    health,
    inventory,
    operations,
    patients,
    prescriptions,
    staffs,
    visits,
)

router = APIRouter(prefix="/api/v1")

# =========================================================================
# PUBLIC ENDPOINTS
# =========================================================================

router.include_router(health.router, tags=["Health"])
router.include_router(auth.router)

# =========================================================================
# CLINIC ENDPOINTS
# =========================================================================

router.include_router(patients.router)
router.include_router(doctors.router)
router.include_router(staffs.router)
router.include_router(visits.router)
router.include_router(operations.router)
router.include_router(prescriptions.router)
router.include_router(billing.router)
router.include_router(inventory.router)
