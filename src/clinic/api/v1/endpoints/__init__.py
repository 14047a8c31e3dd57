"""API v1 endpoints package."""

from . import (
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

__all__ = [
	"auth",
	"billing",
	"doctors",
	"health",
	"inventory",
	"operations",
	"patients",
	"prescriptions",
	"staffs",
	"visits",
]
