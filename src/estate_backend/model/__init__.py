from .base import Base, metadata
from .auth import User
from .role import Role, Permission, RolePermission, UserRole
from .sidebar import SidebarPage, PagePermission, RolePagePermission, PAGE_PERMISSION_TYPES
from .property import (
    Building,
    Floor,
    Apartment,
    ApartmentAssigned,
    Villa,
    BuildingAssigned,
    VillaAssigned,
)
from .tenant import Tenant, FinancialTransaction

# Import all models to ensure relationships are properly set up
from . import auth, role, sidebar, property, tenant

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    # Role/Permission models
    'Role',
    'Permission',
    'RolePermission',
    'UserRole',
    # Page visibility
    'SidebarPage',
    'PagePermission',
    'RolePagePermission',
    'PAGE_PERMISSION_TYPES',
    # Ownership-bearing resources
    'Building',
    'Floor',
    'Apartment',
    'ApartmentAssigned',
    'Villa',
    'BuildingAssigned',
    'VillaAssigned',
    'Tenant',
    'FinancialTransaction',
]
