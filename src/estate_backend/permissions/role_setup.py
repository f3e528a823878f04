"""
Definitions of the seeded system roles.

Each role lists its resource permissions, its sidebar page grants (by page url)
and its level in the creation hierarchy. Used by ``seed_access_catalog``.
"""

from typing import Dict, List, NamedTuple, Tuple

ADMIN_LEVEL = 100
OWNER_LEVEL = 80
MANAGER_LEVEL = 60
STAFF_LEVEL = 40

_OWN = ("view_own", "create", "update_own", "delete_own")
_WRITE_PAGE = ("view", "create", "update", "delete")


class SystemRole(NamedTuple):
    name: str
    description: str
    level: int
    # System roles this role may hand out
    can_create: Tuple[str, ...]
    can_create_custom: bool
    permissions: Tuple[str, ...]
    pages: Dict[str, Tuple[str, ...]]


def _grants(resource: str, actions: Tuple[str, ...]) -> List[str]:
    return [f"{resource}.{action}" for action in actions]


def claims_owner() -> List[str]:
    permissions = ["dashboard.view", "reports.view", "reports.create"]
    for resource in ("buildings", "villas", "floors", "apartments", "tenants", "financial_transactions", "users"):
        permissions.extend(_grants(resource, _OWN))
    permissions.extend(_grants("roles", ("view", "create", "update", "delete")))
    permissions.append("permissions.view")
    return permissions


def claims_manager() -> List[str]:
    return [
        "dashboard.view",
        "tenants.view", "tenants.create", "tenants.update",
        "buildings.view", "buildings.update",
        "floors.view", "apartments.view",
        "financial_transactions.view", "financial_transactions.create",
        "users.view_own", "users.create",
    ]


def claims_staff() -> List[str]:
    return ["dashboard.view", "tenants.view", "buildings.view"]


def claims_maintenance() -> List[str]:
    return [
        "dashboard.view",
        "buildings.view", "buildings.update",
        "villas.view", "villas.update",
        "floors.view", "apartments.view",
    ]


def claims_security() -> List[str]:
    return ["dashboard.view", "tenants.view", "buildings.view"]


SYSTEM_ROLES: List[SystemRole] = [
    SystemRole(
        name="admin",
        description="Full access to every resource",
        level=ADMIN_LEVEL,
        can_create=("owner", "manager", "staff", "maintenance", "security"),
        can_create_custom=True,
        permissions=(),
        pages={},
    ),
    SystemRole(
        name="owner",
        description="Property owner, restricted to own buildings, villas and tenants",
        level=OWNER_LEVEL,
        can_create=("manager", "staff", "maintenance", "security"),
        can_create_custom=True,
        permissions=tuple(claims_owner()),
        pages={
            "/dashboard": ("view",),
            "/buildings": _WRITE_PAGE,
            "/villas": _WRITE_PAGE,
            "/tenants": _WRITE_PAGE,
            "/financial-transactions": _WRITE_PAGE,
            "/users": _WRITE_PAGE,
            "/roles": _WRITE_PAGE,
            "/reports": ("view", "create"),
        },
    ),
    SystemRole(
        name="manager",
        description="Manages tenants and buildings",
        level=MANAGER_LEVEL,
        can_create=("staff", "maintenance", "security"),
        can_create_custom=False,
        permissions=tuple(claims_manager()),
        pages={
            "/dashboard": ("view",),
            "/tenants": ("view", "create", "update"),
            "/buildings": ("view", "update"),
            "/financial-transactions": ("view", "create"),
            "/users": ("view", "create"),
        },
    ),
    SystemRole(
        name="staff",
        description="Read access to tenants and buildings",
        level=STAFF_LEVEL,
        can_create=(),
        can_create_custom=False,
        permissions=tuple(claims_staff()),
        pages={"/dashboard": ("view",), "/tenants": ("view",), "/buildings": ("view",)},
    ),
    SystemRole(
        name="maintenance",
        description="Views and updates buildings and villas",
        level=STAFF_LEVEL,
        can_create=(),
        can_create_custom=False,
        permissions=tuple(claims_maintenance()),
        pages={"/dashboard": ("view",), "/buildings": ("view", "update"), "/villas": ("view", "update")},
    ),
    SystemRole(
        name="security",
        description="Views tenants and buildings",
        level=STAFF_LEVEL,
        can_create=(),
        can_create_custom=False,
        permissions=tuple(claims_security()),
        pages={"/dashboard": ("view",), "/tenants": ("view",), "/buildings": ("view",)},
    ),
]

SYSTEM_ROLE_BY_NAME: Dict[str, SystemRole] = {role.name: role for role in SYSTEM_ROLES}
