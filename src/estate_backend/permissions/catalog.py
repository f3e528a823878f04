"""
Permission catalog: the registry of ``<resource>.<action>`` permission strings,
the sidebar pages with their permission types, and the idempotent seeding of
both together with the system roles.
"""

import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from estate_backend.model.role import Permission, RolePermission
from estate_backend.model.sidebar import PAGE_PERMISSION_TYPES, PagePermission, SidebarPage
from estate_backend.permissions.errors import DuplicatePermission
from estate_backend.permissions.role_setup import ADMIN_LEVEL, SYSTEM_ROLES
from estate_backend.permissions import roles as role_store
from estate_backend.settings import settings

logger = logging.getLogger(__name__)

ACTIONS = ("view", "view_own", "create", "update", "update_own", "delete", "delete_own", "manage")

_FULL = ACTIONS

RESOURCE_ACTIONS: Dict[str, tuple] = {
    "buildings": _FULL,
    "villas": _FULL,
    "floors": _FULL,
    "apartments": _FULL,
    "tenants": _FULL,
    "financial_transactions": _FULL,
    "users": _FULL,
    "roles": ("view", "create", "update", "delete", "manage"),
    "permissions": ("view", "manage"),
    "dashboard": ("view",),
    "reports": ("view", "create"),
}

RESOURCES = tuple(RESOURCE_ACTIONS)

_ACTION_VERBS = {
    "view": "View all",
    "view_own": "View own",
    "create": "Create",
    "update": "Update all",
    "update_own": "Update own",
    "delete": "Delete all",
    "delete_own": "Delete own",
    "manage": "Manage",
}


class PageDefinition(NamedTuple):
    name: str
    url: str
    icon: str
    display_order: int
    description: Optional[str] = None


DEFAULT_PAGES: List[PageDefinition] = [
    PageDefinition("Dashboard", "/dashboard", "home", 1, "Overview"),
    PageDefinition("Buildings", "/buildings", "building", 2),
    PageDefinition("Villas", "/villas", "villa", 3),
    PageDefinition("Tenants", "/tenants", "users", 4),
    PageDefinition("Financial Transactions", "/financial-transactions", "wallet", 5),
    PageDefinition("Users", "/users", "user-cog", 6),
    PageDefinition("Roles", "/roles", "shield", 7),
    PageDefinition("Reports", "/reports", "chart", 8),
]


def permission_description(resource: str, action: str) -> str:
    return f"{_ACTION_VERBS.get(action, action.capitalize())} {resource.replace('_', ' ')}"


def register_permission(
    db: Session,
    name: str,
    resource: str,
    action: str,
    description: Optional[str] = None,
) -> Permission:
    """Idempotent upsert of a permission.

    Fails with ``DuplicatePermission`` only when ``name`` already exists with a
    different resource or action.
    """

    permission = db.scalar(select(Permission).where(Permission.name == name))

    if permission is not None:
        if permission.resource != resource or permission.action != action:
            raise DuplicatePermission(
                ids=[name],
                detail=f"Permission '{name}' exists as {permission.resource}/{permission.action}",
            )
        if description is not None and permission.description != description:
            permission.description = description
            db.flush()
        return permission

    permission = Permission(name=name, resource=resource, action=action, description=description)
    db.add(permission)
    db.flush()
    return permission


def register_page(db: Session, page: PageDefinition) -> SidebarPage:
    """Idempotent upsert of a sidebar page and its five permission types."""

    sidebar_page = db.scalar(select(SidebarPage).where(SidebarPage.url == page.url))

    if sidebar_page is None:
        sidebar_page = SidebarPage(
            name=page.name,
            url=page.url,
            icon=page.icon,
            display_order=page.display_order,
            description=page.description,
            is_active=True,
        )
        db.add(sidebar_page)
        db.flush()

    for permission_type in PAGE_PERMISSION_TYPES:
        if db.get(PagePermission, (sidebar_page.id, permission_type)) is None:
            db.add(PagePermission(
                page_id=sidebar_page.id,
                permission_type=permission_type,
                name=f"{page.name} {permission_type}",
            ))
    db.flush()

    return sidebar_page


def seed_access_catalog(db: Session) -> None:
    """Seed permissions, pages and system roles. Upserts only, safe to re-run."""

    for resource, actions in RESOURCE_ACTIONS.items():
        for action in actions:
            register_permission(db, f"{resource}.{action}", resource, action, permission_description(resource, action))

    page_ids = {page.url: register_page(db, page).id for page in DEFAULT_PAGES}

    for definition in SYSTEM_ROLES:
        name = settings.ADMIN_ROLE_NAME if definition.level == ADMIN_LEVEL else definition.name

        role = role_store.get_role_by_name(db, name)
        if role is None:
            role = role_store.create_role(db, name, definition.description, builtin=True)
            logger.info(f"Seeded system role '{name}'")

        for permission_name in definition.permissions:
            role_store.grant_permission(db, role.id, permission_name)

        for url, permission_types in definition.pages.items():
            for permission_type in permission_types:
                role_store.grant_page(db, role.id, page_ids[url], permission_type)

    db.commit()


def list_permissions(db: Session) -> List[Permission]:
    return list(db.scalars(select(Permission).order_by(Permission.resource, Permission.action)))


def permissions_grouped_by_resource(db: Session) -> Dict[str, List[Permission]]:
    grouped: Dict[str, List[Permission]] = defaultdict(list)
    for permission in list_permissions(db):
        grouped[permission.resource].append(permission)
    return dict(grouped)


def role_permission_names(db: Session, role_id: int) -> List[str]:
    """Explicit (not inherited) permission names of a role."""
    return list(
        db.scalars(
            select(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.name)
        )
    )


def list_pages(db: Session, active_only: bool = True) -> List[SidebarPage]:
    stmt = select(SidebarPage).order_by(SidebarPage.display_order, SidebarPage.id)
    if active_only:
        stmt = stmt.where(SidebarPage.is_active.is_(True))
    return list(db.scalars(stmt))


def get_page_by_url(db: Session, url: str) -> Optional[SidebarPage]:
    return db.scalar(select(SidebarPage).where(SidebarPage.url == url))
