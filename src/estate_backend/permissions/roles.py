"""
Role store: system and custom roles, their resource permissions and page grants.

Functions here only flush. Callers that chain several writes wrap them in
``estate_backend.database.transaction``.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from estate_backend.model.role import Permission, Role, RolePermission, UserRole
from estate_backend.model.sidebar import PAGE_PERMISSION_TYPES, PagePermission, RolePagePermission
from estate_backend.permissions.errors import (
    InconsistentPermissionSet,
    ParentRoleNotFound,
    RoleNameTaken,
    RoleNotFound,
)
from estate_backend.permissions.principal import Principal
from estate_backend.permissions.role_setup import SYSTEM_ROLE_BY_NAME

logger = logging.getLogger(__name__)


def get_role(db: Session, role_id: int) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise RoleNotFound(ids=[role_id], detail=f"Role {role_id} not found")
    return role


def get_role_by_name(db: Session, name: str) -> Optional[Role]:
    return db.scalar(select(Role).where(Role.name == name))


def role_name_exists(db: Session, name: str) -> bool:
    return db.scalar(select(Role.id).where(Role.name == name)) is not None


def create_role(
    db: Session,
    name: str,
    description: Optional[str] = None,
    creator_id: Optional[int] = None,
    parent_role_id: Optional[int] = None,
    max_sub_roles: Optional[int] = None,
    builtin: bool = False,
) -> Role:
    """Insert a role.

    The UNIQUE constraint on ``role.name`` decides races: when two sessions pass the
    pre-check with the same name, the loser's INSERT fails and is reported as
    ``RoleNameTaken`` after its transaction is rolled back.
    """

    if role_name_exists(db, name):
        raise RoleNameTaken(ids=[name], detail=f"Role name '{name}' is already taken")

    if parent_role_id is not None and db.get(Role, parent_role_id) is None:
        raise ParentRoleNotFound(ids=[parent_role_id], detail=f"Parent role {parent_role_id} not found")

    role = Role(
        name=name,
        description=description,
        created_by=creator_id,
        parent_role_id=parent_role_id,
        max_sub_roles=max_sub_roles,
        builtin=builtin,
    )
    db.add(role)

    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise RoleNameTaken(ids=[name], detail=f"Role name '{name}' is already taken") from e

    return role


def _permission_ids_by_name(db: Session, names: Iterable[str]) -> Dict[str, int]:
    names = set(names)
    if not names:
        return {}
    rows = db.execute(select(Permission.name, Permission.id).where(Permission.name.in_(names))).all()
    return {row.name: row.id for row in rows}


def grant_permission(db: Session, role_id: int, permission_name: str) -> bool:
    """Grant a permission to a role. Returns False when it was already granted."""

    permission_id = _permission_ids_by_name(db, [permission_name]).get(permission_name)
    if permission_id is None:
        raise LookupError(f"Unknown permission: {permission_name!r}")

    if db.get(RolePermission, (role_id, permission_id)) is not None:
        return False

    db.add(RolePermission(role_id=role_id, permission_id=permission_id))
    db.flush()
    return True


def revoke_permission(db: Session, role_id: int, permission_name: str) -> bool:
    permission_id = _permission_ids_by_name(db, [permission_name]).get(permission_name)
    if permission_id is None:
        return False
    row = db.get(RolePermission, (role_id, permission_id))
    if row is None:
        return False
    db.delete(row)
    db.flush()
    return True


def grant_page(db: Session, role_id: int, page_id: int, permission_type: str) -> bool:
    """Grant one page permission type. Repeat grants are no-ops."""

    if permission_type not in PAGE_PERMISSION_TYPES:
        raise ValueError(f"Unknown page permission type: {permission_type!r}")

    row = db.get(RolePagePermission, (role_id, page_id, permission_type))
    if row is not None:
        if row.is_granted:
            return False
        row.is_granted = True
        db.flush()
        return True

    db.add(RolePagePermission(role_id=role_id, page_id=page_id, permission_type=permission_type, is_granted=True))
    db.flush()
    return True


def revoke_page_permission(db: Session, role_id: int, page_id: int, permission_type: str) -> List[str]:
    """Revoke a page permission type and return the types removed.

    Revoking ``view`` removes every other type on that page as well.
    """

    stmt = select(RolePagePermission).where(
        RolePagePermission.role_id == role_id,
        RolePagePermission.page_id == page_id,
    )
    if permission_type != "view":
        stmt = stmt.where(RolePagePermission.permission_type == permission_type)

    removed = []
    for row in db.scalars(stmt).all():
        if row.is_granted:
            removed.append(row.permission_type)
        db.delete(row)
    db.flush()

    return sorted(removed)


def set_page_permission(db: Session, role_id: int, page_id: int, permission_type: str, granted: bool) -> List[str]:
    """Grant or revoke one page permission type, keeping view-consistency."""

    if not granted:
        return revoke_page_permission(db, role_id, page_id, permission_type)

    if permission_type != "view":
        view = db.get(RolePagePermission, (role_id, page_id, "view"))
        if view is None or not view.is_granted:
            raise InconsistentPermissionSet(
                ids=[page_id],
                detail=f"Page {page_id}: '{permission_type}' requires 'view'",
            )

    return [permission_type] if grant_page(db, role_id, page_id, permission_type) else []


def replace_role_grants(
    db: Session,
    role: Role,
    permission_names: Iterable[str],
    page_grants: Iterable[Tuple[int, str]],
) -> None:
    """Replace every explicit grant of ``role``: delete all, then insert the new set."""

    permission_names = set(permission_names)
    permission_ids = _permission_ids_by_name(db, permission_names)
    missing = permission_names - set(permission_ids)
    if missing:
        raise LookupError(f"Unknown permissions: {sorted(missing)}")

    role.role_permissions.clear()
    role.role_page_permissions.clear()
    db.flush()

    for permission_id in sorted(permission_ids.values()):
        db.add(RolePermission(role_id=role.id, permission_id=permission_id))
    for page_id, permission_type in sorted(set(page_grants)):
        db.add(RolePagePermission(role_id=role.id, page_id=page_id, permission_type=permission_type, is_granted=True))
    db.flush()
    db.expire(role, ["role_permissions", "role_page_permissions"])


def assign_role(db: Session, user_id: int, role_id: int, assigned_by: Optional[int] = None) -> bool:
    """Give a user a role. Returns False when the user already holds it."""

    get_role(db, role_id)

    if db.get(UserRole, (user_id, role_id)) is not None:
        return False

    db.add(UserRole(user_id=user_id, role_id=role_id, created_by=assigned_by))
    db.flush()
    return True


def unassign_role(db: Session, user_id: int, role_id: int) -> bool:
    row = db.get(UserRole, (user_id, role_id))
    if row is None:
        return False
    db.delete(row)
    db.flush()
    return True


def role_holder_ids(db: Session, role_id: int) -> List[int]:
    return list(db.scalars(select(UserRole.user_id).where(UserRole.role_id == role_id).order_by(UserRole.user_id)))


def user_role_ids(db: Session, user_id: int) -> List[int]:
    return list(db.scalars(select(UserRole.role_id).where(UserRole.user_id == user_id)))


def user_roles(db: Session, user_id: int) -> List[Role]:
    return list(
        db.scalars(
            select(Role).join(UserRole, UserRole.role_id == Role.id).where(UserRole.user_id == user_id).order_by(Role.id)
        )
    )


def role_chain_ids(db: Session, role_id: int) -> List[int]:
    """The role followed by its parent templates, stopping at the first repeat."""

    chain: List[int] = []
    seen: Set[int] = set()
    current: Optional[int] = role_id

    while current is not None and current not in seen:
        seen.add(current)
        chain.append(current)
        current = db.scalar(select(Role.parent_role_id).where(Role.id == current))

    return chain


def effective_role_ids(db: Session, role_ids: Iterable[int]) -> Set[int]:
    result: Set[int] = set()
    for role_id in role_ids:
        result.update(role_chain_ids(db, role_id))
    return result


def _permission_names_for_roles(db: Session, role_ids: Set[int]) -> FrozenSet[str]:
    if not role_ids:
        return frozenset()
    return frozenset(
        db.scalars(
            select(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id.in_(role_ids))
        )
    )


def _page_grants_for_roles(db: Session, role_ids: Set[int]) -> FrozenSet[Tuple[int, str]]:
    if not role_ids:
        return frozenset()
    rows = db.execute(
        select(RolePagePermission.page_id, RolePagePermission.permission_type).where(
            RolePagePermission.role_id.in_(role_ids),
            RolePagePermission.is_granted.is_(True),
        )
    ).all()
    return frozenset((row.page_id, row.permission_type) for row in rows)


def role_effective_permissions(db: Session, role_id: int) -> FrozenSet[str]:
    """Own permissions plus those of the parent template chain."""
    return _permission_names_for_roles(db, set(role_chain_ids(db, role_id)))


def role_effective_pages(db: Session, role_id: int) -> FrozenSet[Tuple[int, str]]:
    return _page_grants_for_roles(db, set(role_chain_ids(db, role_id)))


def user_effective_permissions(db: Session, user_id: int) -> FrozenSet[str]:
    return _permission_names_for_roles(db, effective_role_ids(db, user_role_ids(db, user_id)))


def user_effective_pages(db: Session, user_id: int) -> FrozenSet[Tuple[int, str]]:
    return _page_grants_for_roles(db, effective_role_ids(db, user_role_ids(db, user_id)))


def all_page_grants(db: Session) -> FrozenSet[Tuple[int, str]]:
    rows = db.execute(select(PagePermission.page_id, PagePermission.permission_type)).all()
    return frozenset((row.page_id, row.permission_type) for row in rows)


def all_permission_names(db: Session) -> FrozenSet[str]:
    return frozenset(db.scalars(select(Permission.name)))


def custom_roles_created_by(db: Session, user_id: int) -> List[Role]:
    return list(
        db.scalars(
            select(Role).where(Role.created_by == user_id, Role.builtin.is_(False)).order_by(Role.id)
        )
    )


def creatable_system_role_names(db: Session, principal: Principal) -> Set[str]:
    """System roles the actor's held roles may hand out."""

    names: Set[str] = set()
    for role in user_roles(db, principal.user_id):
        definition = SYSTEM_ROLE_BY_NAME.get(role.name) if role.builtin else None
        if definition is not None:
            names.update(definition.can_create)
    return names


def may_create_custom_roles(db: Session, principal: Principal) -> bool:
    """True if a held system role, directly or as a parent template, allows custom roles."""

    if principal.is_admin:
        return True

    role_ids = effective_role_ids(db, user_role_ids(db, principal.user_id))
    if not role_ids:
        return False

    for role in db.scalars(select(Role).where(Role.id.in_(role_ids), Role.builtin.is_(True))):
        definition = SYSTEM_ROLE_BY_NAME.get(role.name)
        if definition is not None and definition.can_create_custom:
            return True
    return False


def manageable_roles(db: Session, principal: Principal) -> List[Role]:
    """Roles the actor may hand out or administer.

    Admin sees every role. Others see the system roles their level may create
    plus the custom roles they created.
    """

    if principal.is_admin:
        return list(db.scalars(select(Role).order_by(Role.id)))

    if principal.user_id is None:
        return []

    system_names = creatable_system_role_names(db, principal)

    roles = []
    if system_names:
        roles.extend(
            db.scalars(
                select(Role).where(Role.builtin.is_(True), Role.name.in_(system_names)).order_by(Role.id)
            )
        )
    roles.extend(custom_roles_created_by(db, principal.user_id))
    return roles


def role_statistics(db: Session) -> List[Tuple[Role, int]]:
    """Each role with the number of users holding it."""

    rows = db.execute(
        select(Role, func.count(UserRole.user_id))
        .outerjoin(UserRole, UserRole.role_id == Role.id)
        .group_by(Role.id)
        .order_by(Role.id)
    ).all()
    return [(role, count) for role, count in rows]
