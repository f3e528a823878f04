"""
Role hierarchy validation and the custom-role lifecycle.

A custom role may never carry more than its creator holds. The check is a pure
comparison of two grant sets (requested vs. grantable) in
``escalation_violations``; the operations below gather both sets and run every
write inside one transaction.
"""

import logging
from typing import FrozenSet, Iterable, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from estate_backend.database import transaction
from estate_backend.interface.roles import (
    CustomRoleCreate,
    CustomRoleUpdate,
    PagePermissionInput,
    page_grant_set,
)
from estate_backend.model.role import Role
from estate_backend.permissions import roles as role_store
from estate_backend.permissions.errors import (
    InconsistentPermissionSet,
    ParentRoleNotFound,
    PermissionDenied,
    PrivilegeEscalationDenied,
    RoleInUse,
    RoleNameTaken,
)
from estate_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)

PageGrant = Tuple[int, str]


class GrantSet:
    """Resource permission names and page grants held or requested together"""

    __slots__ = ("permissions", "pages")

    def __init__(self, permissions: Iterable[str] = (), pages: Iterable[PageGrant] = ()):
        self.permissions: FrozenSet[str] = frozenset(permissions)
        self.pages: FrozenSet[PageGrant] = frozenset(pages)

    def __or__(self, other: "GrantSet") -> "GrantSet":
        return GrantSet(self.permissions | other.permissions, self.pages | other.pages)

    def __repr__(self) -> str:
        return f"GrantSet(permissions={sorted(self.permissions)}, pages={sorted(self.pages)})"


def escalation_violations(requested: GrantSet, grantable: GrantSet) -> GrantSet:
    """Everything requested that the grantor cannot hand out."""
    return GrantSet(requested.permissions - grantable.permissions, requested.pages - grantable.pages)


def check_no_escalation(requested: GrantSet, grantable: GrantSet) -> None:
    violations = escalation_violations(requested, grantable)
    if violations.permissions or violations.pages:
        ids = sorted(violations.permissions) + [
            f"page:{page_id}:{permission_type}" for page_id, permission_type in sorted(violations.pages)
        ]
        raise PrivilegeEscalationDenied(ids=ids, detail=f"Cannot grant {', '.join(ids)}")


def check_page_consistency(page_permissions: List[PagePermissionInput]) -> None:
    """Write-level page grants without ``view`` are rejected, listing the page ids."""
    inconsistent = [page.page_id for page in page_permissions if not page.is_consistent]
    if inconsistent:
        raise InconsistentPermissionSet(
            ids=inconsistent,
            detail="create/update/delete/manage require view on the same page",
        )


def grantable_set(db: Session, principal: Principal) -> GrantSet:
    """What the actor may hand out: the whole catalog for admin, else the actor's effective grants."""
    if principal.is_admin:
        return GrantSet(role_store.all_permission_names(db), role_store.all_page_grants(db))

    user_id = principal.get_user_id_or_throw()
    return GrantSet(
        role_store.user_effective_permissions(db, user_id),
        role_store.user_effective_pages(db, user_id),
    )


def role_effective_grants(db: Session, role_id: int) -> GrantSet:
    return GrantSet(role_store.role_effective_permissions(db, role_id), role_store.role_effective_pages(db, role_id))


def _require(principal: Principal, permission_name: str) -> None:
    if not principal.has_permission(permission_name):
        raise PermissionDenied(ids=[permission_name], detail=f"Missing permission '{permission_name}'")


def _check_role_ownership(principal: Principal, role: Role) -> None:
    if role.builtin:
        raise PermissionDenied(ids=[role.id], detail=f"System role '{role.name}' cannot be modified")
    if not principal.is_admin and role.created_by != principal.user_id:
        raise PermissionDenied(ids=[role.id], detail=f"Role {role.id} belongs to another user")


def _check_usable_template(principal: Principal, role: Role) -> None:
    """A parent template or reassignment target: a system role or the actor's own custom role."""
    if principal.is_admin or role.builtin or role.created_by == principal.user_id:
        return
    raise PermissionDenied(ids=[role.id], detail=f"Role {role.id} belongs to another user")


def _check_sub_role_limit(db: Session, principal: Principal) -> None:
    if principal.is_admin:
        return

    limits = [role.max_sub_roles for role in role_store.user_roles(db, principal.user_id) if role.max_sub_roles is not None]
    if not limits:
        return

    owned = len(role_store.custom_roles_created_by(db, principal.user_id))
    if owned >= max(limits):
        raise PermissionDenied(
            ids=[principal.user_id],
            detail=f"Custom role limit of {max(limits)} reached",
        )


def create_custom_role(db: Session, principal: Principal, data: CustomRoleCreate) -> Role:
    """Create a role owned by the actor.

    Checks run from the most specific to the most general: page consistency,
    escalation against the actor's own grants, the `roles.create` permission,
    a system role that allows custom roles, then the sub-role limit.
    """

    creator_id = principal.get_user_id_or_throw()

    check_page_consistency(data.page_permissions)

    requested = GrantSet(data.resource_permissions, page_grant_set(data.page_permissions))

    if data.parent_role_id is not None:
        parent = db.get(Role, data.parent_role_id)
        if parent is None:
            raise ParentRoleNotFound(ids=[data.parent_role_id], detail=f"Parent role {data.parent_role_id} not found")
        _check_usable_template(principal, parent)
        requested = requested | role_effective_grants(db, parent.id)

    check_no_escalation(requested, grantable_set(db, principal))
    _require(principal, "roles.create")
    if not role_store.may_create_custom_roles(db, principal):
        raise PermissionDenied(ids=[creator_id], detail="Held roles do not allow creating custom roles")
    _check_sub_role_limit(db, principal)

    with transaction(db):
        role = role_store.create_role(
            db,
            data.name,
            description=data.description,
            creator_id=creator_id,
            parent_role_id=data.parent_role_id,
            max_sub_roles=data.max_sub_roles,
        )
        role_store.replace_role_grants(db, role, data.resource_permissions, page_grant_set(data.page_permissions))

    logger.info(f"User {creator_id} created custom role '{role.name}' ({role.id})")
    return role


def update_role_permissions(db: Session, principal: Principal, role_id: int, data: CustomRoleUpdate) -> Role:
    """Replace a custom role's explicit grants (and optionally its name or description)."""

    _require(principal, "roles.update")

    role = role_store.get_role(db, role_id)
    _check_role_ownership(principal, role)

    check_page_consistency(data.page_permissions)

    requested = GrantSet(data.resource_permissions, page_grant_set(data.page_permissions))
    if role.parent_role_id is not None:
        requested = requested | role_effective_grants(db, role.parent_role_id)

    check_no_escalation(requested, grantable_set(db, principal))

    if data.name is not None and data.name != role.name and role_store.role_name_exists(db, data.name):
        raise RoleNameTaken(ids=[data.name], detail=f"Role name '{data.name}' is already taken")

    try:
        with transaction(db):
            if data.name is not None:
                role.name = data.name
            if data.description is not None:
                role.description = data.description
            role_store.replace_role_grants(db, role, data.resource_permissions, page_grant_set(data.page_permissions))
    except IntegrityError as e:
        # A concurrent create or rename took the name after the check above
        raise RoleNameTaken(ids=[data.name], detail=f"Role name '{data.name}' is already taken") from e

    logger.info(f"User {principal.user_id} replaced grants of role '{role.name}' ({role.id})")
    return role


def delete_custom_role(
    db: Session,
    principal: Principal,
    role_id: int,
    reassign_to_role_id: Optional[int] = None,
) -> List[int]:
    """Delete a custom role and return the ids of users moved to the fallback role.

    Holders gain the fallback role before losing the deleted one, so nobody is left
    without a role.
    """

    _require(principal, "roles.delete")

    role = role_store.get_role(db, role_id)
    _check_role_ownership(principal, role)

    dependents = list(db.scalars(select(Role.id).where(Role.parent_role_id == role.id).order_by(Role.id)))
    if dependents:
        raise RoleInUse(ids=dependents, detail=f"Role {role.id} is the template of other roles")

    holders = role_store.role_holder_ids(db, role.id)

    if holders and reassign_to_role_id is None:
        raise RoleInUse(ids=holders, detail=f"Role {role.id} is held by {len(holders)} user(s)")

    if reassign_to_role_id is not None:
        if reassign_to_role_id == role.id:
            raise RoleInUse(ids=holders, detail="Cannot reassign users to the role being deleted")
        target = role_store.get_role(db, reassign_to_role_id)
        _check_usable_template(principal, target)
        check_no_escalation(role_effective_grants(db, target.id), grantable_set(db, principal))

    with transaction(db):
        for user_id in holders:
            role_store.assign_role(db, user_id, reassign_to_role_id, assigned_by=principal.user_id)
        for user_id in holders:
            role_store.unassign_role(db, user_id, role.id)
        db.delete(role)
        db.flush()

    if holders:
        logger.info(f"Reassigned users {holders} from role {role_id} to role {reassign_to_role_id}")
    logger.info(f"User {principal.user_id} deleted custom role {role_id}")

    return holders
