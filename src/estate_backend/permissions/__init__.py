"""
Ownership-based authorization and data scoping.

Main components:
- principal: Principal (the per-request access context) with structured claims
- catalog: permission strings, sidebar pages and seeding
- roles: role store (grants, assignments, effective sets)
- hierarchy: custom roles that never exceed their creator's rights
- ownership: ownership sources and scope values
- handlers / handlers_impl / query_builders: per-resource-type scope calculation
- scope: query scope injector
- core: access decision point
- pages: accessible sidebar pages
- auth: identity resolver
"""

from .errors import (
    AccessControlError,
    PermissionDenied,
    PrivilegeEscalationDenied,
    RoleNameTaken,
    RoleNotFound,
    ParentRoleNotFound,
    RoleInUse,
    InconsistentPermissionSet,
    DuplicatePermission,
    UnknownResourceType,
)

from .principal import (
    Principal,
    AccessContext,
    Claims,
    build_claims,
)

from .ownership import (
    OwnershipSource,
    OwnershipConfig,
    Unrestricted,
    Ids,
    Scope,
    UNRESTRICTED,
    load_ownership_config,
)

from .scope import inject_scope

from .catalog import (
    register_permission,
    seed_access_catalog,
    list_permissions,
    permissions_grouped_by_resource,
    role_permission_names,
)

from .hierarchy import (
    create_custom_role,
    update_role_permissions,
    delete_custom_role,
    escalation_violations,
)

from .core import (
    AccessDecisionPoint,
    initialize_scope_handlers,
    db_get_claims,
)

from .pages import AccessiblePages, list_accessible_pages

from .handlers import (
    ScopeHandler,
    ScopeRegistry,
    scope_registry,
)

__all__ = [
    # Errors
    "AccessControlError",
    "PermissionDenied",
    "PrivilegeEscalationDenied",
    "RoleNameTaken",
    "RoleNotFound",
    "ParentRoleNotFound",
    "RoleInUse",
    "InconsistentPermissionSet",
    "DuplicatePermission",
    "UnknownResourceType",

    # Principal and Claims
    "Principal",
    "AccessContext",
    "Claims",
    "build_claims",

    # Scopes
    "OwnershipSource",
    "OwnershipConfig",
    "Unrestricted",
    "Ids",
    "Scope",
    "UNRESTRICTED",
    "load_ownership_config",
    "inject_scope",

    # Catalog
    "register_permission",
    "seed_access_catalog",
    "list_permissions",
    "permissions_grouped_by_resource",
    "role_permission_names",

    # Role hierarchy
    "create_custom_role",
    "update_role_permissions",
    "delete_custom_role",
    "escalation_violations",

    # Decisions
    "AccessDecisionPoint",
    "initialize_scope_handlers",
    "db_get_claims",
    "AccessiblePages",
    "list_accessible_pages",

    # Handlers
    "ScopeHandler",
    "ScopeRegistry",
    "scope_registry",
]
