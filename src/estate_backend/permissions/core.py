"""
Access decision point and handler registration.

``AccessDecisionPoint`` is built once per request from the resolved ``Principal``
and is what controllers use for action gating (``has_permission``,
``has_resource_permission``) and data gating (``scope_for``, ``scoped_query``).
"""

import logging
from typing import Any, List, Optional, Tuple
from sqlalchemy.orm import Query, Session

from estate_backend.interface.roles import CustomRoleCreate, CustomRoleUpdate
from estate_backend.model.auth import User
from estate_backend.model.property import Apartment, Building, Floor, Villa
from estate_backend.model.role import Role
from estate_backend.model.tenant import FinancialTransaction, Tenant
from estate_backend.permissions import hierarchy
from estate_backend.permissions import roles as role_store
from estate_backend.permissions.catalog import get_page_by_url
from estate_backend.permissions.errors import PermissionDenied
from estate_backend.permissions.handlers import scope_registry
from estate_backend.permissions.handlers_impl import (
    ApartmentScopeHandler,
    BuildingScopeHandler,
    FinancialTransactionScopeHandler,
    FloorScopeHandler,
    TenantScopeHandler,
    UserScopeHandler,
    VillaScopeHandler,
)
from estate_backend.permissions.ownership import Scope
from estate_backend.permissions.pages import AccessiblePages
from estate_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


def initialize_scope_handlers():
    """Register one scope handler per scoped resource type"""

    scope_registry.register(BuildingScopeHandler(Building))
    scope_registry.register(VillaScopeHandler(Villa))
    scope_registry.register(FloorScopeHandler(Floor))
    scope_registry.register(ApartmentScopeHandler(Apartment))
    scope_registry.register(TenantScopeHandler(Tenant))
    scope_registry.register(FinancialTransactionScopeHandler(FinancialTransaction))
    scope_registry.register(UserScopeHandler(User))


def db_get_claims(user_id: int, db: Session) -> List[Tuple[str, str]]:
    """Claim tuples for every grant the user holds, parent templates included"""

    values = [("permissions", name) for name in sorted(role_store.user_effective_permissions(db, user_id))]
    values.extend(
        ("pages", f"{page_id}:{permission_type}")
        for page_id, permission_type in sorted(role_store.user_effective_pages(db, user_id))
    )
    return values


class AccessDecisionPoint:

    def __init__(self, principal: Principal, db: Session):
        self.principal = principal
        self.db = db

    def has_permission(self, name: str) -> bool:
        return self.principal.has_permission(name)

    def has_resource_permission(self, resource: str, action: str) -> bool:
        return self.principal.has_resource_permission(resource, action)

    def has_page_permission(self, url: str, permission_type: str = "view") -> bool:
        page = get_page_by_url(self.db, url)
        if page is None or not page.is_active:
            return False
        return self.principal.has_page_permission(page.id, permission_type)

    def require_permission(self, name: str) -> None:
        if not self.has_permission(name):
            raise PermissionDenied(ids=[name], detail=f"Missing permission '{name}'")

    def require_resource_permission(self, resource: str, action: str) -> None:
        if not self.has_resource_permission(resource, action):
            name = f"{resource}.{action}"
            raise PermissionDenied(ids=[name], detail=f"Missing permission '{name}'")

    def scope_for(self, resource_type: str) -> Scope:
        return scope_registry.get_handler(resource_type).scope_for(self.principal, self.db)

    def scoped_query(self, resource_type: str, query: Optional[Query] = None) -> Query:
        return scope_registry.get_handler(resource_type).build_query(self.principal, self.db, query)

    def can_access(self, resource_type: str, resource_id: Any) -> bool:
        return scope_registry.get_handler(resource_type).can_access(self.principal, self.db, resource_id)

    def create_custom_role(self, data: CustomRoleCreate) -> Role:
        return hierarchy.create_custom_role(self.db, self.principal, data)

    def update_role_permissions(self, role_id: int, data: CustomRoleUpdate) -> Role:
        return hierarchy.update_role_permissions(self.db, self.principal, role_id, data)

    def delete_custom_role(self, role_id: int, reassign_to_role_id: Optional[int] = None) -> List[int]:
        return hierarchy.delete_custom_role(self.db, self.principal, role_id, reassign_to_role_id)

    def list_accessible_pages(self) -> AccessiblePages:
        return AccessiblePages(self.principal, self.db)

    def manageable_roles(self) -> List[Role]:
        return role_store.manageable_roles(self.db, self.principal)


# Initialize handlers on module import
initialize_scope_handlers()
