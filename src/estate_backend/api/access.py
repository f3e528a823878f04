from typing import Annotated, List
from fastapi import APIRouter, Depends

from estate_backend.api.exceptions import NotFoundException
from estate_backend.interface.pages import PageDescriptor
from estate_backend.interface.permissions import PrincipalPermissions
from estate_backend.interface.roles import RoleGet
from estate_backend.interface.scopes import ScopeGet
from estate_backend.permissions.auth import get_access_decision_point
from estate_backend.permissions.core import AccessDecisionPoint
from estate_backend.permissions.handlers import scope_registry
from estate_backend.permissions.ownership import Unrestricted

access_router = APIRouter()


@access_router.get("/permissions", response_model=PrincipalPermissions)
def get_my_permissions(adp: Annotated[AccessDecisionPoint, Depends(get_access_decision_point)]):

    principal = adp.principal
    names = sorted(principal.claims.permission_names())

    return PrincipalPermissions(
        user_id=principal.user_id,
        is_admin=principal.is_admin,
        roles=principal.roles,
        permissions=names,
        permissions_by_resource={
            resource: sorted(actions) for resource, actions in sorted(principal.claims.general.items())
        },
    )


@access_router.get("/pages", response_model=List[PageDescriptor])
def get_my_pages(adp: Annotated[AccessDecisionPoint, Depends(get_access_decision_point)]):
    return list(adp.list_accessible_pages())


@access_router.get("/roles", response_model=List[RoleGet])
def get_manageable_roles(adp: Annotated[AccessDecisionPoint, Depends(get_access_decision_point)]):
    return adp.manageable_roles()


@access_router.get("/scopes/{resource_type}", response_model=ScopeGet)
def get_my_scope(resource_type: str, adp: Annotated[AccessDecisionPoint, Depends(get_access_decision_point)]):

    # Unknown path values are a 404
    if resource_type not in scope_registry.resource_types():
        raise NotFoundException(detail=f"Unknown resource type '{resource_type}'")

    scope = adp.scope_for(resource_type)

    if isinstance(scope, Unrestricted):
        return ScopeGet(resource_type=resource_type, unrestricted=True)

    return ScopeGet(resource_type=resource_type, unrestricted=False, ids=scope.sorted_ids())
