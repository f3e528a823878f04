from collections import defaultdict
from typing import Dict, FrozenSet, List, Optional, Set, Tuple
from pydantic import BaseModel, Field, PrivateAttr, model_validator

from estate_backend.settings import settings

# Actions that fall back to their "<action>_own" variant when the plain grant is absent
OWN_FALLBACK_ACTIONS = ("view", "update", "delete")


def split_permission_name(name: str) -> Tuple[str, str]:
    """Split ``"<resource>.<action>"`` into its parts."""
    resource, _, action = name.rpartition(".")
    if not resource or not action:
        raise ValueError(f"Malformed permission name: {name!r}")
    return resource, action


class Claims(BaseModel):
    """Resource permissions and page grants an actor holds through their roles"""
    general: Dict[str, Set[str]] = Field(default_factory=dict)
    pages: Dict[int, Set[str]] = Field(default_factory=dict)

    def has_general_permission(self, resource: str, action: str) -> bool:
        return resource in self.general and action in self.general[resource]

    def has_page_permission(self, page_id: int, permission_type: str) -> bool:
        return page_id in self.pages and permission_type in self.pages[page_id]

    def permission_names(self) -> FrozenSet[str]:
        return frozenset(
            f"{resource}.{action}"
            for resource, actions in self.general.items()
            for action in actions
        )

    def page_grants(self) -> FrozenSet[Tuple[int, str]]:
        return frozenset(
            (page_id, permission_type)
            for page_id, types in self.pages.items()
            for permission_type in types
        )


def build_claims(claim_values: List[Tuple[str, str]]) -> Claims:
    """Build structured claims from claim value tuples.

    ``("permissions", "tenants.view")`` adds a resource permission,
    ``("pages", "3:view")`` adds a page grant for page 3.
    """

    general: Dict[str, Set[str]] = defaultdict(set)
    pages: Dict[int, Set[str]] = defaultdict(set)

    for claim_type, claim_value in claim_values:
        if claim_type == "permissions":
            resource, action = split_permission_name(claim_value)
            general[resource].add(action)
        elif claim_type == "pages":
            page_id, permission_type = claim_value.split(":", 1)
            pages[int(page_id)].add(permission_type)

    return Claims(general=dict(general), pages=dict(pages))


class Principal(BaseModel):
    """The resolved actor of one request.

    Built once by the identity resolver and passed explicitly to every access
    decision; nothing reads permissions from ambient state.
    """

    is_admin: bool = False
    user_id: Optional[int] = None

    roles: List[str] = Field(default_factory=list)
    claims: Claims = Field(default_factory=Claims)

    # Per-request memo of permission checks
    _permission_cache: Dict[str, bool] = PrivateAttr(default_factory=dict)

    @model_validator(mode='after')
    def set_is_admin_from_roles(self):
        if settings.ADMIN_ROLE_NAME in self.roles:
            self.is_admin = True
        return self

    def get_user_id_or_throw(self) -> int:
        if self.user_id is None:
            from estate_backend.permissions.errors import PermissionDenied
            raise PermissionDenied(detail="No authenticated user")
        return self.user_id

    def clear_permission_cache(self):
        self._permission_cache.clear()

    def has_permission(self, name: str) -> bool:
        """True iff any held role grants ``name``. Admin is unconditionally true."""
        if self.is_admin:
            return True
        resource, _, action = name.rpartition(".")
        if not resource or not action:
            return False
        return self.permitted(resource, action)

    def has_resource_permission(self, resource: str, action: str) -> bool:
        """Check ``<resource>.<action>``, then ``<resource>.<action>_own`` for view/update/delete."""
        if self.is_admin:
            return True
        if self.permitted(resource, action):
            return True
        if action in OWN_FALLBACK_ACTIONS:
            return self.permitted(resource, f"{action}_own")
        return False

    def has_page_permission(self, page_id: int, permission_type: str = "view") -> bool:
        if self.is_admin:
            return True
        return self.claims.has_page_permission(page_id, permission_type)

    def permitted(self, resource: str, action: str | List[str]) -> bool:
        if self.is_admin:
            return True

        if isinstance(action, list):
            return any(self.permitted(resource, a) for a in action)

        cache_key = f"{resource}:{action}"
        if cache_key in self._permission_cache:
            return self._permission_cache[cache_key]

        result = self.claims.has_general_permission(resource, action)
        self._permission_cache[cache_key] = result

        return result


# The value threaded through every access decision
AccessContext = Principal
