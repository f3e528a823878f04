from typing import Any, Iterable, List, Optional


class AccessControlError(Exception):
    """Base class for access-control failures.

    Every error carries a stable ``kind`` string and the offending id(s) so callers
    can build their own user-facing message.
    """

    kind: str = "access_control_error"

    def __init__(self, ids: Optional[Iterable[Any]] = None, detail: Optional[str] = None):
        self.ids: List[Any] = list(ids) if ids is not None else []
        self.detail = detail or self.kind
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "ids": self.ids, "detail": self.detail}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(ids={self.ids!r}, detail={self.detail!r})"


class PermissionDenied(AccessControlError):
    kind = "permission_denied"


class PrivilegeEscalationDenied(AccessControlError):
    """Requested grants exceed what the actor holds. Never truncated."""
    kind = "privilege_escalation_denied"


class RoleNameTaken(AccessControlError):
    kind = "role_name_taken"


class RoleNotFound(AccessControlError):
    kind = "role_not_found"


class ParentRoleNotFound(RoleNotFound):
    kind = "parent_role_not_found"


class RoleInUse(AccessControlError):
    kind = "role_in_use"


class InconsistentPermissionSet(AccessControlError):
    """A page carries create/update/delete/manage without view."""
    kind = "inconsistent_permission_set"


class DuplicatePermission(AccessControlError):
    kind = "duplicate_permission"


class UnknownResourceType(LookupError):
    """Raised for a resource-type string no scope handler is registered for.

    This is a programming error at the call site, not an access decision.
    """

    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        super().__init__(f"Unknown resource type: {resource_type!r}")
