from typing import FrozenSet, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PagePermissionInput(BaseModel):
    """Requested grants for one sidebar page"""
    page_id: int = Field(description="Sidebar page id")
    view: bool = False
    create: bool = False
    update: bool = False
    delete: bool = False
    manage: bool = False

    def granted_types(self) -> List[str]:
        return [
            permission_type
            for permission_type in ("view", "create", "update", "delete", "manage")
            if getattr(self, permission_type)
        ]

    @property
    def is_consistent(self) -> bool:
        """Any write-level grant requires view on the same page."""
        return self.view or not (self.create or self.update or self.delete or self.manage)


def page_grant_set(page_permissions: List[PagePermissionInput]) -> FrozenSet[Tuple[int, str]]:
    return frozenset(
        (page.page_id, permission_type)
        for page in page_permissions
        for permission_type in page.granted_types()
    )


class CustomRoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255, description="Unique role name")
    description: Optional[str] = Field(None, description="Role description")
    parent_role_id: Optional[int] = Field(None, description="Template role whose grants are inherited")
    max_sub_roles: Optional[int] = Field(None, ge=0, description="Custom roles holders of this role may create")
    page_permissions: List[PagePermissionInput] = Field(default_factory=list)
    resource_permissions: List[str] = Field(default_factory=list, description="Permission names, e.g. tenants.view")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Role name must not be blank")
        return value


class CustomRoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    page_permissions: List[PagePermissionInput] = Field(default_factory=list)
    resource_permissions: List[str] = Field(default_factory=list)


class RoleGet(BaseModel):
    id: int = Field(description="Role id")
    name: str = Field(description="Role name")
    description: Optional[str] = None
    builtin: bool = Field(description="Whether this is a seeded system role")
    created_by: Optional[int] = None
    parent_role_id: Optional[int] = None
    max_sub_roles: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
