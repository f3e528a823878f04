from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class PrincipalPermissions(BaseModel):
    """Effective grants of the current actor"""
    user_id: Optional[int] = None
    is_admin: bool = False
    roles: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    permissions_by_resource: Dict[str, List[str]] = Field(default_factory=dict)
