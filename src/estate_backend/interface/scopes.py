from typing import List, Optional
from pydantic import BaseModel, Field


class ScopeGet(BaseModel):
    resource_type: str
    unrestricted: bool = Field(description="True when no row filter applies")
    ids: Optional[List[int]] = Field(None, description="Accessible ids, absent when unrestricted")
