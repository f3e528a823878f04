from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PageDescriptor(BaseModel):
    id: int
    name: str
    url: str
    icon: Optional[str] = None
    display_order: int = 0
    description: Optional[str] = None
    permission_types: List[str] = Field(default_factory=list, description="Granted page permission types")

    model_config = ConfigDict(from_attributes=True, frozen=True)
