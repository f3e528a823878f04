"""
Ownership sources and scope values.

``OwnershipSource`` says where ownership of a resource type comes from: the row's
own ``created_by`` column, the legacy per-user assignment table, or both (union).
It is resolved once per process into an ``OwnershipConfig``.
"""

import logging
from enum import Enum
from functools import lru_cache
from typing import Dict, FrozenSet, List, Optional, Union
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from estate_backend.settings import settings

logger = logging.getLogger(__name__)


class OwnershipSource(str, Enum):
    CREATED_BY = "CREATED_BY"
    ASSIGNED = "ASSIGNED"
    BOTH = "BOTH"

    @property
    def uses_created_by(self) -> bool:
        return self in (OwnershipSource.CREATED_BY, OwnershipSource.BOTH)

    @property
    def uses_assignment(self) -> bool:
        return self in (OwnershipSource.ASSIGNED, OwnershipSource.BOTH)


# Resource types backed by a legacy assignment table
ASSIGNABLE_RESOURCE_TYPES = frozenset({"buildings", "villas"})

DEFAULT_OWNERSHIP_SOURCES: Dict[str, OwnershipSource] = {
    "buildings": OwnershipSource.BOTH,
    "villas": OwnershipSource.BOTH,
    "tenants": OwnershipSource.CREATED_BY,
    "financial_transactions": OwnershipSource.CREATED_BY,
}


class OwnershipConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    sources: Dict[str, OwnershipSource] = Field(default_factory=lambda: dict(DEFAULT_OWNERSHIP_SOURCES))

    @field_validator("sources")
    @classmethod
    def validate_sources(cls, sources: Dict[str, OwnershipSource]) -> Dict[str, OwnershipSource]:
        merged = dict(DEFAULT_OWNERSHIP_SOURCES)
        for resource_type, source in sources.items():
            if resource_type not in DEFAULT_OWNERSHIP_SOURCES:
                raise ValueError(f"Unknown ownership resource type: {resource_type!r}")
            if source.uses_assignment and resource_type not in ASSIGNABLE_RESOURCE_TYPES:
                raise ValueError(f"{resource_type!r} has no assignment table, {source.value} is not allowed")
            merged[resource_type] = source
        return merged

    def source_for(self, resource_type: str) -> OwnershipSource:
        return self.sources[resource_type]


def load_ownership_config(path: Optional[str]) -> OwnershipConfig:
    """Read an ownership override file.

    Format::

        ownership:
          buildings: BOTH
          villas: CREATED_BY
    """

    if not path:
        return OwnershipConfig()

    with open(path, "r") as file:
        data = yaml.safe_load(file) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Ownership config {path} must be a mapping")

    overrides = data.get("ownership", {}) or {}
    if not isinstance(overrides, dict):
        raise ValueError(f"'ownership' in {path} must be a mapping")

    sources = {}
    for resource_type, value in overrides.items():
        try:
            sources[resource_type] = OwnershipSource(str(value).upper())
        except ValueError:
            raise ValueError(f"Invalid ownership source {value!r} for {resource_type!r}")

    config = OwnershipConfig(sources=sources)
    logger.info(f"Loaded ownership config from {path}: {config.sources}")
    return config


@lru_cache(maxsize=1)
def get_ownership_config() -> OwnershipConfig:
    return load_ownership_config(settings.OWNERSHIP_CONFIG)


class Unrestricted(BaseModel):
    """No row filter applies. Only ever produced for admins."""
    model_config = ConfigDict(frozen=True)

    def __contains__(self, item) -> bool:
        return True


class Ids(BaseModel):
    """The exact set of row ids an actor may access. May be empty."""
    model_config = ConfigDict(frozen=True)

    ids: FrozenSet[int] = Field(default_factory=frozenset)

    def __contains__(self, item) -> bool:
        return item in self.ids

    def sorted_ids(self) -> List[int]:
        return sorted(self.ids)

    @property
    def is_empty(self) -> bool:
        return not self.ids


UNRESTRICTED = Unrestricted()

Scope = Union[Unrestricted, Ids]
