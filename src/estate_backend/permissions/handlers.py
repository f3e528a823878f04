import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type
from sqlalchemy import Select
from sqlalchemy.orm import Query, Session

from estate_backend.permissions.errors import UnknownResourceType
from estate_backend.permissions.ownership import (
    UNRESTRICTED,
    Ids,
    OwnershipConfig,
    Scope,
    get_ownership_config,
)
from estate_backend.permissions.principal import Principal
from estate_backend.permissions.scope import inject_scope

logger = logging.getLogger(__name__)


class ScopeHandler(ABC):
    """Base class for the ownership scope of one resource type"""

    resource_type: str

    def __init__(self, entity: Type[Any], config: Optional[OwnershipConfig] = None):
        self.entity = entity
        self._config = config

    @property
    def config(self) -> OwnershipConfig:
        return self._config or get_ownership_config()

    @abstractmethod
    def ids_query(self, user_id: int) -> Select:
        """Select of the ids a non-admin actor owns, orphans excluded"""
        pass

    def scope_for(self, principal: Principal, db: Session) -> Scope:
        if principal.is_admin:
            return UNRESTRICTED

        if principal.user_id is None:
            return Ids()

        ids = frozenset(db.scalars(self.ids_query(principal.user_id)))
        logger.debug(f"Scope {self.resource_type} for user {principal.user_id}: {len(ids)} ids")
        return Ids(ids=ids)

    def build_query(self, principal: Principal, db: Session, query: Optional[Query] = None) -> Query:
        """ORM query of the entity restricted to the actor's scope"""
        if query is None:
            query = db.query(self.entity)
        return inject_scope(self.scope_for(principal, db), query, self.entity.id)

    def can_access(self, principal: Principal, db: Session, resource_id: Any) -> bool:
        return resource_id in self.scope_for(principal, db)


class ScopeRegistry:
    """Registry of scope handlers keyed by resource type"""

    _instance = None
    _handlers: Dict[str, ScopeHandler] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def register(self, handler: ScopeHandler):
        self._handlers[handler.resource_type] = handler

    def get_handler(self, resource_type: str) -> ScopeHandler:
        """The only place a resource-type string is resolved"""
        handler = self._handlers.get(resource_type)
        if handler is None:
            raise UnknownResourceType(resource_type)
        return handler

    def resource_types(self):
        return sorted(self._handlers)


# Global registry instance
scope_registry = ScopeRegistry()
