from sqlalchemy import Select

from estate_backend.permissions.handlers import ScopeHandler
from estate_backend.permissions.query_builders import (
    PropertyQueryBuilder,
    TenantQueryBuilder,
    UserQueryBuilder,
)


class _BuildingDerivedHandler(ScopeHandler):
    """Scopes that follow from the actor's building scope"""

    def building_ids(self, user_id: int) -> Select:
        return PropertyQueryBuilder.building_ids(user_id, self.config.source_for("buildings"))


class BuildingScopeHandler(_BuildingDerivedHandler):
    resource_type = "buildings"

    def ids_query(self, user_id: int) -> Select:
        return self.building_ids(user_id)


class VillaScopeHandler(ScopeHandler):
    resource_type = "villas"

    def ids_query(self, user_id: int) -> Select:
        return PropertyQueryBuilder.villa_ids(user_id, self.config.source_for("villas"))


class FloorScopeHandler(_BuildingDerivedHandler):
    resource_type = "floors"

    def ids_query(self, user_id: int) -> Select:
        return PropertyQueryBuilder.floor_ids(self.building_ids(user_id))


class ApartmentScopeHandler(_BuildingDerivedHandler):
    resource_type = "apartments"

    def ids_query(self, user_id: int) -> Select:
        return PropertyQueryBuilder.apartment_ids(self.building_ids(user_id))


class TenantScopeHandler(_BuildingDerivedHandler):
    resource_type = "tenants"

    def ids_query(self, user_id: int) -> Select:
        return TenantQueryBuilder.tenant_ids(user_id, self.building_ids(user_id))


class FinancialTransactionScopeHandler(_BuildingDerivedHandler):
    resource_type = "financial_transactions"

    def ids_query(self, user_id: int) -> Select:
        return TenantQueryBuilder.transaction_ids(user_id, self.building_ids(user_id))


class UserScopeHandler(ScopeHandler):
    resource_type = "users"

    def ids_query(self, user_id: int) -> Select:
        return UserQueryBuilder.managed_user_ids(user_id)
