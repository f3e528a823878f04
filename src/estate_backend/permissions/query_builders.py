from typing import Any, Type
from sqlalchemy import Select, select, union
from sqlalchemy.orm import aliased

from estate_backend.model.auth import User
from estate_backend.model.property import (
    Apartment,
    ApartmentAssigned,
    Building,
    BuildingAssigned,
    Floor,
    Villa,
    VillaAssigned,
)
from estate_backend.model.tenant import FinancialTransaction, Tenant
from estate_backend.permissions.ownership import OwnershipSource


class OwnershipQueryBuilder:
    """Id selects for resources owned directly through ``created_by`` or an assignment table"""

    @classmethod
    def created_by_subquery(cls, entity: Type[Any], user_id: int) -> Select:
        return select(entity.id).where(entity.created_by == user_id)

    @classmethod
    def assigned_subquery(cls, entity: Type[Any], assignment: Type[Any], foreign_key: Any, user_id: int) -> Select:
        assignment_alias = aliased(assignment)
        return (
            select(entity.id)
            .join(assignment_alias, getattr(assignment_alias, foreign_key.key) == entity.id)
            .where(
                assignment_alias.user_id == user_id,
                # an assignment never revives an orphan
                entity.created_by.isnot(None),
            )
        )

    @classmethod
    def owned_ids(cls, entity: Type[Any], assignment: Type[Any], foreign_key: Any,
                  user_id: int, source: OwnershipSource) -> Select:
        parts = []
        if source.uses_created_by:
            parts.append(cls.created_by_subquery(entity, user_id))
        if source.uses_assignment:
            parts.append(cls.assigned_subquery(entity, assignment, foreign_key, user_id))

        if len(parts) == 1:
            return parts[0]
        return select(union(*parts).subquery().c[0])


class PropertyQueryBuilder:
    """Buildings, villas and the floors and apartments below buildings"""

    @classmethod
    def building_ids(cls, user_id: int, source: OwnershipSource) -> Select:
        return OwnershipQueryBuilder.owned_ids(Building, BuildingAssigned, BuildingAssigned.building_id, user_id, source)

    @classmethod
    def villa_ids(cls, user_id: int, source: OwnershipSource) -> Select:
        return OwnershipQueryBuilder.owned_ids(Villa, VillaAssigned, VillaAssigned.villa_id, user_id, source)

    @classmethod
    def floor_ids(cls, building_ids: Select) -> Select:
        return select(Floor.id).where(Floor.building_id.in_(building_ids))

    @classmethod
    def apartment_ids(cls, building_ids: Select) -> Select:
        return (
            select(Apartment.id)
            .join(Floor, Floor.id == Apartment.floor_id)
            .where(Floor.building_id.in_(building_ids))
        )


class TenantQueryBuilder:
    """Tenants and transactions, owned directly or through the building chain"""

    @classmethod
    def tenants_in_buildings_subquery(cls, building_ids: Select) -> Select:
        """Non-orphan tenants whose current apartment lies in one of ``building_ids``."""
        return (
            select(Tenant.id)
            .join(ApartmentAssigned, ApartmentAssigned.tenant_id == Tenant.id)
            .join(Apartment, Apartment.id == ApartmentAssigned.apartment_id)
            .join(Floor, Floor.id == Apartment.floor_id)
            .where(
                Floor.building_id.in_(building_ids),
                Tenant.created_by.isnot(None),
            )
        )

    @classmethod
    def tenant_ids(cls, user_id: int, building_ids: Select) -> Select:
        """One union of directly created and building-derived tenants."""
        return select(
            union(
                OwnershipQueryBuilder.created_by_subquery(Tenant, user_id),
                cls.tenants_in_buildings_subquery(building_ids),
            ).subquery().c[0]
        )

    @classmethod
    def transaction_ids(cls, user_id: int, building_ids: Select) -> Select:
        derived = select(FinancialTransaction.id).where(
            FinancialTransaction.tenant_id.in_(cls.tenants_in_buildings_subquery(building_ids)),
            FinancialTransaction.created_by.isnot(None),
        )
        return select(
            union(
                OwnershipQueryBuilder.created_by_subquery(FinancialTransaction, user_id),
                derived,
            ).subquery().c[0]
        )


class UserQueryBuilder:

    @classmethod
    def managed_user_ids(cls, user_id: int) -> Select:
        """The actor plus the users they provisioned, one level deep."""
        return select(User.id).where((User.id == user_id) | (User.created_by == user_id))
