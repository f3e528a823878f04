"""
Factory helpers for building test data.

Ids of the shared estate follow a pattern: buildings 80xx, floors 60xx,
apartments 50xx, tenants 70xx, transactions 90xx, villas 40xx.
"""

from types import SimpleNamespace
from typing import Dict, Iterable, Optional, Tuple
from sqlalchemy.orm import Session

from estate_backend.model import (
    Apartment,
    ApartmentAssigned,
    Building,
    BuildingAssigned,
    FinancialTransaction,
    Floor,
    Role,
    Tenant,
    User,
    Villa,
    VillaAssigned,
)
from estate_backend.permissions import roles as role_store
from estate_backend.permissions.auth import AuthenticatedUser, PrincipalBuilder
from estate_backend.permissions.catalog import get_page_by_url
from estate_backend.permissions.principal import Principal


def make_user(db: Session, email: str, created_by: Optional[User] = None, role_names: Iterable[str] = ()) -> User:
    user = User(
        given_name=email.split("@")[0].capitalize(),
        family_name="Test",
        email=email,
        created_by=created_by.id if created_by is not None else None,
    )
    db.add(user)
    db.flush()

    for role_name in role_names:
        role = role_store.get_role_by_name(db, role_name)
        role_store.assign_role(db, user.id, role.id)

    return user


def make_role(
    db: Session,
    name: str,
    permissions: Iterable[str] = (),
    pages: Optional[Dict[str, Tuple[str, ...]]] = None,
    creator: Optional[User] = None,
    parent: Optional[Role] = None,
) -> Role:
    """Create a role directly in the store, bypassing hierarchy checks."""
    role = role_store.create_role(
        db,
        name,
        creator_id=creator.id if creator is not None else None,
        parent_role_id=parent.id if parent is not None else None,
    )
    for permission_name in permissions:
        role_store.grant_permission(db, role.id, permission_name)
    for url, types in (pages or {}).items():
        page = get_page_by_url(db, url)
        for permission_type in types:
            role_store.grant_page(db, role.id, page.id, permission_type)
    return role


def make_building(db: Session, building_id: int, owner: Optional[User], name: Optional[str] = None) -> Building:
    building = Building(id=building_id, name=name or f"Building {building_id}", created_by=owner.id if owner else None)
    db.add(building)
    db.flush()
    return building


def make_apartment(db: Session, apartment_id: int, building: Building, floor_id: Optional[int] = None) -> Apartment:
    floor = Floor(id=floor_id or (apartment_id + 1000), building_id=building.id, number=1)
    db.add(floor)
    db.flush()
    apartment = Apartment(id=apartment_id, floor_id=floor.id, number=str(apartment_id))
    db.add(apartment)
    db.flush()
    return apartment


def make_tenant(db: Session, tenant_id: int, owner: Optional[User], apartment: Optional[Apartment] = None) -> Tenant:
    tenant = Tenant(id=tenant_id, given_name=f"Tenant{tenant_id}", created_by=owner.id if owner else None)
    db.add(tenant)
    db.flush()
    if apartment is not None:
        db.add(ApartmentAssigned(apartment_id=apartment.id, tenant_id=tenant.id))
        db.flush()
    return tenant


def make_transaction(db: Session, transaction_id: int, owner: Optional[User], tenant: Tenant, amount: int = 100) -> FinancialTransaction:
    transaction = FinancialTransaction(
        id=transaction_id,
        tenant_id=tenant.id,
        created_by=owner.id if owner else None,
        transaction_type="rent",
        amount=amount,
    )
    db.add(transaction)
    db.flush()
    return transaction


def make_villa(db: Session, villa_id: int, owner: Optional[User]) -> Villa:
    villa = Villa(id=villa_id, name=f"Villa {villa_id}", created_by=owner.id if owner else None)
    db.add(villa)
    db.flush()
    return villa


def assign_building(db: Session, user: User, building: Building):
    db.add(BuildingAssigned(user_id=user.id, building_id=building.id))
    db.flush()


def assign_villa(db: Session, user: User, villa: Villa):
    db.add(VillaAssigned(user_id=user.id, villa_id=villa.id))
    db.flush()


def principal_for(db: Session, user: User) -> Principal:
    return PrincipalBuilder.build(AuthenticatedUser(user_id=user.id), db)


def build_estate(db: Session) -> SimpleNamespace:
    """
    admin        holds the admin role
    owner_a      building 8001 (apartment 5001), tenant 7001, transaction 9001,
                 villa 4001, assigned to orphan building 8003 and orphan villa 4003
    owner_b      building 8002 (apartment 5002), tenant 7002, transaction 9002, villa 4002
    owner_c      owner without any data
    staff_a      created by owner_a
    orphans      tenant 7003 lives in 5001 and transaction 9003 belongs to 7001,
                 both without creator
    """

    admin = make_user(db, "admin@estate.test", role_names=["admin"])
    owner_a = make_user(db, "owner.a@estate.test", created_by=admin, role_names=["owner"])
    owner_b = make_user(db, "owner.b@estate.test", created_by=admin, role_names=["owner"])
    owner_c = make_user(db, "owner.c@estate.test", created_by=admin, role_names=["owner"])
    staff_a = make_user(db, "staff.a@estate.test", created_by=owner_a, role_names=["staff"])

    building_a = make_building(db, 8001, owner_a)
    building_b = make_building(db, 8002, owner_b)
    orphan_building = make_building(db, 8003, None)
    assign_building(db, owner_a, orphan_building)

    apartment_a = make_apartment(db, 5001, building_a)
    apartment_b = make_apartment(db, 5002, building_b)
    orphan_apartment = make_apartment(db, 5003, orphan_building)

    tenant_a = make_tenant(db, 7001, owner_a, apartment_a)
    tenant_b = make_tenant(db, 7002, owner_b, apartment_b)
    orphan_tenant = make_tenant(db, 7003, None, apartment_a)

    transaction_a = make_transaction(db, 9001, owner_a, tenant_a)
    transaction_b = make_transaction(db, 9002, owner_b, tenant_b)
    orphan_transaction = make_transaction(db, 9003, None, tenant_a)

    villa_a = make_villa(db, 4001, owner_a)
    villa_b = make_villa(db, 4002, owner_b)
    orphan_villa = make_villa(db, 4003, None)
    assign_villa(db, owner_a, orphan_villa)

    db.commit()

    return SimpleNamespace(
        admin=admin,
        owner_a=owner_a,
        owner_b=owner_b,
        owner_c=owner_c,
        staff_a=staff_a,
        building_a=building_a,
        building_b=building_b,
        orphan_building=orphan_building,
        apartment_a=apartment_a,
        apartment_b=apartment_b,
        orphan_apartment=orphan_apartment,
        tenant_a=tenant_a,
        tenant_b=tenant_b,
        orphan_tenant=orphan_tenant,
        transaction_a=transaction_a,
        transaction_b=transaction_b,
        orphan_transaction=orphan_transaction,
        villa_a=villa_a,
        villa_b=villa_b,
        orphan_villa=orphan_villa,
    )
