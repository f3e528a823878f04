from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from .base import Base


class Building(Base):
    __tablename__ = 'building'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    # NULL marks an orphan: invisible to every non-admin scope
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(1024))

    # Relationships
    created_by_user = relationship('User', foreign_keys=[created_by])
    floors = relationship('Floor', back_populates='building', cascade='all, delete-orphan')
    assignments = relationship('BuildingAssigned', back_populates='building', cascade='all, delete-orphan')


class Floor(Base):
    __tablename__ = 'floor'

    id = Column(Integer, primary_key=True, autoincrement=True)
    building_id = Column(ForeignKey('building.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255))
    number = Column(Integer)

    building = relationship('Building', back_populates='floors')
    apartments = relationship('Apartment', back_populates='floor', cascade='all, delete-orphan')


class Apartment(Base):
    __tablename__ = 'apartment'

    id = Column(Integer, primary_key=True, autoincrement=True)
    floor_id = Column(ForeignKey('floor.id', ondelete='CASCADE'), nullable=False, index=True)
    number = Column(String(63))
    rent_price = Column(Numeric(12, 2))

    floor = relationship('Floor', back_populates='apartments')
    assignments = relationship('ApartmentAssigned', back_populates='apartment', cascade='all, delete-orphan')


class ApartmentAssigned(Base):
    """Current apartment of a tenant."""
    __tablename__ = 'apartment_assigned'

    apartment_id = Column(ForeignKey('apartment.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    tenant_id = Column(ForeignKey('tenant.id', ondelete='CASCADE'), primary_key=True, nullable=False, index=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())

    apartment = relationship('Apartment', back_populates='assignments')
    tenant = relationship('Tenant', back_populates='apartment_assignments')


class Villa(Base):
    __tablename__ = 'villa'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(1024))

    created_by_user = relationship('User', foreign_keys=[created_by])
    assignments = relationship('VillaAssigned', back_populates='villa', cascade='all, delete-orphan')


class BuildingAssigned(Base):
    """Legacy per-user building assignment, honored alongside ``created_by``."""
    __tablename__ = 'building_assigned'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    building_id = Column(ForeignKey('building.id', ondelete='CASCADE'), primary_key=True, nullable=False, index=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())

    building = relationship('Building', back_populates='assignments')
    user = relationship('User')


class VillaAssigned(Base):
    """Legacy per-user villa assignment, honored alongside ``created_by``."""
    __tablename__ = 'villa_assigned'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    villa_id = Column(ForeignKey('villa.id', ondelete='CASCADE'), primary_key=True, nullable=False, index=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())

    villa = relationship('Villa', back_populates='assignments')
    user = relationship('User')
