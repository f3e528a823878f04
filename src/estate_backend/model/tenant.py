from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from .base import Base


class Tenant(Base):
    __tablename__ = 'tenant'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    given_name = Column(String(255))
    family_name = Column(String(255))
    email = Column(String(320))
    nationality = Column(String(255))

    created_by_user = relationship('User', foreign_keys=[created_by])
    apartment_assignments = relationship('ApartmentAssigned', back_populates='tenant', cascade='all, delete-orphan')
    financial_transactions = relationship('FinancialTransaction', back_populates='tenant')


class FinancialTransaction(Base):
    __tablename__ = 'financial_transaction'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    tenant_id = Column(ForeignKey('tenant.id', ondelete='SET NULL'), nullable=True, index=True)
    transaction_type = Column(String(63))
    amount = Column(Numeric(12, 2))
    description = Column(String(4096))

    created_by_user = relationship('User', foreign_keys=[created_by])
    tenant = relationship('Tenant', back_populates='financial_transactions')
