from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func, text
)
from sqlalchemy.orm import relationship

from .base import Base


class Role(Base):
    __tablename__ = 'role'
    __table_args__ = (
        UniqueConstraint('name', name='role_name_key'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(String(4096))
    # System roles are seeded and immutable
    builtin = Column(Boolean, nullable=False, server_default=text("false"), default=False)
    # Non-null only for custom roles
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    parent_role_id = Column(ForeignKey('role.id', ondelete='RESTRICT'), nullable=True)
    max_sub_roles = Column(Integer, nullable=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())

    # Relationships
    role_permissions = relationship('RolePermission', back_populates='role', cascade='all, delete-orphan')
    role_page_permissions = relationship('RolePagePermission', back_populates='role', cascade='all, delete-orphan')
    user_roles = relationship('UserRole', back_populates='role')
    parent_role = relationship('Role', remote_side=[id])
    created_by_user = relationship('User', foreign_keys=[created_by])

    @property
    def is_custom(self) -> bool:
        return self.created_by is not None and not self.builtin

    def __repr__(self) -> str:
        return f"<Role {self.id} {self.name}>"


class Permission(Base):
    __tablename__ = 'permission'

    id = Column(Integer, primary_key=True, autoincrement=True)
    # "<resource>.<action>"
    name = Column(String(255), nullable=False, unique=True)
    resource = Column(String(255), nullable=False, index=True)
    action = Column(String(63), nullable=False)
    description = Column(String(4096))

    role_permissions = relationship('RolePermission', back_populates='permission')


class RolePermission(Base):
    __tablename__ = 'role_permission'

    role_id = Column(ForeignKey('role.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    permission_id = Column(ForeignKey('permission.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())

    role = relationship('Role', back_populates='role_permissions')
    permission = relationship('Permission', back_populates='role_permissions')


class UserRole(Base):
    __tablename__ = 'user_role'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    role_id = Column(ForeignKey('role.id', ondelete='RESTRICT', onupdate='CASCADE'), primary_key=True, nullable=False)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True)

    role = relationship('Role', back_populates='user_roles')
    user = relationship('User', foreign_keys=[user_id], back_populates='user_roles')
