from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, text
from sqlalchemy.orm import relationship

from .base import Base


PAGE_PERMISSION_TYPES = ("view", "create", "update", "delete", "manage")


class SidebarPage(Base):
    __tablename__ = 'sidebar_page'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False, unique=True)
    icon = Column(String(255))
    display_order = Column(Integer, nullable=False, server_default=text("0"), default=0)
    description = Column(String(4096))
    is_active = Column(Boolean, nullable=False, server_default=text("true"), default=True)

    page_permissions = relationship('PagePermission', back_populates='page', cascade='all, delete-orphan')


class PagePermission(Base):
    __tablename__ = 'page_permission'

    page_id = Column(ForeignKey('sidebar_page.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    permission_type = Column(String(63), primary_key=True, nullable=False)
    name = Column(String(255))
    description = Column(String(4096))

    page = relationship('SidebarPage', back_populates='page_permissions')


class RolePagePermission(Base):
    __tablename__ = 'role_page_permission'

    role_id = Column(ForeignKey('role.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    page_id = Column(ForeignKey('sidebar_page.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    permission_type = Column(String(63), primary_key=True, nullable=False)
    is_granted = Column(Boolean, nullable=False, server_default=text("false"), default=False)

    role = relationship('Role', back_populates='role_page_permissions')
    page = relationship('SidebarPage')
