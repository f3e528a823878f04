"""Users, roles, permissions, sidebar pages and the ownership-bearing resources

Revision ID: 001_access_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_access_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)


def _created_by() -> sa.Column:
    return sa.Column('created_by', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        _created_by(),
        sa.Column('given_name', sa.String(255)),
        sa.Column('family_name', sa.String(255)),
        sa.Column('email', sa.String(320), unique=True),
        sa.Column('phone_number', sa.String(64)),
        sa.Column('archived_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_user_created_by', 'user', ['created_by'])

    op.create_table(
        'role',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(4096)),
        sa.Column('builtin', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created_by(),
        sa.Column('parent_role_id', sa.Integer(), sa.ForeignKey('role.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('max_sub_roles', sa.Integer(), nullable=True),
        _created_at(),
        sa.UniqueConstraint('name', name='role_name_key'),
    )
    op.create_index('ix_role_created_by', 'role', ['created_by'])

    op.create_table(
        'permission',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('resource', sa.String(255), nullable=False),
        sa.Column('action', sa.String(63), nullable=False),
        sa.Column('description', sa.String(4096)),
    )
    op.create_index('ix_permission_resource', 'permission', ['resource'])

    op.create_table(
        'role_permission',
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('role.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permission.id', ondelete='CASCADE'), primary_key=True),
        _created_at(),
    )

    op.create_table(
        'user_role',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('role.id', ondelete='RESTRICT', onupdate='CASCADE'), primary_key=True),
        _created_at(),
        _created_by(),
    )

    op.create_table(
        'sidebar_page',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('url', sa.String(2048), nullable=False, unique=True),
        sa.Column('icon', sa.String(255)),
        sa.Column('display_order', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('description', sa.String(4096)),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
    )

    op.create_table(
        'page_permission',
        sa.Column('page_id', sa.Integer(), sa.ForeignKey('sidebar_page.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_type', sa.String(63), primary_key=True),
        sa.Column('name', sa.String(255)),
        sa.Column('description', sa.String(4096)),
    )

    op.create_table(
        'role_page_permission',
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('role.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('page_id', sa.Integer(), sa.ForeignKey('sidebar_page.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_type', sa.String(63), primary_key=True),
        sa.Column('is_granted', sa.Boolean(), server_default=sa.text('false'), nullable=False),
    )

    op.create_table(
        'building',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _created_at(),
        _created_by(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(1024)),
    )
    op.create_index('ix_building_created_by', 'building', ['created_by'])

    op.create_table(
        'floor',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('building_id', sa.Integer(), sa.ForeignKey('building.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('number', sa.Integer()),
    )
    op.create_index('ix_floor_building_id', 'floor', ['building_id'])

    op.create_table(
        'apartment',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('floor_id', sa.Integer(), sa.ForeignKey('floor.id', ondelete='CASCADE'), nullable=False),
        sa.Column('number', sa.String(63)),
        sa.Column('rent_price', sa.Numeric(12, 2)),
    )
    op.create_index('ix_apartment_floor_id', 'apartment', ['floor_id'])

    op.create_table(
        'villa',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _created_at(),
        _created_by(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(1024)),
    )
    op.create_index('ix_villa_created_by', 'villa', ['created_by'])

    op.create_table(
        'building_assigned',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('building_id', sa.Integer(), sa.ForeignKey('building.id', ondelete='CASCADE'), primary_key=True),
        _created_at(),
    )
    op.create_index('ix_building_assigned_building_id', 'building_assigned', ['building_id'])

    op.create_table(
        'villa_assigned',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('villa_id', sa.Integer(), sa.ForeignKey('villa.id', ondelete='CASCADE'), primary_key=True),
        _created_at(),
    )
    op.create_index('ix_villa_assigned_villa_id', 'villa_assigned', ['villa_id'])

    op.create_table(
        'tenant',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _created_at(),
        _created_by(),
        sa.Column('given_name', sa.String(255)),
        sa.Column('family_name', sa.String(255)),
        sa.Column('email', sa.String(320)),
        sa.Column('nationality', sa.String(255)),
    )
    op.create_index('ix_tenant_created_by', 'tenant', ['created_by'])

    op.create_table(
        'apartment_assigned',
        sa.Column('apartment_id', sa.Integer(), sa.ForeignKey('apartment.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), primary_key=True),
        _created_at(),
    )
    op.create_index('ix_apartment_assigned_tenant_id', 'apartment_assigned', ['tenant_id'])

    op.create_table(
        'financial_transaction',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _created_at(),
        _created_by(),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='SET NULL'), nullable=True),
        sa.Column('transaction_type', sa.String(63)),
        sa.Column('amount', sa.Numeric(12, 2)),
        sa.Column('description', sa.String(4096)),
    )
    op.create_index('ix_financial_transaction_created_by', 'financial_transaction', ['created_by'])
    op.create_index('ix_financial_transaction_tenant_id', 'financial_transaction', ['tenant_id'])


def downgrade() -> None:
    # Indexes go with their tables
    for table in [
        'financial_transaction',
        'apartment_assigned',
        'tenant',
        'villa_assigned',
        'building_assigned',
        'villa',
        'apartment',
        'floor',
        'building',
        'role_page_permission',
        'page_permission',
        'sidebar_page',
        'user_role',
        'role_permission',
        'permission',
        'role',
        'user',
    ]:
        op.drop_table(table)
