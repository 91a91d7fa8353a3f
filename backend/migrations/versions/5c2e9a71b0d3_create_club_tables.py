"""create pricing, menu, table and bill tables

Revision ID: 5c2e9a71b0d3
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a71b0d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'base_rate' not in existing_tables:
        op.create_table(
            'base_rate',
            sa.Column('game_type', sa.String(length=16), primary_key=True),
            sa.Column('rate', sa.Integer(), nullable=False),
        )
    if 'time_slot' not in existing_tables:
        op.create_table(
            'time_slot',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('start_hour', sa.Integer(), nullable=False),
            sa.Column('end_hour', sa.Integer(), nullable=False),
            sa.Column('multiplier', sa.Float(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
        )
    if 'menu_item' not in existing_tables:
        op.create_table(
            'menu_item',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('category', sa.String(length=16), nullable=False),
        )
    if 'billiard_table' not in existing_tables:
        op.create_table(
            'billiard_table',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('game_type', sa.String(length=16), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('start_time', sa.BigInteger(), nullable=True),
            sa.Column('camera_url', sa.String(length=256), nullable=True),
            sa.Column('camera_status', sa.String(length=16), nullable=True),
            sa.Column('password_hash', sa.String(length=128), nullable=True),
        )
    if 'table_order' not in existing_tables:
        op.create_table(
            'table_order',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('table_id', sa.Integer(), sa.ForeignKey('billiard_table.id'), nullable=False),
            sa.Column('menu_item_id', sa.String(length=32), nullable=False),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
        )
    if 'bill' not in existing_tables:
        op.create_table(
            'bill',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('table_id', sa.Integer(), nullable=False),
            sa.Column('table_name', sa.String(length=64), nullable=False),
            sa.Column('game_type', sa.String(length=16), nullable=False),
            sa.Column('start_time', sa.BigInteger(), nullable=False),
            sa.Column('end_time', sa.BigInteger(), nullable=False),
            sa.Column('duration_minutes', sa.Integer(), nullable=False),
            sa.Column('hourly_rate', sa.Float(), nullable=False),
            sa.Column('session_cost', sa.Integer(), nullable=False),
            sa.Column('service_total', sa.Integer(), nullable=False),
            sa.Column('discount_percent', sa.Float(), nullable=False),
            sa.Column('total_amount', sa.Float(), nullable=False),
            sa.Column('items', sa.Text(), nullable=True),
        )
        op.create_index('ix_bill_table_id', 'bill', ['table_id'])


def downgrade():
    op.drop_index('ix_bill_table_id', table_name='bill')
    op.drop_table('bill')
    op.drop_table('table_order')
    op.drop_table('billiard_table')
    op.drop_table('menu_item')
    op.drop_table('time_slot')
    op.drop_table('base_rate')
