"""Add telemetry history and live-status tables

Revision ID: 20261019_telemetry
Revises:
Create Date: 2026-10-19

Tables:
- meter_telemetry_history: append-only AC meter readings
- vehicle_telemetry_history: append-only vehicle DC readings
- meter_live_status: latest reading per meter
- vehicle_live_status: latest reading per vehicle
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '20261019_telemetry'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === METER HISTORY ===
    op.create_table('meter_telemetry_history',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('meter_id', sa.String(100), nullable=False),
        sa.Column('kwh_consumed_ac', sa.Float(), nullable=False),
        sa.Column('voltage', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, comment='Device-reported event time (UTC)'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_meter_telemetry_history')
    )
    op.create_index('ix_meter_history_meter_ts', 'meter_telemetry_history', ['meter_id', 'timestamp'], unique=False)

    # === VEHICLE HISTORY ===
    op.create_table('vehicle_telemetry_history',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('vehicle_id', sa.String(100), nullable=False),
        sa.Column('soc', sa.Integer(), nullable=False, comment='State of charge, percent'),
        sa.Column('kwh_delivered_dc', sa.Float(), nullable=False),
        sa.Column('battery_temp', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, comment='Device-reported event time (UTC)'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_vehicle_telemetry_history')
    )
    op.create_index('ix_vehicle_history_vehicle_ts', 'vehicle_telemetry_history', ['vehicle_id', 'timestamp'], unique=False)

    # === LIVE STATUS ===
    op.create_table('meter_live_status',
        sa.Column('meter_id', sa.String(100), nullable=False),
        sa.Column('last_kwh_consumed_ac', sa.Float(), nullable=False),
        sa.Column('last_voltage', sa.Float(), nullable=False),
        sa.Column('last_reading_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('meter_id', name='pk_meter_live_status')
    )
    op.create_table('vehicle_live_status',
        sa.Column('vehicle_id', sa.String(100), nullable=False),
        sa.Column('soc', sa.Integer(), nullable=False),
        sa.Column('last_kwh_delivered_dc', sa.Float(), nullable=False),
        sa.Column('last_battery_temp', sa.Float(), nullable=False),
        sa.Column('last_reading_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('vehicle_id', name='pk_vehicle_live_status')
    )


def downgrade() -> None:
    op.drop_table('vehicle_live_status')
    op.drop_table('meter_live_status')
    op.drop_index('ix_vehicle_history_vehicle_ts', table_name='vehicle_telemetry_history')
    op.drop_table('vehicle_telemetry_history')
    op.drop_index('ix_meter_history_meter_ts', table_name='meter_telemetry_history')
    op.drop_table('meter_telemetry_history')
