"""initial registries: hospitals, devices, technicians, qualifications, service orders, history

Revision ID: 0001_initial_registries
Revises:
Create Date: 2026-10-18 10:12:40.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_registries'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create registry tables, the id counters and the audit trail."""
    # Check if tables already exist (idempotent)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "registry_counters" not in existing_tables:
        op.create_table(
            "registry_counters",
            sa.Column("name", sa.String(64), primary_key=True),
            sa.Column("last_id", sa.Integer(), nullable=False, server_default="0"),
        )

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_identity", sa.String(255), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
        )
        op.create_index("idx_audit_events_entity", "audit_events", ["entity_type", "entity_id"])

    if "hospitals" not in existing_tables:
        op.create_table(
            "hospitals",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("location", sa.String(255), nullable=False),
            sa.Column("contact", sa.String(255), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "devices" not in existing_tables:
        op.create_table(
            "devices",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("model", sa.String(255), nullable=False),
            sa.Column("serial_number", sa.String(128), nullable=False),
            sa.Column("manufacturer", sa.String(255), nullable=False),
            sa.Column("purchase_date", sa.BigInteger(), nullable=False),
            sa.Column("warranty_expiry", sa.BigInteger(), nullable=False),
            sa.Column("hospital_id", sa.Integer(), sa.ForeignKey("hospitals.id", ondelete="RESTRICT"), nullable=False),
            sa.Column("status", sa.Text(), nullable=False, server_default="active"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_devices_hospital", "devices", ["hospital_id"])
        op.create_index("idx_devices_status", "devices", ["status"])

    if "technicians" not in existing_tables:
        op.create_table(
            "technicians",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("contact", sa.String(255), nullable=False),
            sa.Column("certification_date", sa.BigInteger(), nullable=False),
            sa.Column("certification_expiry", sa.BigInteger(), nullable=False),
            sa.Column("status", sa.Text(), nullable=False, server_default="active"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_technicians_status", "technicians", ["status"])

    if "qualifications" not in existing_tables:
        op.create_table(
            "qualifications",
            sa.Column("technician_id", sa.Integer(), sa.ForeignKey("technicians.id", ondelete="RESTRICT"), primary_key=True),
            sa.Column("device_type", sa.Text(), primary_key=True),
            sa.Column("certification_level", sa.String(64), nullable=False),
            sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "service_orders" not in existing_tables:
        op.create_table(
            "service_orders",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("device_id", sa.Integer(), nullable=False),
            sa.Column("technician_id", sa.Integer(), nullable=False),
            sa.Column("scheduled_date", sa.BigInteger(), nullable=False),
            sa.Column("service_type", sa.String(128), nullable=False),
            sa.Column("notes", sa.Text(), nullable=False, server_default=""),
            sa.Column("status", sa.Text(), nullable=False, server_default="scheduled"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_service_orders_device", "service_orders", ["device_id"])
        op.create_index("idx_service_orders_technician", "service_orders", ["technician_id"])
        op.create_index("idx_service_orders_status", "service_orders", ["status"])

    if "service_history" not in existing_tables:
        op.create_table(
            "service_history",
            sa.Column("device_id", sa.Integer(), primary_key=True),
            sa.Column("service_id", sa.Integer(), primary_key=True),
            sa.Column("completion_date", sa.BigInteger(), nullable=False),
            sa.Column("findings", sa.Text(), nullable=False, server_default=""),
            sa.Column("parts_replaced", sa.JSON(), nullable=False),
            sa.Column("next_service_date", sa.BigInteger(), nullable=False),
        )


def downgrade() -> None:
    """Drop all registry tables."""
    op.drop_table("service_history")
    op.drop_index("idx_service_orders_status", table_name="service_orders")
    op.drop_index("idx_service_orders_technician", table_name="service_orders")
    op.drop_index("idx_service_orders_device", table_name="service_orders")
    op.drop_table("service_orders")
    op.drop_table("qualifications")
    op.drop_index("idx_technicians_status", table_name="technicians")
    op.drop_table("technicians")
    op.drop_index("idx_devices_status", table_name="devices")
    op.drop_index("idx_devices_hospital", table_name="devices")
    op.drop_table("devices")
    op.drop_table("hospitals")
    op.drop_index("idx_audit_events_entity", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_table("registry_counters")
