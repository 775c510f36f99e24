"""Create fiber plant and customer location tables.

Revision ID: a4c1e7f2b9d0
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "a4c1e7f2b9d0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    enum_values = {
        "cabletype": ("drop", "adss", "fiber", "trunk"),
        "plantstatus": ("active", "planned", "maintenance"),
        "networkpointtype": ("fat", "closure", "splitter", "olt", "fdt"),
    }
    for name, values in enum_values.items():
        postgresql.ENUM(*values, name=name).create(op.get_bind(), checkfirst=True)

    cable_type_enum = postgresql.ENUM(
        *enum_values["cabletype"], name="cabletype", create_type=False
    )
    plant_status_enum = postgresql.ENUM(
        *enum_values["plantstatus"], name="plantstatus", create_type=False
    )
    point_type_enum = postgresql.ENUM(
        *enum_values["networkpointtype"], name="networkpointtype", create_type=False
    )

    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(120), nullable=False, unique=True),
            sa.Column("full_name", sa.String(200), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("phone", sa.String(40), nullable=True),
            sa.Column("latitude", sa.Float(), nullable=True),
            sa.Column("longitude", sa.Float(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        )

    if "fiber_cables" not in existing_tables:
        op.create_table(
            "fiber_cables",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
            sa.Column("name", sa.String(160), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("coordinates", sa.JSON(), nullable=False),
            sa.Column("cable_type", cable_type_enum, nullable=True),
            sa.Column("length_meters", sa.Float(), nullable=False),
            sa.Column("fiber_count", sa.Integer(), nullable=False),
            sa.Column("core_signals", sa.JSON(), nullable=False),
            sa.Column("status", plant_status_enum, nullable=True),
            sa.Column("color", sa.String(16), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.CheckConstraint("fiber_count > 0", name="ck_fiber_cables_fiber_count_positive"),
        )
        op.create_index("ix_fiber_cables_status", "fiber_cables", ["status"])

    if "network_points" not in existing_tables:
        op.create_table(
            "network_points",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
            sa.Column("name", sa.String(160), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("point_type", point_type_enum, nullable=True),
            sa.Column("latitude", sa.Float(), nullable=False),
            sa.Column("longitude", sa.Float(), nullable=False),
            sa.Column("capacity", sa.Integer(), nullable=False),
            sa.Column("used_ports", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("available_signals", sa.JSON(), nullable=False),
            sa.Column("assigned_customer_ids", sa.JSON(), nullable=False),
            sa.Column("status", plant_status_enum, nullable=True),
            sa.Column("color", sa.String(16), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.CheckConstraint("capacity > 0", name="ck_network_points_capacity_positive"),
            sa.CheckConstraint(
                "used_ports >= 0 AND used_ports <= capacity",
                name="ck_network_points_used_ports_range",
            ),
        )

    if "gis_labels" not in existing_tables:
        op.create_table(
            "gis_labels",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
            sa.Column("name", sa.String(160), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("label_type", sa.String(60), nullable=True),
            sa.Column("latitude", sa.Float(), nullable=False),
            sa.Column("longitude", sa.Float(), nullable=False),
            sa.Column("icon", sa.String(60), nullable=True),
            sa.Column("color", sa.String(16), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        )


def downgrade() -> None:
    op.drop_table("gis_labels")
    op.drop_table("network_points")
    op.drop_index("ix_fiber_cables_status", table_name="fiber_cables")
    op.drop_table("fiber_cables")
    op.drop_table("customers")
    bind = op.get_bind()
    for name in ("networkpointtype", "plantstatus", "cabletype"):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
