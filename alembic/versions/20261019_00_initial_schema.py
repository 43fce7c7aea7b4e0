"""create organizations, plan configs and clinic resources

Revision ID: 20261019_00
Revises: 
Create Date: 2026-10-19 10:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_00"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("subscription_plan", sa.String(length=50), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)
    op.create_index("ix_organizations_is_active", "organizations", ["is_active"], unique=False)
    op.create_index("ix_organizations_created_at", "organizations", ["created_at"], unique=False)

    op.create_table(
        "subscription_plan_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("plan_id", sa.String(length=50), nullable=False),
        sa.Column("plan_name", sa.String(length=120), nullable=False),
        sa.Column("plan_description", sa.Text(), nullable=True),
        sa.Column("price_monthly", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_annual", sa.Numeric(10, 2), nullable=True),
        sa.Column("atendimento_inteligente", sa.Boolean(), nullable=True),
        sa.Column("agendamento_automatico", sa.Boolean(), nullable=True),
        sa.Column("lembretes_automaticos", sa.Boolean(), nullable=True),
        sa.Column("confirmacao_email", sa.Boolean(), nullable=True),
        sa.Column("base_conhecimento", sa.Boolean(), nullable=True),
        sa.Column("relatorios_avancados", sa.Boolean(), nullable=True),
        sa.Column("integracao_whatsapp", sa.Boolean(), nullable=True),
        sa.Column("multi_usuarios", sa.Boolean(), nullable=True),
        sa.Column("personalizacao_agente", sa.Boolean(), nullable=True),
        sa.Column("analytics", sa.Boolean(), nullable=True),
        sa.Column("max_agendamentos_mes", sa.Integer(), nullable=True),
        sa.Column("max_mensagens_whatsapp_mes", sa.Integer(), nullable=True),
        sa.Column("max_usuarios", sa.Integer(), nullable=True),
        sa.Column("max_pacientes", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_subscription_plan_configs_plan_id", "subscription_plan_configs", ["plan_id"], unique=True)
    op.create_index(
        "ix_subscription_plan_configs_created_at", "subscription_plan_configs", ["created_at"], unique=False
    )

    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_super_admin", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_organization_id", "profiles", ["organization_id"], unique=False)

    op.create_table(
        "patients",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=40), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_organization_id", "patients", ["organization_id"], unique=False)
    op.create_index("ix_patients_created_at", "patients", ["created_at"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("patient_name", sa.String(length=255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.Time(), nullable=False),
        sa.Column("type", sa.String(length=80), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_appointments_organization_id", "appointments", ["organization_id"], unique=False)
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"], unique=False)
    op.create_index("ix_appointments_created_at", "appointments", ["created_at"], unique=False)

    op.alter_column("organizations", "is_active", server_default=None)


def downgrade() -> None:
    op.drop_index("ix_appointments_created_at", table_name="appointments")
    op.drop_index("ix_appointments_patient_id", table_name="appointments")
    op.drop_index("ix_appointments_organization_id", table_name="appointments")
    op.drop_table("appointments")

    op.drop_index("ix_patients_created_at", table_name="patients")
    op.drop_index("ix_patients_organization_id", table_name="patients")
    op.drop_table("patients")

    op.drop_index("ix_profiles_organization_id", table_name="profiles")
    op.drop_table("profiles")

    op.drop_index("ix_subscription_plan_configs_created_at", table_name="subscription_plan_configs")
    op.drop_index("ix_subscription_plan_configs_plan_id", table_name="subscription_plan_configs")
    op.drop_table("subscription_plan_configs")

    op.drop_index("ix_organizations_created_at", table_name="organizations")
    op.drop_index("ix_organizations_is_active", table_name="organizations")
    op.drop_index("ix_organizations_slug", table_name="organizations")
    op.drop_table("organizations")
