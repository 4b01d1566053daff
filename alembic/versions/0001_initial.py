"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("matricule", sa.String(64), nullable=False),
        sa.Column("faculty_id", sa.String(64), nullable=False),
        sa.Column("department_id", sa.String(64), nullable=True),
        sa.Column(
            "level",
            sa.Enum("LEVEL_200", "LEVEL_300", "LEVEL_400", "LEVEL_500", name="academiclevel"),
            nullable=True,
        ),
        sa.Column(
            "subscription_status",
            sa.Enum("trial", "active", "expired", "past_due", "canceled", name="subscriptionstatus"),
            nullable=False,
        ),
        sa.Column("trial_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notification_token", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    # Deliberately non-unique; the matricule guard repairs duplicates after insert.
    op.create_index("ix_users_faculty_matricule", "users", ["faculty_id", "matricule"], unique=False)
    op.create_index("ix_users_faculty_level", "users", ["faculty_id", "level"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(128), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("tx_type", sa.Enum("SUBSCRIPTION", name="transactiontype"), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("provider_payment_id", sa.String(128), nullable=True),
        sa.Column(
            "status",
            sa.Enum("PENDING", "SUCCESSFUL", "FAILED", name="transactionstatus"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_transactions_id", "transactions", ["id"], unique=False)
    op.create_index("ix_transactions_provider_payment_id", "transactions", ["provider_payment_id"], unique=True)
    op.create_index("ix_transactions_user_status", "transactions", ["user_id", "status"], unique=False)

    op.create_table(
        "admin_logs",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("actor", sa.String(255), nullable=True),
        sa.Column("target", sa.String(255), nullable=True),
        sa.Column("recipient_count", sa.Integer, nullable=True),
        sa.Column("detail", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_admin_logs_id", "admin_logs", ["id"], unique=False)
    op.create_index("ix_admin_logs_action", "admin_logs", ["action"], unique=False)


def downgrade():
    op.drop_table("admin_logs")
    op.drop_table("transactions")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS transactionstatus")
    op.execute("DROP TYPE IF EXISTS transactiontype")
    op.execute("DROP TYPE IF EXISTS subscriptionstatus")
    op.execute("DROP TYPE IF EXISTS academiclevel")
