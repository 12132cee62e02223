"""reminders

Revision ID: 0002_reminders
Revises: 0001_initial
Create Date: 2026-10-16 15:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_reminders"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reminder",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("reminder_days", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "PAID", "DISMISSED", "OVERDUE", name="reminder_status"),
            nullable=False,
        ),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column(
            "transaction_id", sa.Integer(), sa.ForeignKey("transaction.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "credit_card_id", sa.Integer(), sa.ForeignKey("creditcard.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "recurrence_id", sa.Integer(), sa.ForeignKey("recurrence.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("reminder_days BETWEEN 0 AND 30", name="ck_reminder_days"),
    )
    op.create_index("ix_reminder_user_status", "reminder", ["user_id", "status"], unique=False)
    op.create_index("ix_reminder_user_due", "reminder", ["user_id", "due_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_reminder_user_due", table_name="reminder")
    op.drop_index("ix_reminder_user_status", table_name="reminder")
    op.drop_table("reminder")
