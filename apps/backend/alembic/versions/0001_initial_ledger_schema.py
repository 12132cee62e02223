"""initial ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.Numeric(15, 2)
TXN_TYPE = sa.Enum("INCOME", "EXPENSE", name="txn_type")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=100), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column(
            "type",
            sa.Enum("CHECKING", "SAVINGS", "CASH", "INVESTMENT", name="account_type"),
            nullable=False,
        ),
        sa.Column("initial_balance", MONEY, nullable=False),
        sa.Column("color", sa.String(length=9), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_account_user", "account", ["user_id"], unique=False)

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("kind", sa.Enum("INCOME", "EXPENSE", name="category_kind"), nullable=False),
        sa.Column("color", sa.String(length=9), nullable=True),
        sa.Column("icon", sa.String(length=50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "creditcard",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("account.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("closing_day", sa.Integer(), nullable=False),
        sa.Column("due_day", sa.Integer(), nullable=False),
        sa.Column("credit_limit", MONEY, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("closing_day BETWEEN 1 AND 31", name="ck_card_closing_day"),
        sa.CheckConstraint("due_day BETWEEN 1 AND 31", name="ck_card_due_day"),
    )

    op.create_table(
        "recurrence",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.Enum("RECURRING", "INSTALLMENT", name="recurrence_kind"), nullable=False),
        sa.Column("type", TXN_TYPE, nullable=False),
        sa.Column(
            "interval",
            sa.Enum("DAY", "WEEK", "MONTH", "YEAR", name="recurrence_interval"),
            nullable=False,
        ),
        sa.Column("interval_count", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("total_installments", sa.Integer(), nullable=True),
        sa.Column("amount", MONEY, nullable=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("account.id", ondelete="SET NULL"), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id", ondelete="SET NULL"), nullable=True),
        sa.Column("credit_card_id", sa.Integer(), sa.ForeignKey("creditcard.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("next_due_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("interval_count >= 1", name="ck_recurrence_interval_count"),
    )
    op.create_index("ix_recurrence_user_active", "recurrence", ["user_id", "is_active"], unique=False)

    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", TXN_TYPE, nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("account.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id", ondelete="CASCADE"), nullable=False),
        sa.Column("credit_card_id", sa.Integer(), sa.ForeignKey("creditcard.id", ondelete="SET NULL"), nullable=True),
        sa.Column("installment_number", sa.Integer(), nullable=True),
        sa.Column("total_installments", sa.Integer(), nullable=True),
        sa.Column("recurrence_id", sa.Integer(), sa.ForeignKey("recurrence.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_recurring_charge", sa.Boolean(), nullable=False),
        sa.Column("paid", sa.Boolean(), nullable=False),
        sa.Column("paid_at", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        sa.CheckConstraint(
            "installment_number IS NULL OR total_installments IS NULL OR installment_number <= total_installments",
            name="ck_transaction_installment_range",
        ),
    )
    op.create_index("ix_transaction_user_date", "transaction", ["user_id", "date"], unique=False)
    op.create_index("ix_transaction_account", "transaction", ["account_id"], unique=False)
    op.create_index("ix_transaction_card", "transaction", ["credit_card_id"], unique=False)
    op.create_index("ix_transaction_recurrence", "transaction", ["recurrence_id"], unique=False)

    op.create_table(
        "transfer",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("from_account_id", sa.Integer(), sa.ForeignKey("account.id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_account_id", sa.Integer(), sa.ForeignKey("account.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("from_account_id != to_account_id", name="ck_transfer_distinct_accounts"),
        sa.CheckConstraint("amount > 0", name="ck_transfer_amount_positive"),
    )
    op.create_index("ix_transfer_user_date", "transfer", ["user_id", "date"], unique=False)

    op.create_table(
        "budget",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id", ondelete="CASCADE"), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "category_id", "month", "year", name="uq_budget_period"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_budget_month"),
    )

    op.create_table(
        "goal",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("target_amount", MONEY, nullable=False),
        sa.Column("current_amount", MONEY, nullable=False),
        sa.Column("deadline", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "COMPLETED", "CANCELLED", name="goal_status"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.Date(), nullable=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("account.id", ondelete="SET NULL"), nullable=True),
        sa.Column("color", sa.String(length=9), nullable=True),
        sa.Column("icon", sa.String(length=50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "goalcontribution",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("goal_id", sa.Integer(), sa.ForeignKey("goal.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("goalcontribution")
    op.drop_table("goal")
    op.drop_table("budget")
    op.drop_index("ix_transfer_user_date", table_name="transfer")
    op.drop_table("transfer")
    op.drop_index("ix_transaction_recurrence", table_name="transaction")
    op.drop_index("ix_transaction_card", table_name="transaction")
    op.drop_index("ix_transaction_account", table_name="transaction")
    op.drop_index("ix_transaction_user_date", table_name="transaction")
    op.drop_table("transaction")
    op.drop_index("ix_recurrence_user_active", table_name="recurrence")
    op.drop_table("recurrence")
    op.drop_table("creditcard")
    op.drop_table("category")
    op.drop_index("ix_account_user", table_name="account")
    op.drop_table("account")
    op.drop_table("user")
