from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Index,
    Boolean,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .core.clock import now_local_naive
from .core.database import Base


MONEY = Numeric(15, 2)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class User(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(100))


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CASH = "CASH"
    INVESTMENT = "INVESTMENT"


class Account(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[AccountType] = mapped_column(SAEnum(AccountType, name="account_type"), nullable=False)
    initial_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    color: Mapped[str | None] = mapped_column(String(9))

    __table_args__ = (
        Index("ix_account_user", "user_id"),
    )


class CategoryKind(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[CategoryKind] = mapped_column(SAEnum(CategoryKind, name="category_kind"), nullable=False)
    color: Mapped[str | None] = mapped_column(String(9))
    icon: Mapped[str | None] = mapped_column(String(50))


class CreditCard(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    account_id: Mapped[int] = mapped_column(ForeignKey("account.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # day-of-month values, not validated against any particular month length
    closing_day: Mapped[int] = mapped_column(Integer, nullable=False)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False)
    credit_limit: Mapped[Decimal | None] = mapped_column(MONEY)

    account: Mapped["Account"] = relationship("Account")

    __table_args__ = (
        CheckConstraint("closing_day BETWEEN 1 AND 31", name="ck_card_closing_day"),
        CheckConstraint("due_day BETWEEN 1 AND 31", name="ck_card_due_day"),
    )


class TxnType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Transaction(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[TxnType] = mapped_column(SAEnum(TxnType, name="txn_type"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    # ledger-effective date: the invoice due date for card charges
    date: Mapped[date] = mapped_column(Date, nullable=False)
    purchase_date: Mapped[date | None] = mapped_column(Date)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    account_id: Mapped[int] = mapped_column(ForeignKey("account.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("category.id", ondelete="CASCADE"), nullable=False)
    credit_card_id: Mapped[int | None] = mapped_column(ForeignKey("creditcard.id", ondelete="SET NULL"))
    installment_number: Mapped[int | None] = mapped_column(Integer)
    total_installments: Mapped[int | None] = mapped_column(Integer)
    recurrence_id: Mapped[int | None] = mapped_column(ForeignKey("recurrence.id", ondelete="SET NULL"))
    is_recurring_charge: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[date | None] = mapped_column(Date)

    account: Mapped["Account"] = relationship("Account")
    category: Mapped["Category"] = relationship("Category")
    credit_card: Mapped["CreditCard"] = relationship("CreditCard")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        CheckConstraint(
            "installment_number IS NULL OR total_installments IS NULL OR installment_number <= total_installments",
            name="ck_transaction_installment_range",
        ),
        Index("ix_transaction_user_date", "user_id", "date"),
        Index("ix_transaction_account", "account_id"),
        Index("ix_transaction_card", "credit_card_id"),
        Index("ix_transaction_recurrence", "recurrence_id"),
    )


class Transfer(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    from_account_id: Mapped[int] = mapped_column(ForeignKey("account.id", ondelete="CASCADE"), nullable=False)
    to_account_id: Mapped[int] = mapped_column(ForeignKey("account.id", ondelete="CASCADE"), nullable=False)

    from_account: Mapped["Account"] = relationship("Account", foreign_keys=[from_account_id])
    to_account: Mapped["Account"] = relationship("Account", foreign_keys=[to_account_id])

    __table_args__ = (
        CheckConstraint("from_account_id != to_account_id", name="ck_transfer_distinct_accounts"),
        CheckConstraint("amount > 0", name="ck_transfer_amount_positive"),
        Index("ix_transfer_user_date", "user_id", "date"),
    )


class RecurrenceKind(str, Enum):
    RECURRING = "RECURRING"
    INSTALLMENT = "INSTALLMENT"


class RecurrenceInterval(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


class Recurrence(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    kind: Mapped[RecurrenceKind] = mapped_column(SAEnum(RecurrenceKind, name="recurrence_kind"), nullable=False)
    type: Mapped[TxnType] = mapped_column(SAEnum(TxnType, name="txn_type"), nullable=False)
    interval: Mapped[RecurrenceInterval] = mapped_column(
        SAEnum(RecurrenceInterval, name="recurrence_interval"), nullable=False
    )
    interval_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    total_installments: Mapped[int | None] = mapped_column(Integer)
    amount: Mapped[Decimal | None] = mapped_column(MONEY)
    description: Mapped[str | None] = mapped_column(String(255))
    account_id: Mapped[int | None] = mapped_column(ForeignKey("account.id", ondelete="SET NULL"))
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id", ondelete="SET NULL"))
    credit_card_id: Mapped[int | None] = mapped_column(ForeignKey("creditcard.id", ondelete="SET NULL"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # first occurrence not yet materialized; NULL for installment groups
    next_due_date: Mapped[date | None] = mapped_column(Date)

    __table_args__ = (
        CheckConstraint("interval_count >= 1", name="ck_recurrence_interval_count"),
        Index("ix_recurrence_user_active", "user_id", "is_active"),
    )


class Budget(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("category.id", ondelete="CASCADE"), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    category: Mapped["Category"] = relationship("Category")

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "month", "year", name="uq_budget_period"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_budget_month"),
    )


class GoalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Goal(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    # running total of contributions, kept in step by GoalService
    current_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    deadline: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[GoalStatus] = mapped_column(
        SAEnum(GoalStatus, name="goal_status"), nullable=False, default=GoalStatus.ACTIVE
    )
    completed_at: Mapped[date | None] = mapped_column(Date)
    account_id: Mapped[int | None] = mapped_column(ForeignKey("account.id", ondelete="SET NULL"))
    color: Mapped[str | None] = mapped_column(String(9))
    icon: Mapped[str | None] = mapped_column(String(50))

    contributions: Mapped[list["GoalContribution"]] = relationship(
        "GoalContribution",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="GoalContribution.date.desc()",
    )


class GoalContribution(Base):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    goal_id: Mapped[int] = mapped_column(ForeignKey("goal.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)

    goal: Mapped["Goal"] = relationship("Goal", back_populates="contributions")


class ReminderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    DISMISSED = "DISMISSED"
    OVERDUE = "OVERDUE"


class Reminder(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    # how many days ahead of due_date the reminder should surface
    reminder_days: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    status: Mapped[ReminderStatus] = mapped_column(
        SAEnum(ReminderStatus, name="reminder_status"), nullable=False, default=ReminderStatus.PENDING
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    transaction_id: Mapped[int | None] = mapped_column(ForeignKey("transaction.id", ondelete="SET NULL"))
    credit_card_id: Mapped[int | None] = mapped_column(ForeignKey("creditcard.id", ondelete="SET NULL"))
    recurrence_id: Mapped[int | None] = mapped_column(ForeignKey("recurrence.id", ondelete="SET NULL"))

    credit_card: Mapped["CreditCard"] = relationship("CreditCard")

    __table_args__ = (
        Index("ix_reminder_user_status", "user_id", "status"),
        Index("ix_reminder_user_due", "user_id", "due_date"),
        CheckConstraint("reminder_days BETWEEN 0 AND 30", name="ck_reminder_days"),
    )
