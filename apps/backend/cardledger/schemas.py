from __future__ import annotations

import re
from datetime import date, datetime
import datetime as dt
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from .models import (
    AccountType,
    CategoryKind,
    GoalStatus,
    RecurrenceInterval,
    RecurrenceKind,
    ReminderStatus,
    TxnType,
)


Amount = Annotated[Decimal, Field(gt=0, max_digits=15, decimal_places=2)]
SignedAmount = Annotated[Decimal, Field(max_digits=15, decimal_places=2)]
DayOfMonth = Annotated[int, Field(ge=1, le=31)]


def _normalize_color(v: str | None):
    if v is None or v == "":
        return None
    if not re.match(r"^#[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?$", v):
        raise ValueError("color must be hex format like #RRGGBB or #RRGGBBAA")
    return v.lower()


# ---- Accounts -------------------------------------------------------------


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: AccountType
    initial_balance: SignedAmount = Decimal("0")
    color: Optional[str] = Field(default=None, max_length=9)

    @field_validator("color")
    def validate_color(cls, v: str | None):
        return _normalize_color(v)


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    initial_balance: Optional[SignedAmount] = None
    color: Optional[str] = Field(default=None, max_length=9)

    @field_validator("color")
    def validate_color(cls, v: str | None):
        return _normalize_color(v)


class AccountOut(BaseModel):
    id: int
    user_id: int
    name: str
    type: AccountType
    initial_balance: Decimal
    color: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountBalanceOut(AccountOut):
    balance: Decimal
    as_of: date


class BalanceOut(BaseModel):
    account_id: int
    balance: Decimal
    as_of: date


# ---- Categories -----------------------------------------------------------


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    kind: CategoryKind
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("color")
    def validate_color(cls, v: str | None):
        return _normalize_color(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    kind: Optional[CategoryKind] = None
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("color")
    def validate_color(cls, v: str | None):
        return _normalize_color(v)


class CategoryOut(BaseModel):
    id: int
    user_id: int
    name: str
    kind: CategoryKind
    color: Optional[str]
    icon: Optional[str]

    model_config = ConfigDict(from_attributes=True)


# ---- Credit cards ---------------------------------------------------------


class CreditCardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    account_id: int
    closing_day: DayOfMonth
    due_day: DayOfMonth
    credit_limit: Optional[Amount] = None


class CreditCardUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    account_id: Optional[int] = None
    closing_day: Optional[DayOfMonth] = None
    due_day: Optional[DayOfMonth] = None
    credit_limit: Optional[Amount] = None


class CreditCardOut(BaseModel):
    id: int
    user_id: int
    account_id: int
    name: str
    closing_day: int
    due_day: int
    credit_limit: Optional[Decimal]
    used_amount: Optional[Decimal] = None
    available_amount: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CardUsageOut(BaseModel):
    credit_card_id: int
    used_amount: Decimal
    credit_limit: Optional[Decimal]
    available_amount: Optional[Decimal]
    current_invoice_date: date


# ---- Transactions ---------------------------------------------------------


class TransactionCreate(BaseModel):
    type: TxnType
    amount: Amount
    date: date
    purchase_date: Optional[date] = None
    description: str = Field(min_length=1, max_length=255)
    notes: Optional[str] = None
    account_id: int
    category_id: int
    credit_card_id: Optional[int] = None
    installment_number: Optional[int] = Field(default=None, ge=1)
    total_installments: Optional[int] = Field(default=None, ge=1)
    is_recurring_charge: bool = False


class TransactionUpdate(BaseModel):
    type: Optional[TxnType] = None
    amount: Optional[Amount] = None
    date: dt.date | None = None
    purchase_date: dt.date | None = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    notes: Optional[str] = None
    account_id: Optional[int] = None
    category_id: Optional[int] = None
    credit_card_id: Optional[int] = None
    installment_number: Optional[int] = Field(default=None, ge=1)
    total_installments: Optional[int] = Field(default=None, ge=1)
    is_recurring_charge: Optional[bool] = None


class InstallmentCreate(BaseModel):
    type: TxnType = TxnType.EXPENSE
    # per-installment amount; callers divide the purchase total themselves
    amount: Amount
    date: date
    purchase_date: Optional[date] = None
    description: str = Field(min_length=1, max_length=255)
    notes: Optional[str] = None
    account_id: int
    category_id: int
    credit_card_id: Optional[int] = None
    total_installments: int = Field(ge=2, le=60)
    is_recurring_charge: bool = False


class PaidStatusUpdate(BaseModel):
    paid: StrictBool
    paid_at: Optional[date] = None
    account_id: Optional[int] = None


class TransactionOut(BaseModel):
    id: int
    user_id: int
    type: TxnType
    amount: Decimal
    date: date
    purchase_date: Optional[date]
    description: str
    notes: Optional[str]
    account_id: int
    category_id: int
    credit_card_id: Optional[int]
    installment_number: Optional[int]
    total_installments: Optional[int]
    recurrence_id: Optional[int]
    is_recurring_charge: bool
    paid: bool
    paid_at: Optional[date]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionSummaryOut(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal


class TransactionCountOut(BaseModel):
    count: int
    last_transaction: Optional[date]


# ---- Transfers ------------------------------------------------------------


class TransferCreate(BaseModel):
    amount: Amount
    date: date
    description: Optional[str] = Field(default=None, max_length=255)
    from_account_id: int
    to_account_id: int


class TransferUpdate(BaseModel):
    amount: Optional[Amount] = None
    date: dt.date | None = None
    description: Optional[str] = Field(default=None, max_length=255)
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None


class TransferOut(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    date: date
    description: Optional[str]
    from_account_id: int
    to_account_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---- Recurrences ----------------------------------------------------------


class RecurrenceCreate(BaseModel):
    type: TxnType
    amount: Amount
    description: str = Field(min_length=1, max_length=255)
    interval: RecurrenceInterval
    interval_count: int = Field(default=1, ge=1, le=30)
    start_date: date
    end_date: Optional[date] = None
    account_id: int
    category_id: int
    credit_card_id: Optional[int] = None


class RecurringTransactionCreate(BaseModel):
    """Shape accepted by ``POST /transactions/recurring`` (date = first occurrence)."""

    type: TxnType
    amount: Amount
    date: date
    description: str = Field(min_length=1, max_length=255)
    account_id: int
    category_id: int
    credit_card_id: Optional[int] = None
    interval: RecurrenceInterval
    interval_count: int = Field(default=1, ge=1, le=30)
    end_date: Optional[date] = None

    def to_recurrence(self) -> RecurrenceCreate:
        return RecurrenceCreate(
            type=self.type,
            amount=self.amount,
            description=self.description,
            interval=self.interval,
            interval_count=self.interval_count,
            start_date=self.date,
            end_date=self.end_date,
            account_id=self.account_id,
            category_id=self.category_id,
            credit_card_id=self.credit_card_id,
        )


class RecurrenceUpdate(BaseModel):
    type: Optional[TxnType] = None
    amount: Optional[Amount] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    interval: Optional[RecurrenceInterval] = None
    interval_count: Optional[int] = Field(default=None, ge=1, le=30)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    account_id: Optional[int] = None
    category_id: Optional[int] = None
    credit_card_id: Optional[int] = None


class RecurrenceOut(BaseModel):
    id: int
    user_id: int
    kind: RecurrenceKind
    type: TxnType
    interval: RecurrenceInterval
    interval_count: int
    start_date: date
    end_date: Optional[date]
    total_installments: Optional[int]
    amount: Optional[Decimal]
    description: Optional[str]
    account_id: Optional[int]
    category_id: Optional[int]
    credit_card_id: Optional[int]
    is_active: bool
    next_due_date: Optional[date]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecurrenceCreatedOut(RecurrenceOut):
    generated_transactions: int


class RecurrenceGenerateResult(BaseModel):
    generated: int


# ---- Budgets --------------------------------------------------------------


class BudgetCreate(BaseModel):
    category_id: int
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    amount: Amount


class BudgetUpdate(BaseModel):
    amount: Amount


class BudgetOut(BaseModel):
    id: int
    user_id: int
    category_id: int
    month: int
    year: int
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class BudgetStatusOut(BudgetOut):
    spent: Decimal
    remaining: Decimal
    percentage: float
    status: Literal["ok", "warning", "exceeded"]


class BudgetHistoryItem(BaseModel):
    month: int
    year: int
    budgeted: Decimal
    spent: Decimal
    difference: Decimal


class BudgetCopyRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


# ---- Goals ----------------------------------------------------------------


class GoalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    target_amount: Amount
    deadline: date
    account_id: Optional[int] = None
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("color")
    def validate_color(cls, v: str | None):
        return _normalize_color(v)


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    target_amount: Optional[Amount] = None
    deadline: Optional[date] = None
    account_id: Optional[int] = None
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("color")
    def validate_color(cls, v: str | None):
        return _normalize_color(v)


class GoalProgressOut(BaseModel):
    percentage: float
    remaining: Decimal
    days_left: int
    monthly_needed: Decimal
    is_on_track: bool


class GoalOut(BaseModel):
    id: int
    user_id: int
    name: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: date
    status: GoalStatus
    completed_at: Optional[date]
    account_id: Optional[int]
    color: Optional[str]
    icon: Optional[str]
    progress: Optional[GoalProgressOut] = None

    model_config = ConfigDict(from_attributes=True)


class GoalContributionCreate(BaseModel):
    amount: Amount
    date: date
    notes: Optional[str] = None


class GoalContributionOut(BaseModel):
    id: int
    goal_id: int
    amount: Decimal
    date: date
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)


# ---- Reminders ------------------------------------------------------------


ReminderDays = Annotated[int, Field(ge=0, le=30)]


class ReminderCreate(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    amount: Amount
    due_date: date
    reminder_days: ReminderDays = 3
    credit_card_id: Optional[int] = None
    is_recurring: StrictBool = False


class ReminderUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    amount: Optional[Amount] = None
    due_date: Optional[date] = None
    reminder_days: Optional[ReminderDays] = None
    credit_card_id: Optional[int] = None
    is_recurring: Optional[StrictBool] = None


class ReminderPaid(BaseModel):
    transaction_id: Optional[int] = None


class ReminderCardOut(BaseModel):
    id: int
    name: str
    due_day: int

    model_config = ConfigDict(from_attributes=True)


class ReminderOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str]
    amount: Decimal
    due_date: date
    reminder_days: int
    status: ReminderStatus
    is_recurring: bool
    transaction_id: Optional[int]
    credit_card_id: Optional[int]
    recurrence_id: Optional[int]
    credit_card: Optional[ReminderCardOut] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingReminderOut(BaseModel):
    reminder_id: int
    days_until_due: int
    is_overdue: bool
    reminder: ReminderOut


class UpcomingInvoiceOut(BaseModel):
    credit_card_id: int
    credit_card_name: str
    account_name: str
    due_date: date
    days_until_due: int
    amount: Decimal
    invoice_start: date
    invoice_end: date
