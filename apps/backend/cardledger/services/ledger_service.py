from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.services.ownership import get_owned
from cardledger.utils.billing_calendar import current_invoice_date
from cardledger.utils.money import ZERO, to_money


@dataclass(frozen=True)
class AccountBalance:
    account: models.Account
    balance: Decimal
    as_of: date


@dataclass(frozen=True)
class CardUsage:
    card: models.CreditCard
    used_amount: Decimal
    available_amount: Optional[Decimal]
    current_invoice_date: date


@dataclass(frozen=True)
class PeriodSummary:
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal


class LedgerService:
    """As-of-date aggregates over transactions and transfers.

    Every figure comes from grouped SUM queries (one per source, keyed by
    account or card), never from per-row iteration in Python.
    """

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()

    # ---- Account balances ------------------------------------------------
    def balances_as_of(
        self,
        user_id: int,
        as_of: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[AccountBalance]:
        """initial balance + income - expense - transfers out + transfers in, all dated <= ``as_of``."""
        as_of = as_of or self.clock.today()
        q = self.db.query(models.Account).filter(models.Account.user_id == user_id)
        if account_id is not None:
            q = q.filter(models.Account.id == account_id)
        accounts = q.order_by(models.Account.id).all()
        if not accounts:
            return []

        signed = case(
            (models.Transaction.type == models.TxnType.INCOME, models.Transaction.amount),
            else_=-models.Transaction.amount,
        )
        txn_net = dict(
            self.db.query(models.Transaction.account_id, func.coalesce(func.sum(signed), 0))
            .filter(models.Transaction.user_id == user_id, models.Transaction.date <= as_of)
            .group_by(models.Transaction.account_id)
            .all()
        )
        transfers_out = self._transfer_totals(user_id, as_of, models.Transfer.from_account_id)
        transfers_in = self._transfer_totals(user_id, as_of, models.Transfer.to_account_id)

        results: list[AccountBalance] = []
        for account in accounts:
            balance = (
                to_money(account.initial_balance)
                + to_money(txn_net.get(account.id))
                - to_money(transfers_out.get(account.id))
                + to_money(transfers_in.get(account.id))
            )
            results.append(AccountBalance(account=account, balance=balance, as_of=as_of))
        return results

    def balance_as_of(self, user_id: int, account_id: int, as_of: Optional[date] = None) -> Decimal:
        get_owned(self.db, models.Account, account_id, user_id)
        return self.balances_as_of(user_id, as_of=as_of, account_id=account_id)[0].balance

    def _transfer_totals(self, user_id: int, as_of: date, leg) -> dict:
        return dict(
            self.db.query(leg, func.coalesce(func.sum(models.Transfer.amount), 0))
            .filter(models.Transfer.user_id == user_id, models.Transfer.date <= as_of)
            .group_by(leg)
            .all()
        )

    # ---- Card usage ------------------------------------------------------
    def used_amounts(self, user_id: int, card_id: Optional[int] = None) -> list[CardUsage]:
        """Outstanding charge total per card.

        Unpaid non-recurring expenses count regardless of date. Unpaid
        recurring charges only count up to the invoice open today, since
        future cycles are pre-generated.
        """
        q = self.db.query(models.CreditCard).filter(models.CreditCard.user_id == user_id)
        if card_id is not None:
            q = q.filter(models.CreditCard.id == card_id)
        cards = q.order_by(models.CreditCard.id).all()
        if not cards:
            return []
        card_ids = [card.id for card in cards]

        unpaid = (
            models.Transaction.user_id == user_id,
            models.Transaction.credit_card_id.in_(card_ids),
            models.Transaction.type == models.TxnType.EXPENSE,
            models.Transaction.paid.is_(False),
        )
        plain_totals = dict(
            self.db.query(models.Transaction.credit_card_id, func.sum(models.Transaction.amount))
            .filter(*unpaid, models.Transaction.is_recurring_charge.is_(False))
            .group_by(models.Transaction.credit_card_id)
            .all()
        )
        recurring_by_card: dict[int, list[tuple[date, Decimal]]] = defaultdict(list)
        recurring_rows = (
            self.db.query(
                models.Transaction.credit_card_id,
                models.Transaction.date,
                func.sum(models.Transaction.amount),
            )
            .filter(*unpaid, models.Transaction.is_recurring_charge.is_(True))
            .group_by(models.Transaction.credit_card_id, models.Transaction.date)
            .all()
        )
        for cid, ledger_date, total in recurring_rows:
            recurring_by_card[cid].append((ledger_date, to_money(total)))

        today = self.clock.today()
        results: list[CardUsage] = []
        for card in cards:
            cutoff = current_invoice_date(today, card.closing_day, card.due_day)
            recurring = sum(
                (total for ledger_date, total in recurring_by_card.get(card.id, []) if ledger_date <= cutoff),
                ZERO,
            )
            used = to_money(plain_totals.get(card.id)) + recurring
            available = None
            if card.credit_limit is not None:
                available = to_money(card.credit_limit) - used
            results.append(
                CardUsage(card=card, used_amount=used, available_amount=available, current_invoice_date=cutoff)
            )
        return results

    def used_amount(self, user_id: int, card_id: int) -> Decimal:
        get_owned(self.db, models.CreditCard, card_id, user_id)
        return self.used_amounts(user_id, card_id=card_id)[0].used_amount

    # ---- Period summary --------------------------------------------------
    def period_summary(
        self,
        user_id: int,
        start: date,
        end: date,
        account_id: Optional[int] = None,
    ) -> PeriodSummary:
        q = self.db.query(models.Transaction.type, func.sum(models.Transaction.amount)).filter(
            models.Transaction.user_id == user_id,
            models.Transaction.date >= start,
            models.Transaction.date <= end,
        )
        if account_id is not None:
            q = q.filter(models.Transaction.account_id == account_id)
        totals = {txn_type: to_money(total) for txn_type, total in q.group_by(models.Transaction.type).all()}
        income = totals.get(models.TxnType.INCOME, ZERO)
        expense = totals.get(models.TxnType.EXPENSE, ZERO)
        return PeriodSummary(total_income=income, total_expense=expense, balance=income - expense)
