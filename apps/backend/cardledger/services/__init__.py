"""
Services package

Business logic service classes. Each takes the request-scoped ``Session``
(and optionally a ``Clock``) in its constructor.
"""

from .budget_service import BudgetService
from .goal_service import GoalService
from .installment_service import InstallmentService
from .invoice_service import InvoiceAssignment, InvoiceAssignmentService
from .ledger_service import LedgerService
from .recurrence_service import RecurrenceService
from .reminder_service import ReminderService
from .transaction_service import TransactionService

__all__ = [
    "BudgetService",
    "GoalService",
    "InstallmentService",
    "InvoiceAssignment",
    "InvoiceAssignmentService",
    "LedgerService",
    "RecurrenceService",
    "ReminderService",
    "TransactionService",
]
