"""HTTP routers, one module per resource.

``register_routers`` mounts every router under ``/api``.
"""

from fastapi import FastAPI

from . import (
    accounts,
    budgets,
    categories,
    credit_cards,
    goals,
    recurrences,
    reminders,
    transactions,
    transfers,
)


def register_routers(app: FastAPI) -> None:
    """Attach all API routes to the FastAPI application."""

    app.include_router(accounts.router, prefix="/api")
    app.include_router(categories.router, prefix="/api")
    app.include_router(credit_cards.router, prefix="/api")
    app.include_router(transactions.router, prefix="/api")
    app.include_router(transfers.router, prefix="/api")
    app.include_router(recurrences.router, prefix="/api")
    app.include_router(budgets.router, prefix="/api")
    app.include_router(goals.router, prefix="/api")
    app.include_router(reminders.router, prefix="/api")
