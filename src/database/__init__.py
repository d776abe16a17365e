"""
Database Module for Compta Insights

SQLAlchemy models and database utilities.
"""

from .models import (
    db,
    Account,
    MonthlyStatistic,
    AccountMonthlyTotal,
    Budget,
    BudgetLine
)

__all__ = [
    'db',
    'Account',
    'MonthlyStatistic',
    'AccountMonthlyTotal',
    'Budget',
    'BudgetLine',
]
