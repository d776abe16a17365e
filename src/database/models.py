"""
Database Models for Compta Insights

SQLAlchemy models for accounts, monthly statistics and budgets. The
forecasting core never touches these; `MonthlyStatistic.to_aggregate()`
is the hand-off point.
"""

import uuid
from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

from ..forecasting.aggregates import MonthlyAggregate
from ..forecasting.budget_tracker import BudgetLine as PlannedLine
from ..forecasting.month_keys import month_sort_key

db = SQLAlchemy()


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class Account(db.Model):
    """
    Ledger account (OHADA chart).

    Category is "entree" for inflow accounts and "sortie" for outflow accounts.
    """
    __tablename__ = 'accounts'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    code_ohada = db.Column(db.String(10), nullable=False, unique=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(10), nullable=False)  # entree, sortie

    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'code_ohada': self.code_ohada,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class MonthlyStatistic(db.Model):
    """
    Accounting totals of one month.

    Keyed by MMYYYY month key; per-account amounts live in AccountMonthlyTotal.
    """
    __tablename__ = 'monthly_statistics'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    month_key = db.Column(db.String(6), nullable=False, unique=True)
    year = db.Column(db.Integer, nullable=False)
    month = db.Column(db.Integer, nullable=False)

    total_in = db.Column(db.Float, default=0)
    total_out = db.Column(db.Float, default=0)
    operation_count = db.Column(db.Integer, default=0)
    cash_balance = db.Column(db.Float)  # cash held at month end, if known

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    account_totals = db.relationship('AccountMonthlyTotal', backref='statistic', lazy='selectin',
                                     cascade='all, delete-orphan')

    def set_month_key(self, month_key: str):
        self.month_key = month_key
        self.year, self.month = month_sort_key(month_key)

    def to_aggregate(self) -> MonthlyAggregate:
        return MonthlyAggregate(
            month_key=self.month_key,
            total_in=self.total_in or 0.0,
            total_out=self.total_out or 0.0,
            by_account={t.account_id: t.amount for t in self.account_totals}
        )

    def to_dict(self):
        return {
            'id': self.id,
            'month_key': self.month_key,
            'total_in': self.total_in,
            'total_out': self.total_out,
            'balance': (self.total_in or 0) - (self.total_out or 0),
            'operation_count': self.operation_count,
            'cash_balance': self.cash_balance,
            'accounts': [t.to_dict() for t in self.account_totals],
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


class AccountMonthlyTotal(db.Model):
    """Amount booked on one account during one month"""
    __tablename__ = 'account_monthly_totals'
    __table_args__ = (
        db.UniqueConstraint('statistic_id', 'account_id', name='uq_statistic_account'),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    statistic_id = db.Column(db.String(36), db.ForeignKey('monthly_statistics.id'), nullable=False)
    account_id = db.Column(db.String(36), db.ForeignKey('accounts.id'), nullable=False)

    amount = db.Column(db.Float, default=0)
    operation_count = db.Column(db.Integer, default=0)

    account = db.relationship('Account')

    def to_dict(self):
        return {
            'account_id': self.account_id,
            'amount': self.amount,
            'operation_count': self.operation_count
        }


class Budget(db.Model):
    """Monthly budget made of planned amounts per account"""
    __tablename__ = 'budgets'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    month_key = db.Column(db.String(6), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default='')
    status = db.Column(db.String(20), default='active')  # active, archived, exceeded

    created_by = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    lines = db.relationship('BudgetLine', backref='budget', lazy='selectin',
                            cascade='all, delete-orphan')

    @property
    def total_planned(self) -> float:
        return sum(line.planned_amount for line in self.lines)

    def planned_lines(self):
        return [line.to_planned_line() for line in self.lines]

    def to_dict(self):
        return {
            'id': self.id,
            'month_key': self.month_key,
            'name': self.name,
            'description': self.description,
            'status': self.status,
            'total_planned': self.total_planned,
            'lines': [line.to_dict() for line in self.lines],
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class BudgetLine(db.Model):
    __tablename__ = 'budget_lines'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    budget_id = db.Column(db.String(36), db.ForeignKey('budgets.id'), nullable=False)
    account_id = db.Column(db.String(36), db.ForeignKey('accounts.id'), nullable=False)

    planned_amount = db.Column(db.Float, nullable=False)
    alert_threshold = db.Column(db.Float, default=80)  # % of planned amount

    def to_planned_line(self) -> PlannedLine:
        return PlannedLine(
            account_id=self.account_id,
            planned_amount=self.planned_amount,
            alert_threshold=self.alert_threshold if self.alert_threshold is not None else 80.0
        )

    def to_dict(self):
        return {
            'id': self.id,
            'account_id': self.account_id,
            'planned_amount': self.planned_amount,
            'alert_threshold': self.alert_threshold
        }
