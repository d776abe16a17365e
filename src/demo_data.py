"""
Demo Data Generator for Compta Insights

Generates realistic monthly accounting data for a small food-service
business (sandwiches, yoghurts, drinks) for demonstrations and testing.
"""

import random
from datetime import date
from typing import Dict, List, Optional, Any
from dataclasses import dataclass

from .forecasting.aggregates import MonthlyAggregate
from .forecasting.month_keys import month_key_for, shift_month_key

# OHADA accounts used by the demo shop, with their share of monthly
# inflows ("entree") or outflows ("sortie")
DEMO_ACCOUNTS = [
    {"code_ohada": "701", "name": "Vente de produits finis", "category": "entree", "share": 0.78},
    {"code_ohada": "707", "name": "Vente de marchandises", "category": "entree", "share": 0.18},
    {"code_ohada": "758", "name": "Autres produits divers", "category": "entree", "share": 0.04},
    {"code_ohada": "601", "name": "Achats de matières premières", "category": "sortie", "share": 0.45},
    {"code_ohada": "602", "name": "Fournitures consommables", "category": "sortie", "share": 0.08},
    {"code_ohada": "611", "name": "Transport", "category": "sortie", "share": 0.06},
    {"code_ohada": "613", "name": "Loyers et charges locatives", "category": "sortie", "share": 0.15},
    {"code_ohada": "626", "name": "Téléphone et Internet", "category": "sortie", "share": 0.03},
    {"code_ohada": "641", "name": "Rémunération des prestataires", "category": "sortie", "share": 0.23},
]

# Sales slow down in the rainy season and peak around year-end holidays
SEASONALITY = [1.05, 0.95, 1.00, 1.00, 0.95, 0.85, 0.80, 0.85, 0.95, 1.05, 1.15, 1.40]

# Accounts whose amount does not follow sales
FIXED_ACCOUNTS = {"613", "626"}

DEMO_OPENING_CASH = 1_000_000
DEMO_AVERAGE_TICKET = 2_500  # FCFA per sale


@dataclass
class GeneratedHistory:
    """Generated accounts and monthly aggregates"""
    accounts: List[Dict[str, Any]]
    aggregates: List[MonthlyAggregate]


class DemoDataGenerator:
    """
    Generate demo accounting history.

    Example:
        generator = DemoDataGenerator(seed=42)
        demo = generator.generate_history(months=12)
        print(demo.aggregates[-1].total_in)
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        base_revenue: float = 1_500_000,
        monthly_growth: float = 0.02,
        cost_ratio: float = 0.82,
        noise: float = 0.06
    ):
        """Initialize generator with optional random seed for reproducibility"""
        self.random = random.Random(seed)
        self.base_revenue = base_revenue
        self.monthly_growth = monthly_growth
        self.cost_ratio = cost_ratio
        self.noise = noise

    def generate_history(
        self,
        months: int = 12,
        end_month: Optional[str] = None
    ) -> GeneratedHistory:
        """
        Generate `months` consecutive monthly aggregates.

        Args:
            months: Number of months to generate
            end_month: Last month (MMYYYY); defaults to the previous month

        Returns:
            GeneratedHistory with accounts keyed by OHADA code
        """
        if end_month is None:
            end_month = shift_month_key(month_key_for(date.today()), -1)

        start_month = shift_month_key(end_month, -(months - 1))
        aggregates = []

        inflow_accounts = [a for a in DEMO_ACCOUNTS if a["category"] == "entree"]
        outflow_accounts = [a for a in DEMO_ACCOUNTS if a["category"] == "sortie"]
        fixed_base = self.base_revenue * self.cost_ratio

        for offset in range(months):
            month_key = shift_month_key(start_month, offset)
            seasonality = SEASONALITY[int(month_key[:2]) - 1]
            growth = (1 + self.monthly_growth) ** offset

            revenue = self.base_revenue * seasonality * growth * self._jitter()
            costs = revenue * self.cost_ratio

            by_account: Dict[str, float] = {}
            for account in inflow_accounts:
                by_account[account["code_ohada"]] = float(round(revenue * account["share"] * self._jitter()))
            for account in outflow_accounts:
                if account["code_ohada"] in FIXED_ACCOUNTS:
                    amount = fixed_base * account["share"]
                else:
                    amount = costs * account["share"] * self._jitter()
                by_account[account["code_ohada"]] = float(round(amount))

            aggregates.append(MonthlyAggregate(
                month_key=month_key,
                total_in=float(sum(by_account[a["code_ohada"]] for a in inflow_accounts)),
                total_out=float(sum(by_account[a["code_ohada"]] for a in outflow_accounts)),
                by_account=by_account
            ))

        accounts = [
            {k: v for k, v in account.items() if k != "share"}
            for account in DEMO_ACCOUNTS
        ]
        return GeneratedHistory(accounts=accounts, aggregates=aggregates)

    def _jitter(self) -> float:
        return self.random.uniform(1 - self.noise, 1 + self.noise)


def load_demo_data_to_db(db_session, months: int = 12) -> int:
    """
    Load demo data directly into the database.

    Args:
        db_session: SQLAlchemy database session
        months: Number of months of history to create

    Returns:
        Number of monthly statistics created
    """
    from .database.models import Account, AccountMonthlyTotal, MonthlyStatistic

    generator = DemoDataGenerator(seed=42)  # Reproducible demos
    demo = generator.generate_history(months=months)

    # Accounts created earlier (e.g. through the API) are reused by OHADA code
    accounts_by_code = {
        account.code_ohada: account
        for account in db_session.query(Account).filter(
            Account.code_ohada.in_([a["code_ohada"] for a in demo.accounts])
        )
    }
    for account_data in demo.accounts:
        if account_data["code_ohada"] in accounts_by_code:
            continue
        account = Account(
            code_ohada=account_data["code_ohada"],
            name=account_data["name"],
            category=account_data["category"]
        )
        db_session.add(account)
        accounts_by_code[account.code_ohada] = account
    db_session.flush()

    existing_months = {
        key for (key,) in db_session.query(MonthlyStatistic.month_key).filter(
            MonthlyStatistic.month_key.in_([a.month_key for a in demo.aggregates])
        )
    }

    created = 0
    cash = DEMO_OPENING_CASH
    for aggregate in demo.aggregates:
        cash += aggregate.balance
        if aggregate.month_key in existing_months:
            continue
        statistic = MonthlyStatistic(
            total_in=aggregate.total_in,
            total_out=aggregate.total_out,
            operation_count=int(aggregate.total_in // DEMO_AVERAGE_TICKET),
            cash_balance=cash
        )
        statistic.set_month_key(aggregate.month_key)
        for code, amount in aggregate.by_account.items():
            statistic.account_totals.append(AccountMonthlyTotal(
                account_id=accounts_by_code[code].id,
                amount=amount
            ))
        db_session.add(statistic)
        created += 1

    db_session.commit()
    return created


# Quick test function
if __name__ == "__main__":
    demo = DemoDataGenerator(seed=42).generate_history(months=12)

    for aggregate in demo.aggregates:
        print(f"{aggregate.month_key}: in {aggregate.total_in:,.0f}  out {aggregate.total_out:,.0f}")
