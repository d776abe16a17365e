"""
Compta Insights - Flask Web Application

JSON API serving trends, forecasts and budget suggestions computed from
the monthly accounting statistics of a food-service business.
"""

import os
import sys
import logging
from dataclasses import replace
from datetime import date
from flask import Flask, request, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import and_, or_

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import get_config
from src.database.models import db, Account, AccountMonthlyTotal, MonthlyStatistic, Budget, BudgetLine
from src.forecasting import (
    BudgetSuggester,
    FinancialHealthAnalyzer,
    ForecastEngine,
    ForecastScenario,
    InvalidArgumentError,
    MetricType,
    MonthlyAggregate,
    TrendAnalyzer,
    VarianceDetector,
    compute_realization
)
from src.forecasting.aggregates import parse_amount
from src.forecasting.budget_tracker import BudgetLine as PlannedLine
from src.forecasting.financial_health import INFLOW_CATEGORY, OUTFLOW_CATEGORY
from src.forecasting.month_keys import month_key_for, month_sort_key, months_between, parse_month_key

logger = logging.getLogger(__name__)

ACCOUNT_CATEGORIES = (INFLOW_CATEGORY, OUTFLOW_CATEGORY)

# =============================================================================
# App Factory
# =============================================================================

def create_app(config_class=None):
    """Create Flask application"""
    app = Flask(__name__)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)

    # Rate limiting
    Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[app.config['RATELIMIT_DEFAULT']]
    )

    # Create tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    # Forecasting components (stateless, shared by all requests)
    trend_analyzer = TrendAnalyzer(min_seasonality_points=app.config['SEASONALITY_MIN_POINTS'])
    engine = ForecastEngine(
        trend_analyzer=trend_analyzer,
        pessimistic_factor=app.config['FORECAST_PESSIMISTIC_FACTOR'],
        optimistic_factor=app.config['FORECAST_OPTIMISTIC_FACTOR'],
        currency_decimals=app.config['CURRENCY_DECIMALS']
    )
    suggester = BudgetSuggester(
        trend_analyzer=trend_analyzer,
        min_history=app.config['BUDGET_MIN_HISTORY'],
        lookback_months=app.config['BUDGET_LOOKBACK_MONTHS'],
        high_confidence_cv=app.config['CONFIDENCE_HIGH_CV'],
        medium_confidence_cv=app.config['CONFIDENCE_MEDIUM_CV'],
        currency_decimals=app.config['CURRENCY_DECIMALS']
    )
    detector = VarianceDetector(
        alert_ratio=app.config['VARIANCE_ALERT_RATIO'],
        high_ratio=app.config['VARIANCE_HIGH_RATIO']
    )
    health_analyzer = FinancialHealthAnalyzer()

    def _history(before=None, limit=None):
        """Monthly aggregates in chronological order, optionally before a month"""
        query = MonthlyStatistic.query
        if before is not None:
            year, month = month_sort_key(before)
            query = query.filter(or_(
                MonthlyStatistic.year < year,
                and_(MonthlyStatistic.year == year, MonthlyStatistic.month < month)
            ))
        query = query.order_by(MonthlyStatistic.year.desc(), MonthlyStatistic.month.desc())
        if limit:
            query = query.limit(limit)
        return [row.to_aggregate() for row in reversed(query.all())]

    def _statistic(month_key):
        parse_month_key(month_key)
        return MonthlyStatistic.query.filter_by(month_key=month_key).first()

    def _months_ahead():
        months = request.args.get('months', 3, type=int)
        if months > app.config['FORECAST_MAX_MONTHS_AHEAD']:
            raise InvalidArgumentError(
                f"months must not exceed {app.config['FORECAST_MAX_MONTHS_AHEAD']}"
            )
        return months

    def _json_body():
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InvalidArgumentError("Request body must be a JSON object")
        return data

    # =============================================================================
    # API Routes - Health
    # =============================================================================

    @app.route('/api/health', methods=['GET'])
    def api_health():
        return jsonify({
            'status': 'ok',
            'app': app.config['APP_NAME'],
            'currency': app.config['CURRENCY_CODE']
        })

    # =============================================================================
    # API Routes - Accounts
    # =============================================================================

    @app.route('/api/accounts', methods=['GET'])
    def api_list_accounts():
        """List ledger accounts"""
        accounts = Account.query.order_by(Account.code_ohada).all()
        return jsonify({
            'accounts': [a.to_dict() for a in accounts]
        })

    @app.route('/api/accounts', methods=['POST'])
    def api_create_account():
        """Create a ledger account"""
        data = _json_body()

        if not data.get('code_ohada') or not data.get('name'):
            return jsonify({'error': 'code_ohada and name required'}), 400
        if data.get('category') not in ACCOUNT_CATEGORIES:
            return jsonify({'error': f"category must be one of {', '.join(ACCOUNT_CATEGORIES)}"}), 400
        if Account.query.filter_by(code_ohada=data['code_ohada']).first():
            return jsonify({'error': f"Account {data['code_ohada']} already exists"}), 409

        account = Account(
            code_ohada=data['code_ohada'],
            name=data['name'],
            description=data.get('description'),
            category=data['category']
        )
        db.session.add(account)
        db.session.commit()

        logger.info(f"Created account: {account.code_ohada} {account.name}")
        return jsonify({
            'success': True,
            'account': account.to_dict()
        }), 201

    # =============================================================================
    # API Routes - Monthly Statistics
    # =============================================================================

    @app.route('/api/months', methods=['GET'])
    def api_list_months():
        """List monthly statistics, oldest first"""
        statistics = MonthlyStatistic.query.order_by(MonthlyStatistic.year, MonthlyStatistic.month).all()
        return jsonify({
            'months': [s.to_dict() for s in statistics]
        })

    @app.route('/api/months', methods=['POST'])
    def api_save_month():
        """
        Create or replace the statistics of a month.

        Totals default to the sum of inflow / outflow accounts when omitted.
        """
        data = _json_body()
        operation_count = data.get('operation_count', 0)
        if isinstance(operation_count, bool) or not isinstance(operation_count, int) or operation_count < 0:
            raise InvalidArgumentError("operation_count must be a non-negative integer")
        cash_balance = data.get('cash_balance')
        if cash_balance is not None:
            cash_balance = parse_amount(cash_balance, 'cash_balance')

        # Validates the month key and every amount
        parsed = MonthlyAggregate.from_dict({**data, 'by_account': data.get('accounts')})

        amounts = parsed.by_account
        accounts = {a.id: a for a in Account.query.filter(Account.id.in_(list(amounts))).all()}
        unknown = [account_id for account_id in amounts if account_id not in accounts]
        if unknown:
            return jsonify({'error': f"Unknown account(s): {', '.join(unknown)}"}), 400

        aggregate = replace(
            parsed,
            total_in=parsed.total_in if data.get('total_in') is not None else sum(
                v for k, v in amounts.items() if accounts[k].category == INFLOW_CATEGORY
            ),
            total_out=parsed.total_out if data.get('total_out') is not None else sum(
                v for k, v in amounts.items() if accounts[k].category == OUTFLOW_CATEGORY
            )
        )

        statistic = MonthlyStatistic.query.filter_by(month_key=aggregate.month_key).first()
        created = statistic is None
        if created:
            statistic = MonthlyStatistic()
            statistic.set_month_key(aggregate.month_key)
            db.session.add(statistic)

        statistic.total_in = aggregate.total_in
        statistic.total_out = aggregate.total_out
        statistic.operation_count = operation_count
        statistic.cash_balance = cash_balance

        # Old rows must be gone before new ones hit the (statistic, account) constraint
        statistic.account_totals.clear()
        db.session.flush()
        statistic.account_totals = [
            AccountMonthlyTotal(account_id=account_id, amount=amount)
            for account_id, amount in aggregate.by_account.items()
        ]
        db.session.commit()

        logger.info(f"Saved statistics for {aggregate.month_key}")
        return jsonify({
            'success': True,
            'month': statistic.to_dict()
        }), 201 if created else 200

    # =============================================================================
    # API Routes - Trends & Forecasting
    # =============================================================================

    @app.route('/api/trend', methods=['GET'])
    def api_trend():
        """Growth and seasonality of a metric"""
        metric = request.args.get('metric', MetricType.BALANCE.value)
        history = _history(limit=request.args.get('history', type=int))

        estimate = trend_analyzer.estimate_trend(history, metric)
        return jsonify({'trend': estimate.to_dict()})

    @app.route('/api/forecast', methods=['GET'])
    def api_forecast():
        """Projections for one scenario, or the full report when no scenario is given"""
        months_ahead = _months_ahead()
        history = _history(limit=request.args.get('history', app.config['FORECAST_HISTORY_MONTHS'], type=int))
        scenario = request.args.get('scenario')

        if scenario is None:
            report = engine.forecast(history, months_ahead)
            return jsonify({'forecast': report.to_dict()})

        if not history:
            return jsonify({'available': False, 'reason': 'no history available', 'projections': []})

        projections = engine.project(history, months_ahead, scenario)
        return jsonify({
            'available': True,
            'scenario': scenario,
            'projections': [p.to_dict() for p in projections]
        })

    @app.route('/api/accounts/<account_id>/budget-suggestion', methods=['GET'])
    def api_budget_suggestion(account_id):
        """Suggested budget line for an account"""
        account = db.get_or_404(Account, account_id)
        target_month = request.args.get('target_month', month_key_for(date.today()))

        history = _history(before=target_month)
        suggestion = suggester.suggest_budget_line(history, account.id, target_month)

        return jsonify({
            'account': account.to_dict(),
            'suggestion': suggestion.to_dict()
        })

    @app.route('/api/months/<month_key>/variances', methods=['GET'])
    def api_variances(month_key):
        """Compare a booked month with what the preceding months projected"""
        statistic = _statistic(month_key)
        if statistic is None:
            return jsonify({'error': f'No statistics for {month_key}'}), 404

        history = _history(before=month_key, limit=app.config['FORECAST_HISTORY_MONTHS'])
        if not history:
            return jsonify({'available': False, 'reason': 'no history available', 'variances': []})

        months_ahead = months_between(history[-1].month_key, month_key)
        expected = engine.project(history, months_ahead, ForecastScenario.REALISTIC)[-1]
        account_projections = [
            items[-1] for items in engine.project_accounts(history, months_ahead).values()
        ]

        variances = detector.detect(expected, statistic.to_aggregate(), account_projections)
        return jsonify({
            'available': True,
            'month_key': month_key,
            'expected': expected.to_dict(),
            'variances': [v.to_dict() for v in variances]
        })

    @app.route('/api/compare', methods=['GET'])
    def api_compare():
        """Compare two months"""
        first_key = request.args.get('first', '')
        second_key = request.args.get('second', '')

        first = _statistic(first_key)
        second = _statistic(second_key)
        if first is None or second is None:
            return jsonify({'error': 'Both months must have statistics'}), 404

        comparison = trend_analyzer.compare_months(first.to_aggregate(), second.to_aggregate())
        return jsonify({'comparison': comparison})

    @app.route('/api/months/<month_key>/insights', methods=['GET'])
    def api_month_insights(month_key):
        """Financial ratios and health score of a booked month"""
        statistic = _statistic(month_key)
        if statistic is None:
            return jsonify({'error': f'No statistics for {month_key}'}), 404

        aggregate = statistic.to_aggregate()
        operation_count = statistic.operation_count or 0
        cash_balance = statistic.cash_balance or 0.0
        categories = {
            total.account_id: total.account.category for total in statistic.account_totals
        }

        ratios = health_analyzer.compute_ratios(aggregate, operation_count, cash_balance, categories)
        health = health_analyzer.health_score(aggregate, operation_count, cash_balance)
        return jsonify({
            'month_key': month_key,
            'ratios': ratios.to_dict(),
            'health': health.to_dict()
        })

    # =============================================================================
    # API Routes - Budgets
    # =============================================================================

    @app.route('/api/budgets', methods=['POST'])
    def api_create_budget():
        """Create a monthly budget"""
        data = _json_body()
        month_key = data.get('month_key', '')
        parse_month_key(month_key)

        lines = data.get('lines') or []
        if not data.get('name') or not isinstance(lines, list) or not lines:
            return jsonify({'error': 'name and at least one line required'}), 400

        budget = Budget(
            month_key=month_key,
            name=data['name'],
            description=data.get('description', ''),
            created_by=data.get('created_by')
        )
        for line in lines:
            planned = PlannedLine.from_dict(line)
            if db.session.get(Account, planned.account_id) is None:
                return jsonify({'error': f"Unknown account {planned.account_id}"}), 400
            budget.lines.append(BudgetLine(
                account_id=planned.account_id,
                planned_amount=planned.planned_amount,
                alert_threshold=planned.alert_threshold
            ))

        db.session.add(budget)
        db.session.commit()

        logger.info(f"Created budget {budget.name} for {budget.month_key}")
        return jsonify({
            'success': True,
            'budget': budget.to_dict()
        }), 201

    @app.route('/api/budgets/<budget_id>/realization', methods=['GET'])
    def api_budget_realization(budget_id):
        """Budget vs actual for the budget's month"""
        budget = db.get_or_404(Budget, budget_id)
        statistic = _statistic(budget.month_key)

        realization = compute_realization(
            budget.planned_lines(),
            statistic.to_aggregate() if statistic else None
        )
        return jsonify({
            'budget': budget.to_dict(),
            'realization': realization.to_dict()
        })

    # =============================================================================
    # Error Handlers
    # =============================================================================

    @app.errorhandler(InvalidArgumentError)
    def invalid_argument(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({'error': 'Too many requests'}), 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f"Server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


# =============================================================================
# Main
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    create_app().run(debug=debug, port=port, host='0.0.0.0')
