#!/usr/bin/env python3
"""
Compta Insights - Development Server Launcher

Quick start script that:
1. Checks dependencies
2. Sets up the database location
3. Optionally loads demo accounting history
4. Starts the Flask development server

Usage:
    python start_dev.py                 # Start with default settings
    python start_dev.py --demo          # Load 12 months of demo data first
    python start_dev.py --demo-months 24
    python start_dev.py --port 8080     # Use custom port
"""

import os
import sys
import argparse
import subprocess
from pathlib import Path

ROOT = Path(__file__).parent


class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    END = '\033[0m'


def print_banner():
    print(f"""
{Colors.GREEN}{'=' * 60}
   {Colors.BOLD}Compta Insights{Colors.END}{Colors.GREEN}
   {Colors.CYAN}Trends, forecasts and budget suggestions (FCFA){Colors.GREEN}
{'=' * 60}{Colors.END}
""")


def print_step(step_num, message, status="running"):
    icons = {
        "running": f"{Colors.YELLOW}...{Colors.END}",
        "done": f"{Colors.GREEN}ok{Colors.END}",
        "skip": f"{Colors.BLUE}->{Colors.END}",
    }
    icon = icons.get(status, f"{Colors.RED}!!{Colors.END}")
    print(f"  [{icon}] Step {step_num}: {message}")


def check_python_version():
    """Ensure Python 3.8+"""
    if sys.version_info < (3, 8):
        print(f"{Colors.RED}Error: Python 3.8+ required. You have "
              f"{sys.version_info.major}.{sys.version_info.minor}{Colors.END}")
        sys.exit(1)


def check_dependencies():
    """Return the import names of required packages that are missing"""
    required = ['flask', 'flask_sqlalchemy', 'flask_limiter', 'numpy']
    missing = []

    for package in required:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    return missing


def install_project():
    """Install the project and its dependencies in editable mode"""
    subprocess.check_call([sys.executable, '-m', 'pip', 'install', '-e', str(ROOT), '-q'])


def setup_environment():
    os.environ.setdefault('FLASK_APP', 'web.app:create_app')
    os.environ.setdefault('FLASK_DEBUG', 'True')
    os.environ.setdefault('FLASK_ENV', 'development')

    db_path = ROOT / 'instance' / 'compta_insights.db'
    db_path.parent.mkdir(exist_ok=True)
    os.environ.setdefault('DATABASE_URL', f'sqlite:///{db_path}')


def load_demo_data(months=12):
    """Load demo monthly statistics unless the database already holds some"""
    sys.path.insert(0, str(ROOT))

    from web.app import create_app
    from src.database.models import db, MonthlyStatistic
    from src.demo_data import load_demo_data_to_db

    app = create_app()

    with app.app_context():
        existing = MonthlyStatistic.query.count()
        if existing > 0:
            print(f"    {Colors.CYAN}Database has {existing} months. Skipping demo data.{Colors.END}")
            return existing

        return load_demo_data_to_db(db.session, months=months)


def run_server(port=5101, host='127.0.0.1'):
    sys.path.insert(0, str(ROOT))

    from web.app import create_app

    app = create_app()

    print(f"\n{Colors.GREEN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}  API running at: {Colors.CYAN}http://{host}:{port}/api/health{Colors.END}")
    print(f"{Colors.GREEN}{'=' * 60}{Colors.END}\n")

    app.run(debug=True, port=port, host=host, use_reloader=True)


def main():
    parser = argparse.ArgumentParser(description='Compta Insights Development Server')
    parser.add_argument('--demo', action='store_true', help='Load demo data on startup')
    parser.add_argument('--demo-months', type=int, default=12,
                        help='Months of demo history to create (default: 12)')
    parser.add_argument('--port', type=int, default=5101, help='Port to run server on (default: 5101)')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
    parser.add_argument('--skip-install', action='store_true', help='Skip dependency installation')

    args = parser.parse_args()

    print_banner()

    print_step(1, "Checking Python version...")
    check_python_version()
    print_step(1, f"Python {sys.version_info.major}.{sys.version_info.minor} OK", "done")

    if args.skip_install:
        print_step(2, "Skipping dependency check", "skip")
    else:
        missing = check_dependencies()
        if missing:
            print_step(2, f"Installing: {', '.join(missing)}")
            try:
                install_project()
            except subprocess.CalledProcessError as e:
                print_step(2, f"Installation failed: {e}", "error")
                sys.exit(1)
        print_step(2, "All dependencies installed", "done")

    setup_environment()
    print_step(3, f"Database: {os.environ['DATABASE_URL']}", "done")

    if args.demo:
        print_step(4, f"Loading {args.demo_months} months of demo data...")
        try:
            count = load_demo_data(months=args.demo_months)
            print_step(4, f"Demo data ready ({count} months)", "done")
        except Exception as e:
            print_step(4, f"Demo data failed: {e}", "error")
            print(f"    {Colors.YELLOW}Continuing without demo data...{Colors.END}")
    else:
        print_step(4, "Demo data loading skipped (use --demo to load)", "skip")

    print_step(5, "Starting development server...")
    try:
        run_server(port=args.port, host=args.host)
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Server stopped.{Colors.END}")


if __name__ == '__main__':
    main()
