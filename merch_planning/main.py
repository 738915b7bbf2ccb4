"""
Command line entry point for the Merchandise Planning Engine.

Provides access to the dashboard rollups, per-product profitability,
SKU breakdown generation, clearance simulation and the season-end and
production-stage workflow.
"""
import argparse
import sys

from tabulate import tabulate

from merch_planning.config import config
from merch_planning.core.lifecycle import UserProfile
from merch_planning.core.profitability import RateBudget, AbsoluteBudget
from merch_planning.core.sku_allocation import generate_breakdown, parse_list, summarize_breakdown
from merch_planning.db import db, session_scope
from merch_planning.exceptions import MerchPlanError
from merch_planning.logging_setup import logger, log_exception

def _money(value):
    return f"{value:,.0f}"

def _pct(value):
    return '-' if value is None else f"{value:.1f}%"

def setup_db(args):
    """Create (optionally dropping first) all tables."""
    if args.drop:
        db.drop_all_tables()
    db.create_all_tables()
    print("Database tables created")

def show_dashboard(args):
    from merch_planning.services.reporting_service import ReportingService

    with session_scope() as session:
        dashboard = ReportingService(session).dashboard()

    kpis = dashboard.kpis
    print("\nKPIs:")
    print(tabulate([
        ['Total production budget', _money(kpis.total_budget)],
        ['Target revenue', _money(kpis.target_revenue)],
        ['Average plan margin', _pct(kpis.avg_plan_margin)],
        ['Average actual margin', _pct(kpis.avg_actual_margin)],
        ['Products', kpis.total_sku],
        ['Season ended', kpis.ended_count],
    ]))

    print("\nPlanned quantity by category:")
    print(tabulate(list(dashboard.by_category.items()), headers=['Category', 'Qty']))

    print("\nBy season:")
    print(tabulate(
        [[s.season, _money(s.budget), _money(s.revenue)] for s in dashboard.by_season],
        headers=['Season', 'Budget', 'Revenue']
    ))

    print("\nBy author:")
    print(tabulate(
        [[a.name, a.count, _money(a.revenue), _money(a.profit), _pct(a.margin)] for a in dashboard.by_author],
        headers=['Author', 'Products', 'Actual revenue', 'Actual profit', 'Margin']
    ))

    print("\nBy year:")
    print(tabulate(
        [[y.year, y.qty, _money(y.revenue), _money(y.cost), _money(y.marketing), _money(y.profit),
          _pct(y.margin), _money(y.actual_revenue), _money(y.actual_profit), _pct(y.actual_margin)]
         for y in dashboard.by_year],
        headers=['Year', 'Qty', 'Revenue', 'Cost', 'Marketing', 'Profit', 'Margin',
                 'Actual revenue', 'Actual profit', 'Actual margin']
    ))

def show_product(args):
    from merch_planning.services.reporting_service import ReportingService

    budget = None
    if args.ad_rate is not None:
        budget = RateBudget(args.ad_rate)
    elif args.budget is not None:
        budget = AbsoluteBudget(args.budget)

    with session_scope() as session:
        analysis = ReportingService(session).product_analysis(args.product_id, budget)

    figures = analysis['figures']
    plan = figures.plan
    rows = [
        ['Total production cost', _money(plan.total_production_cost)],
        ['Total retail value', _money(plan.total_retail_value)],
        ['Expected revenue', _money(plan.expected_revenue)],
        ['Gross profit', _money(plan.gross_profit)],
        ['Marketing budget', _money(plan.marketing_budget)],
        ['Net profit', _money(plan.net_profit)],
        ['Profit margin', _pct(plan.profit_margin_pct)],
    ]
    if figures.actual:
        rows += [
            ['Actual revenue', _money(figures.actual.actual_revenue)],
            ['Actual cost', _money(figures.actual.actual_cost)],
            ['Actual profit', _money(figures.actual.actual_profit)],
            ['Actual margin', _pct(figures.actual.actual_margin_pct)],
        ]
    if figures.performance:
        rows.append(['Performance', f"{figures.performance.status} ({figures.performance.label})"])
    print(tabulate(rows))

    breakdown = analysis['breakdown']
    if breakdown is not None:
        for warning in breakdown.warnings():
            print(f"Warning: {warning}")

def show_breakdown(args):
    lines = generate_breakdown(parse_list(args.colors), parse_list(args.sizes), args.qty)
    if not lines:
        print("Nothing to allocate: both colors and sizes are required")
        return

    summary = summarize_breakdown(lines, args.qty)
    rows = [[line.color, line.size, f"{line.ratio}%", line.qty] for line in lines]
    rows.append(['Total', '', f"{summary.total_ratio}%", summary.total_qty])
    print(tabulate(rows, headers=['Color', 'Size', 'Ratio', 'Qty']))
    for warning in summary.warnings():
        print(f"Warning: {warning}")

def show_clearance(args):
    from merch_planning.services.reporting_service import ReportingService, DEFAULT_DISCOUNT_LADDER

    discounts = args.discount or DEFAULT_DISCOUNT_LADDER
    with session_scope() as session:
        projections = ReportingService(session).clearance_ladder(args.product_id, discounts)

    print(tabulate(
        [[f"{p.additional_discount_pct:g}%", p.remaining_qty, _money(p.clearance_price),
          f"{p.estimated_daily_sales:.1f}", p.days_to_clear, _money(p.total_projected_revenue),
          _money(p.projected_profit)] for p in projections],
        headers=['Discount', 'Remaining', 'Price', 'Daily sales', 'Days to clear', 'Revenue', 'Profit']
    ))

def run_workflow(args):
    """Season-end and production-stage commands."""
    from merch_planning.services.product_service import ProductService

    with session_scope() as session:
        service = ProductService(session, profile=UserProfile.from_config(config.profile))
        if args.command == 'end-season':
            product = service.end_season(args.product_id, args.sold)
        elif args.command == 'cancel-season':
            product = service.cancel_season_end(args.product_id)
        elif args.command == 'advance':
            product = service.advance_stage(args.product_id)
        else:
            product = service.revert_stage(args.product_id)
        print(f"{product.id}: status={product.status} season_ended={product.is_season_ended} "
              f"actual_sold_qty={product.actual_sold_qty}")

def build_parser():
    parser = argparse.ArgumentParser(description='Merchandise Planning Engine')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    init_parser = subparsers.add_parser('init-db', help='Create the database schema')
    init_parser.add_argument('--drop', action='store_true', help='Drop existing tables first')
    init_parser.set_defaults(handler=setup_db)

    dashboard_parser = subparsers.add_parser('dashboard', help='Show dashboard rollups')
    dashboard_parser.set_defaults(handler=show_dashboard)

    product_parser = subparsers.add_parser('product', help='Show profitability for a product')
    product_parser.add_argument('product_id')
    budget_group = product_parser.add_mutually_exclusive_group()
    budget_group.add_argument('--ad-rate', type=float, help='Marketing budget as %% of expected revenue')
    budget_group.add_argument('--budget', type=float, help='Marketing budget amount')
    product_parser.set_defaults(handler=show_product)

    breakdown_parser = subparsers.add_parser('breakdown', help='Preview a SKU breakdown')
    breakdown_parser.add_argument('--colors', required=True, help='Comma separated colors')
    breakdown_parser.add_argument('--sizes', required=True, help='Comma separated sizes')
    breakdown_parser.add_argument('--qty', type=int, required=True, help='Planned quantity')
    breakdown_parser.set_defaults(handler=show_breakdown)

    clearance_parser = subparsers.add_parser('clearance', help='Simulate a clearance sale')
    clearance_parser.add_argument('product_id')
    clearance_parser.add_argument('--discount', type=float, action='append',
                                  help='Additional discount %% (repeatable)')
    clearance_parser.set_defaults(handler=show_clearance)

    end_parser = subparsers.add_parser('end-season', help='Record actual sales and close the season')
    end_parser.add_argument('product_id')
    end_parser.add_argument('--sold', type=int, required=True, help='Actual sold quantity')
    end_parser.set_defaults(handler=run_workflow)

    for name, help_text in (
        ('cancel-season', 'Reopen a closed season'),
        ('advance', 'Move a product to the next production stage'),
        ('revert', 'Move a product back one production stage'),
    ):
        workflow_parser = subparsers.add_parser(name, help=help_text)
        workflow_parser.add_argument('product_id')
        workflow_parser.set_defaults(handler=run_workflow)

    return parser

def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'handler', None):
        parser.print_help()
        return 1

    log_info = logger.command_start_log(args.command, vars(args))
    try:
        args.handler(args)
    except MerchPlanError as e:
        log_exception('cli', e, f"Command {args.command} failed")
        print(f"Error: {e}", file=sys.stderr)
        logger.command_end_log(log_info, success=False)
        return 1

    logger.command_end_log(log_info)
    return 0

if __name__ == "__main__":
    sys.exit(main())
