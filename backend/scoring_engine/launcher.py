"""
HomeScore Launcher - rank listings or grade leads from a JSON file

Usage:
    python -m scoring_engine.launcher rank listings.json --preset family --budget-max 550000
    python -m scoring_engine.launcher leads leads.json --export leads.xlsx
    python -m scoring_engine.launcher factors
"""

import argparse
import json
import sys
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scoring_engine.modules.attributes import LeadRecord, ListingRecord, build_listing_attributes
from scoring_engine.modules.errors import ScoringError
from scoring_engine.modules.excel_writer import export_report
from scoring_engine.modules.logger import get_logger, setup_logging
from scoring_engine.modules.models import AttributeMap, BatchReport, BuyerContext
from scoring_engine.modules.scoring_suite import lead_suite, property_suite

console = Console()

CLASS_STYLES = {
    'hot': "bold red",
    'warm': "dark_orange",
    'cold': "blue",
    'excellent': "bold green",
    'good': "green",
    'fair': "yellow",
    'poor': "red",
}


def load_items(path: str) -> List[dict]:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        # {"listings": [...]} / {"leads": [...]}
        data = next(iter(data.values()), [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must hold a JSON list of records")
    return data


def listing_entities(items: List[dict], as_of: date) -> List[Tuple[str, AttributeMap]]:
    """Items with an 'attributes' key are used as-is; anything else is a listing record."""
    entities = []
    for item in items:
        if 'attributes' in item:
            entities.append((str(item['id']), item['attributes']))
        else:
            listing = ListingRecord.model_validate(item)
            entities.append((listing.id, build_listing_attributes(listing, as_of)))
    return entities


def results_table(report: BatchReport, title: str) -> Table:
    table = Table(title=f"[bold]{title}[/bold]", box=box.ROUNDED, border_style="rgb(205,102,0)",
                  header_style="bold dark_orange")
    table.add_column("#", style="dark_orange", justify="center", width=4)
    table.add_column("Entity", style="white")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Class", justify="center")
    table.add_column("Missing", justify="center", style="dim")
    table.add_column("Recommendation", style="white")

    for score in report.results:
        missing = sum(1 for f in score.breakdown if f.missing_data)
        style = CLASS_STYLES.get(score.classification, "white")
        table.add_row(
            str(score.rank),
            score.entity_id,
            f"{score.total_score:.2f}",
            score.grade,
            f"[{style}]{score.classification}[/{style}]",
            str(missing) if missing else "-",
            score.recommendation,
        )
    return table


def print_failures(report: BatchReport):
    if not report.failures:
        return
    table = Table(title="[bold red]Failed Entities[/bold red]", box=box.ROUNDED, border_style="red")
    table.add_column("Entity", style="white")
    table.add_column("Error", style="red")
    table.add_column("Message", style="dim")
    for failure in report.failures:
        table.add_row(failure.entity_id, failure.error, failure.message)
    console.print(table)


def print_factors():
    for suite in (property_suite(), lead_suite()):
        table = Table(title=f"[bold]{suite.domain.value.title()} Factors[/bold]", box=box.ROUNDED,
                      border_style="rgb(205,102,0)", header_style="bold dark_orange")
        table.add_column("Factor", style="white")
        table.add_column("Category")
        table.add_column("Weight", justify="center")
        table.add_column("On", justify="center")
        table.add_column("Rule", style="dim")
        for definition in suite.registry:
            table.add_row(definition.id, definition.category.value, str(definition.default_weight),
                          "yes" if definition.default_enabled else "no", definition.rule.kind.value)
        console.print(table)
        console.print(f"[dim]Presets: {', '.join(suite.presets.names())}[/dim]\n")


def finish(report: BatchReport, title: str, profile, export: Optional[str]) -> int:
    console.print(results_table(report, title))
    print_failures(report)
    if export:
        path = export_report(report, export, profile)
        console.print(f"  [green]>[/green] Report saved to [dark_orange]{path}[/dark_orange]")
    return 1 if report.failures and not report.results else 0


def run_rank(args) -> int:
    suite = property_suite(max_workers=args.workers)
    context = BuyerContext(budget_min=args.budget_min, budget_max=args.budget_max,
                           min_beds=args.min_beds, min_baths=args.min_baths)
    profile = suite.default_profile(owner=args.owner, buyer_context=context, preset_name=args.preset)
    entities = listing_entities(load_items(args.path), args.as_of.date())
    report = suite.rank_batch(entities, profile)
    return finish(report, f"Ranked Listings ({profile.preset_name or 'default weights'})", profile, args.export)


def run_leads(args) -> int:
    suite = lead_suite(max_workers=args.workers)
    leads = [LeadRecord.model_validate(item) for item in load_items(args.path)]
    report = suite.grade_leads(leads, args.as_of)
    return finish(report, "Lead Triage", suite.lead_profile(), args.export)


def parse_as_of(value: str) -> datetime:
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="homescore", description="Weighted listing and lead scoring")
    parser.add_argument('--log-dir', help="Write a run log to this folder")
    sub = parser.add_subparsers(dest='command', required=True)

    def common(p):
        p.add_argument('path', help="JSON file with a list of records")
        p.add_argument('--as-of', type=parse_as_of, default=datetime.now(timezone.utc),
                       help="Reference time for ages and recency (ISO 8601)")
        p.add_argument('--export', help="Write an .xlsx report to this path")
        p.add_argument('--workers', type=int, default=None, help="Scoring threads (default: CPU count)")

    rank = sub.add_parser('rank', help="Rank listings against a preference profile")
    common(rank)
    rank.add_argument('--preset', help="Preset to apply (family, investor, retiree, first-time, luxury)")
    rank.add_argument('--owner', default='cli')
    rank.add_argument('--budget-min', type=float)
    rank.add_argument('--budget-max', type=float)
    rank.add_argument('--min-beds', type=float)
    rank.add_argument('--min-baths', type=float)
    rank.set_defaults(handler=run_rank)

    leads = sub.add_parser('leads', help="Grade leads hot/warm/cold")
    common(leads)
    leads.set_defaults(handler=run_leads)

    factors = sub.add_parser('factors', help="List registered factors and presets")
    factors.set_defaults(handler=lambda args: print_factors() or 0)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_dir:
        setup_logging(args.log_dir, args.command)

    try:
        return args.handler(args)
    except (ScoringError, ValueError, OSError) as e:
        get_logger().error(f"{args.command} failed: {e}")
        console.print(Panel(f"[red]{e}[/red]", title="[bold red]Error[/bold red]",
                            border_style="red", box=box.ROUNDED))
        return 2
    finally:
        get_logger().close_run()


if __name__ == "__main__":
    sys.exit(main())
