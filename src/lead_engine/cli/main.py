"""Main CLI entry point for the lead-engine command."""

import json
import logging
import click
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from typing import Any, Dict, List, Optional

from ..core.config import ScoringConfigManager
from ..core.models import Lead
from ..core.scorer import LeadScorer
from ..core.actions import suggest_next_action
from ..team.roster import Assignee, count_workloads
from ..team.lead_routing import (
    AssignmentOptions,
    AssignmentStrategy,
    LeadAssigner,
    RotationCursor,
)

console = Console()

TIER_COLORS = {"hot": "red", "warm": "yellow", "cold": "dim"}


def _load_records(path: str, key: str) -> List[Dict[str, Any]]:
    """Load a JSON list, either bare or wrapped as {key: [...]}."""
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Could not read {path}: {e}")

    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise click.ClickException(f"{path} must contain a JSON list of {key}")
    return data


def _load_roster(path: str) -> List[Assignee]:
    roster = []
    for i, record in enumerate(_load_records(path, "roster")):
        try:
            roster.append(Assignee.from_dict(record))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise click.ClickException(f"Invalid roster entry #{i}: {e}")
    return roster


@click.group()
@click.version_option(version="1.0.0", prog_name="lead-engine")
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Scoring config file (default: $LEAD_ENGINE_CONFIG or ~/.lead-engine)")
@click.option("--verbose", "-v", is_flag=True, help="Log each assignment")
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool):
    """Lead Engine - sales lead scoring and auto-assignment.

    \b
    Quick Start:
      lead-engine score leads.json                       # Score and prioritize
      lead-engine assign leads.json roster.json          # Round-robin assignment
      lead-engine assign leads.json roster.json -s workload --exclude-managers
      lead-engine config show                            # Current weights
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = ScoringConfigManager(Path(config_path) if config_path else None)


@cli.command()
@click.argument("leads_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.option("--explain", is_flag=True, help="Show the score breakdown per lead")
@click.pass_obj
def score(manager: ScoringConfigManager, leads_file: str, as_json: bool, explain: bool):
    """Score leads and derive their priority."""
    scorer = LeadScorer(manager.config)
    now = scorer.clock()
    leads = [Lead.from_dict(r) for r in _load_records(leads_file, "leads")]

    rows = []
    for lead in leads:
        result = scorer.evaluate(lead, now=now)
        rows.append((lead, result))

    if as_json:
        records = []
        for lead, result in rows:
            record = lead.with_score(result.total_score, result.tier).to_dict()
            record["score"] = result.total_score
            record["next_action"] = suggest_next_action(lead, result.total_score, manager.config)
            records.append(record)
        click.echo(json.dumps(records, indent=2))
        return

    if explain:
        for lead, result in rows:
            console.print(Panel.fit(scorer.explain_score(result), title=f"Lead {lead.id or '?'}"))
        return

    table = Table(title=f"Leads ({len(rows)})")
    table.add_column("ID", style="dim")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Priority", justify="center")
    table.add_column("Next Action", max_width=40)

    for lead, result in sorted(rows, key=lambda r: r[1].total_score, reverse=True):
        tier = result.tier.value
        table.add_row(
            lead.id or "-",
            lead.source_value or "-",
            lead.status_value or "-",
            str(result.total_score),
            f"[{TIER_COLORS[tier]}]{tier.upper()}[/{TIER_COLORS[tier]}]",
            suggest_next_action(lead, result.total_score, manager.config),
        )

    console.print(table)


@cli.command()
@click.argument("leads_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("roster_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--strategy", "-s", default="round_robin",
              type=click.Choice([s.value for s in AssignmentStrategy]),
              help="Assignment strategy")
@click.option("--exclude-managers", is_flag=True, help="Only assign to sales reps")
@click.option("--priority-order", is_flag=True, help="Assign hottest leads first")
@click.option("--cursor", type=int, default=None,
              help="Roster slot of the last round-robin assignment")
@click.option("--open-leads", "open_leads_file", type=click.Path(exists=True, dir_okay=False),
              help="Currently assigned leads, used to count each rep's workload")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_obj
def assign(
    manager: ScoringConfigManager,
    leads_file: str,
    roster_file: str,
    strategy: str,
    exclude_managers: bool,
    priority_order: bool,
    cursor: Optional[int],
    open_leads_file: Optional[str],
    as_json: bool,
):
    """Assign a batch of leads to the sales team."""
    leads = _load_records(leads_file, "leads")
    roster = _load_roster(roster_file)

    if open_leads_file:
        open_leads = [Lead.from_dict(r) for r in _load_records(open_leads_file, "leads")]
        roster = count_workloads(open_leads, roster)

    options = AssignmentOptions(
        exclude_managers=exclude_managers,
        priority_order=priority_order,
        cursor=RotationCursor(cursor) if cursor is not None else None,
    )
    result = LeadAssigner(LeadScorer(manager.config)).assign(leads, roster, strategy, options)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        names = {a.id: a.name or a.id for a in roster}
        table = Table(title=f"Assignments ({result.strategy.value})")
        table.add_column("Lead", style="dim")
        table.add_column("Assigned To", style="cyan")
        table.add_column("Method")
        table.add_column("Reason", style="red")

        for outcome in result.outcomes:
            table.add_row(
                outcome.lead_id or "-",
                names.get(outcome.assignee_id, "") if outcome.success else "-",
                outcome.method.value if outcome.method else "-",
                outcome.reason,
            )

        console.print(table)
        console.print(Panel.fit(
            f"Total: [cyan]{result.total}[/cyan]\n"
            f"Assigned: [green]{result.success}[/green]\n"
            f"Failed: [red]{result.failed}[/red]\n"
            f"Next cursor: [dim]{result.next_cursor.index}[/dim]",
            title="Assignments"
        ))

    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
        raise SystemExit(1)


@cli.group()
def config():
    """View and tune scoring weights."""
    pass


@config.command("show")
@click.pass_obj
def config_show(manager: ScoringConfigManager):
    """Show the current scoring configuration."""
    cfg = manager.config

    table = Table(title="Source Priors")
    table.add_column("Source")
    table.add_column("Points", justify="right")
    for source, points in sorted(cfg.source_priors.items(), key=lambda x: x[1], reverse=True):
        table.add_row(source, str(points))
    table.add_row("[dim](unknown)[/dim]", str(cfg.unknown_source_prior))

    console.print(Panel.fit(
        f"Config: [cyan]{manager.config_path}[/cyan]\n\n"
        f"Hot: [red]{cfg.hot_threshold}+[/red]\n"
        f"Warm: [yellow]{cfg.warm_threshold}-{cfg.hot_threshold - 1}[/yellow]\n"
        f"Cold: [dim]<{cfg.warm_threshold}[/dim]\n\n"
        f"Recency: up to {cfg.recency_max_points} pts, zero after {cfg.recency_cutoff_days} days\n"
        f"Engagement: {cfg.points_per_contact} pts per contact, max {cfg.engagement_cap}\n"
        f"Spam/lost ceiling: {cfg.dead_status_ceiling}",
        title="Scoring Config"
    ))
    console.print(table)


@config.command("set-thresholds")
@click.option("--hot", type=int, required=True, help="Minimum score for hot")
@click.option("--warm", type=int, required=True, help="Minimum score for warm")
@click.pass_obj
def config_set_thresholds(manager: ScoringConfigManager, hot: int, warm: int):
    """Update the priority tier thresholds."""
    try:
        manager.update_thresholds(hot=hot, warm=warm)
    except ValueError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]✓ Thresholds updated:[/green] hot {hot}+, warm {warm}+")


@config.command("set-source-prior")
@click.argument("source")
@click.argument("points", type=int)
@click.pass_obj
def config_set_source_prior(manager: ScoringConfigManager, source: str, points: int):
    """Set the base points for a lead source."""
    try:
        manager.set_source_prior(source, points)
    except ValueError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]✓ {source} prior set to {points}[/green]")


def main():
    cli()


if __name__ == "__main__":
    main()
