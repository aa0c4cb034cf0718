#!/usr/bin/env python3
"""NHS Hours - service-hour tracking for the chapter.

Submits verified service hours to the chapter ledger and shows standing.

Commands:
    nhs-hours leaderboard                                  # Ranked members + chapter stats
    nhs-hours leaderboard --grade junior --inducted yes    # Filtered
    nhs-hours verify photo.jpg -d "..."                    # Check proof without recording hours
    nhs-hours submit --name "Jane Doe" --grade Junior --chapter 3 --image photo.jpg -d "..."
    nhs-hours submit ... --dry-run                         # Verify and merge locally, no ledger write
    nhs-hours opportunities list --chapter --impact high
    nhs-hours opportunities add --title ... --location ... --date 2026-11-07
    nhs-hours form-link --grade Senior                     # Official recordation form

Exit status: 0 on success, 1 on rejection or ledger failure, 2 on missing configuration.
"""

import argparse
import datetime
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import load_settings
from .errors import ConfigurationError, HoursError, LedgerUnavailableError, LedgerWriteError, SubmissionValidationError
from .judges import ContentModerationJudge, ProofVerificationGate, VerificationVerdict
from .judges.schemas.verdict import Severity
from .ledger import DryRunLedgerStore, MemberLedgerRepository, SheetsLedgerClient
from .llm.llm_client import LLMClient, LLMTask
from .models import HoursSubmission, ProofArtifact
from .policy import HoursPolicyEngine, get_form_url, get_hours_policy
from .services import LeaderboardService, OpportunityService, SubmissionOutcome, SubmissionService
from .utils.logger import AppLogger

load_dotenv()
console = Console()
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_CONFIG = 2

MEDAL_LABELS = {
    "gold": "[bold yellow]1st[/bold yellow]",
    "silver": "[bold white]2nd[/bold white]",
    "bronze": "[bold dark_orange3]3rd[/bold dark_orange3]",
}
TIER_STYLES = {
    "complete": "green",
    "on_track": "blue",
    "midyear": "yellow",
    "started": "dark_orange",
    "behind": "red",
}


def parse_yes_no_arg(value: str) -> bool:
    text = value.strip().lower()
    if text in ("yes", "y", "true"):
        return True
    if text in ("no", "n", "false"):
        return False
    raise argparse.ArgumentTypeError(f"expected yes or no, got '{value}'")


def parse_date_arg(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from e


# ─── Display ──────────────────────────────────────────────────────────────────


def display_verdict(verdict: VerificationVerdict) -> None:
    if verdict.is_valid:
        title, style = "Proof accepted", "green"
    else:
        title, style = f"Proof rejected ({verdict.status.value})", "red"
    body = verdict.reason
    if verdict.field:
        body = f"[bold]{verdict.field}[/bold]: {body}"
    if verdict.confidence:
        body += f"\n[dim]Confidence: {verdict.confidence.value}[/dim]"
    matching = verdict.metadata.get("matching_urls")
    if matching:
        body += "\n[dim]Found at: " + ", ".join(matching) + "[/dim]"
    console.print(Panel(body, title=title, border_style=style))


def display_outcome(outcome: SubmissionOutcome) -> None:
    display_verdict(outcome.verdict)
    if not outcome.accepted:
        return

    record, progress = outcome.record, outcome.progress
    source = "ledger" if outcome.confirmed else "local merge, not yet confirmed by the ledger"
    summary = (
        f"{record.name} ({record.grade or 'grade not set'})\n"
        f"Summer: {record.summer_hours:g}  Chapter: {record.chapter_hours:g}  Other: {record.other_hours:g}\n"
        f"Total: [bold]{record.total_hours:g}[/bold] hours ({progress.percent_complete:g}% of goal)\n"
        f"[dim]Source: {source}[/dim]"
    )
    console.print(Panel(summary, title="Hours recorded", border_style="blue"))

    for issue in outcome.guidance:
        color = "yellow" if issue.severity == Severity.WARNING else "cyan"
        console.print(f"[{color}]{issue.severity.value.upper()}[/{color}] {issue.message}")


def display_leaderboard(leaderboard) -> None:
    stats = leaderboard.stats
    summary = (
        f"Members: {stats.member_count}\n"
        f"Inducted: {stats.inducted_count}\n"
        f"Total hours: {stats.total_hours:g}\n"
        f"Average hours: {stats.average_hours}"
    )
    console.print(Panel(summary, title="Chapter Stats", border_style="blue"))

    if not leaderboard.entries:
        message = "No members found." if stats.member_count == 0 else "No members match your filters."
        console.print(f"[yellow]{message}[/yellow]")
        return

    table = Table(title="Leaderboard")
    table.add_column("Rank", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Grade")
    table.add_column("Inducted", justify="center")
    table.add_column("Summer", justify="right")
    table.add_column("Chapter", justify="right")
    table.add_column("Other", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Progress", justify="right")

    for entry in leaderboard.entries:
        record, progress = entry.record, entry.progress
        rank = MEDAL_LABELS.get(entry.medal, str(entry.rank))
        style = TIER_STYLES.get(progress.tier, "white")
        table.add_row(
            rank,
            record.name,
            record.grade,
            "[green]Yes[/green]" if record.inducted else "[dim]No[/dim]",
            f"{record.summer_hours:g}",
            f"{record.chapter_hours:g}",
            f"{record.other_hours:g}",
            f"[{style}]{record.total_hours:g}[/{style}]",
            f"[{style}]{progress.percent_complete:g}%[/{style}]",
        )
    console.print(table)


def display_opportunities(opportunities) -> None:
    if not opportunities:
        console.print("[yellow]No opportunities match your filters.[/yellow]")
        return

    table = Table(title="Volunteer Opportunities")
    table.add_column("Date")
    table.add_column("Title", style="cyan")
    table.add_column("Location")
    table.add_column("Impact", justify="center")
    table.add_column("Type", justify="center")
    for o in opportunities:
        table.add_row(
            o.date.isoformat(),
            o.title,
            o.location,
            o.impact_level.value,
            "Chapter" if o.is_chapter_sponsored else "External",
        )
    console.print(table)


# ─── Wiring ───────────────────────────────────────────────────────────────────


def build_repository(settings, dry_run: bool = False) -> MemberLedgerRepository:
    """Ledger repository over the Sheets client, or a lazily read copy for dry runs."""
    engine = HoursPolicyEngine(get_hours_policy())
    client = SheetsLedgerClient.from_settings(settings)
    if not dry_run:
        return MemberLedgerRepository(client, engine)
    return MemberLedgerRepository(
        DryRunLedgerStore(client if settings.ledger_read_configured else None), engine
    )


def load_artifact(image: Path, description: str) -> ProofArtifact:
    if not image.exists():
        raise SubmissionValidationError("image", f"Image file not found: {image}")
    return ProofArtifact.from_path(image, description)


# ─── Commands ─────────────────────────────────────────────────────────────────


def cmd_leaderboard(args, settings, app_logger) -> int:
    repository = build_repository(settings)
    with app_logger.time_operation("leaderboard build"):
        leaderboard = LeaderboardService(repository).build(search=args.search, grade=args.grade, inducted=args.inducted)
    if args.json:
        print(json.dumps(leaderboard.to_dict(), indent=2))
    else:
        display_leaderboard(leaderboard)
    return EXIT_OK


def cmd_verify(args, settings, app_logger) -> int:
    gate = ProofVerificationGate.from_settings(settings)
    console.print(f"[dim]Verification policy: {gate.policy}[/dim]")
    verdict = gate.verify(load_artifact(args.image, args.description), override_code=args.override_code)
    app_logger.log_verdict("anonymous", verdict.judge_name, verdict.status.value, verdict.reason)
    if args.json:
        print(json.dumps(verdict.to_dict(), indent=2))
    else:
        display_verdict(verdict)
    return EXIT_OK if verdict.is_valid else EXIT_REJECTED


def cmd_submit(args, settings, app_logger) -> int:
    submission = HoursSubmission.from_form(
        {
            "name": args.name,
            "grade": args.grade,
            "summer_hours": args.summer,
            "chapter_hours": args.chapter,
            "other_hours": args.other,
            "inducted": args.inducted,
        }
    )
    artifact = load_artifact(args.image, args.description)

    if not args.dry_run and not settings.ledger_write_configured:
        raise ConfigurationError(
            "Ledger writes are not configured. Set NHS_APPS_SCRIPT_URL or use --dry-run."
        )

    repository = build_repository(settings, dry_run=args.dry_run)
    service = SubmissionService(ProofVerificationGate.from_settings(settings), repository)
    try:
        outcome = service.submit(submission, artifact, override_code=args.override_code)
    except (LedgerUnavailableError, LedgerWriteError) as e:
        app_logger.log_ledger_write(submission.name, success=False, error=str(e))
        raise
    verdict = outcome.verdict
    app_logger.log_verdict(submission.name, verdict.judge_name, verdict.status.value, verdict.reason)
    if outcome.accepted and not args.dry_run:
        app_logger.log_ledger_write(submission.name, success=True)

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        display_outcome(outcome)
        if outcome.accepted and args.dry_run:
            console.print("[dim]Dry run: the ledger was not modified[/dim]")
        if outcome.accepted:
            form_url = get_form_url(submission.grade.value)
            if form_url:
                console.print(f"\nFinish by recording your hours on the official form:\n{form_url}")
    return EXIT_OK if outcome.accepted else EXIT_REJECTED


def cmd_opportunities_list(args, settings, app_logger) -> int:
    service = OpportunityService(args.file)
    upcoming_from = datetime.date.today() if args.upcoming else None
    opportunities = service.list_approved(
        chapter_sponsored=args.chapter_sponsored, impact=args.impact, upcoming_from=upcoming_from
    )
    if args.json:
        print(json.dumps([o.model_dump(mode="json") for o in opportunities], indent=2))
    else:
        display_opportunities(opportunities)
    return EXIT_OK


def cmd_opportunities_add(args, settings, app_logger) -> int:
    llm_client = None
    if settings.ai_configured:
        llm_client = LLMClient(task=LLMTask.CONTENT_MODERATION, api_key=settings.gemini_api_key)
    judge = ContentModerationJudge(llm_client=llm_client, use_llm=settings.ai_configured)
    service = OpportunityService(args.file, moderation_judge=judge)
    opportunity = service.propose(
        {
            "title": args.title,
            "location": args.location,
            "date": args.date,
            "time": args.time,
            "description": args.description,
            "latitude": args.latitude,
            "longitude": args.longitude,
            "is_chapter_sponsored": args.chapter_sponsored,
            "impact_level": args.impact,
            "hours_estimate": args.hours_estimate,
            "organizer": args.organizer,
            "contact_email": args.contact_email,
            "signup_url": args.signup_url,
        }
    )
    console.print(f"[green]Posted '{opportunity.title}'. It will appear once an officer approves it.[/green]")
    return EXIT_OK


def cmd_form_link(args, settings, app_logger) -> int:
    url = get_form_url(args.grade)
    if not url:
        console.print(f"[red]No recordation form configured for grade '{args.grade}'[/red]")
        return EXIT_REJECTED
    print(url)
    return EXIT_OK


# ─── Parser ───────────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nhs-hours", description="NHS chapter service-hour tracking")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="Also write logs to this file under ~/.nhs-hours/logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    leaderboard = subparsers.add_parser("leaderboard", help="Show ranked members and chapter stats")
    leaderboard.add_argument("--search", default="", help="Name contains (case-insensitive)")
    leaderboard.add_argument("--grade", help="Freshman, Sophomore, Junior, or Senior")
    leaderboard.add_argument("--inducted", type=parse_yes_no_arg, help="yes or no")
    leaderboard.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    leaderboard.set_defaults(func=cmd_leaderboard)

    verify = subparsers.add_parser("verify", help="Check a proof photo without recording hours")
    verify.add_argument("image", type=Path, help="Proof photo (JPG, PNG, or WebP, under 5MB)")
    verify.add_argument("-d", "--description", required=True, help="What you did and how the photo shows it")
    verify.add_argument("--override-code", help="Officer override code")
    verify.add_argument("--json", action="store_true")
    verify.set_defaults(func=cmd_verify)

    submit = subparsers.add_parser("submit", help="Verify proof and add hours to the ledger")
    submit.add_argument("--name", required=True)
    submit.add_argument("--grade", required=True)
    submit.add_argument("--summer", type=float, default=0.0, help="Summer hours to add")
    submit.add_argument("--chapter", type=float, default=0.0, help="Chapter-sponsored hours to add")
    submit.add_argument("--other", type=float, default=0.0, help="Other hours to add")
    submit.add_argument("--inducted", type=parse_yes_no_arg, default=False, help="yes or no")
    submit.add_argument("--image", type=Path, required=True, help="Proof photo")
    submit.add_argument("-d", "--description", required=True, help="What you did and how the photo shows it")
    submit.add_argument("--override-code", help="Officer override code")
    submit.add_argument("--dry-run", action="store_true", help="Merge locally without writing to the ledger")
    submit.add_argument("--json", action="store_true")
    submit.set_defaults(func=cmd_submit)

    opportunities = subparsers.add_parser("opportunities", help="Volunteer opportunity listings")
    opp_sub = opportunities.add_subparsers(dest="opportunities_command", required=True)

    opp_list = opp_sub.add_parser("list", help="Show approved opportunities")
    sponsor = opp_list.add_mutually_exclusive_group()
    sponsor.add_argument("--chapter", dest="chapter_sponsored", action="store_const", const=True)
    sponsor.add_argument("--external", dest="chapter_sponsored", action="store_const", const=False)
    opp_list.add_argument("--impact", choices=["high", "medium", "low"], type=str.lower)
    opp_list.add_argument("--upcoming", action="store_true", help="Hide past dates")
    opp_list.add_argument("--file", type=Path, help="Opportunities YAML (default: config/opportunities.yaml)")
    opp_list.add_argument("--json", action="store_true")
    opp_list.set_defaults(func=cmd_opportunities_list, chapter_sponsored=None)

    opp_add = opp_sub.add_parser("add", help="Post a new opportunity for officer approval")
    opp_add.add_argument("--title", required=True)
    opp_add.add_argument("--location", required=True)
    opp_add.add_argument("--date", required=True, type=parse_date_arg)
    opp_add.add_argument("--time")
    opp_add.add_argument("--description", default="")
    opp_add.add_argument("--latitude", type=float)
    opp_add.add_argument("--longitude", type=float)
    opp_add.add_argument("--chapter-sponsored", action="store_true")
    opp_add.add_argument("--impact", default="Medium", choices=["High", "Medium", "Low"])
    opp_add.add_argument("--hours-estimate")
    opp_add.add_argument("--organizer", default="")
    opp_add.add_argument("--contact-email")
    opp_add.add_argument("--signup-url")
    opp_add.add_argument("--file", type=Path)
    opp_add.set_defaults(func=cmd_opportunities_add)

    form_link = subparsers.add_parser("form-link", help="Print the official recordation form for a grade")
    form_link.add_argument("--grade", required=True)
    form_link.set_defaults(func=cmd_form_link)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    app_logger = AppLogger(log_level=args.log_level, log_file=args.log_file, command=args.command)

    try:
        settings = load_settings()
        return args.func(args, settings, app_logger)
    except ConfigurationError as e:
        app_logger.warning(f"Configuration error: {e}")
        console.print(f"[red]Configuration error:[/red] {e}")
        return EXIT_CONFIG
    except SubmissionValidationError as e:
        console.print(f"[red]{e.field}:[/red] {e.message}")
        return EXIT_REJECTED
    except (LedgerUnavailableError, LedgerWriteError) as e:
        console.print(f"[red]{e}[/red]")
        return EXIT_REJECTED
    except HoursError as e:
        app_logger.error("Command failed", exception=e)
        console.print(f"[red]{e}[/red]")
        return EXIT_REJECTED
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return EXIT_REJECTED
    finally:
        summary = app_logger.get_error_summary()
        if summary["total_errors"] or summary["total_warnings"]:
            app_logger.debug("Run summary", errors=summary["total_errors"], warnings=summary["total_warnings"])


if __name__ == "__main__":
    sys.exit(main())
