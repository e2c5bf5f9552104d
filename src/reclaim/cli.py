"""CLI interface for Reclaim."""

from __future__ import annotations

import json
import logging
import time

import click

from reclaim import __version__
from reclaim.core.cancellation import CancellationToken
from reclaim.core.engine import ScanEngine, build_engine
from reclaim.core.registry import UnknownCategoryError, parse_category_id
from reclaim.models.category import CATEGORIES, CategoryId, SafetyLevel
from reclaim.models.scan_result import ScanResult, ScanSummary
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.settings import Settings
from reclaim.utils import bytes_to_human, format_elapsed

_SAFETY_COLORS = {
    SafetyLevel.SAFE: "green",
    SafetyLevel.MODERATE: "yellow",
    SafetyLevel.RISKY: "red",
}


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _parse_ids(values: tuple[str, ...]) -> list[CategoryId]:
    try:
        return [parse_category_id(v) for v in values]
    except UnknownCategoryError as exc:
        raise click.BadParameter(exc.args[0], param_hint="CATEGORY_IDS") from None


def _sorted_results(summary: ScanSummary) -> list[ScanResult]:
    return sorted(summary.results, key=lambda r: r.category.id.value)


def _run_scan(
    engine: ScanEngine,
    ids: list[CategoryId],
    options: ScanOptions,
    *,
    parallel: bool,
    concurrency: int,
    on_progress=None,
) -> ScanSummary:
    """Run the scan; Ctrl-C cancels the options token and aborts."""
    try:
        if ids:
            return engine.run_scans(
                ids, options, parallel=parallel, concurrency=concurrency, on_progress=on_progress
            )
        return engine.run_all_scans(
            options, parallel=parallel, concurrency=concurrency, on_progress=on_progress
        )
    except KeyboardInterrupt:
        if options.token is not None:
            options.token.cancel("interrupted")
        click.echo("\nInterrupted, stopping scanners...", err=True)
        raise click.Abort() from None


def _result_to_dict(result: ScanResult) -> dict:
    return {
        "category": result.category.id.value,
        "name": result.category.name,
        "safety_level": result.category.safety_level.value,
        "total_bytes": result.total_bytes,
        "item_count": len(result.items),
        "error": result.error or None,
        "items": [
            {
                "path": str(item.path),
                "name": item.name,
                "size_bytes": item.size_bytes,
                "is_directory": item.is_directory,
                "modified_at": item.modified_at,
            }
            for item in result.items
        ],
    }


def _echo_result(result: ScanResult) -> None:
    name = result.category.name
    if result.error:
        click.echo(f"  {click.style('✗', fg='red')} {name:28s} — {result.error}")
    elif result.total_bytes > 0:
        click.echo(
            f"  {click.style('✓', fg='green')} {name:28s} — "
            f"{click.style(bytes_to_human(result.total_bytes), fg='green', bold=True)} "
            f"({len(result.items):,} items)"
        )
    else:
        click.echo(f"  {click.style('·', fg='bright_black')} {name:28s} — nothing to clean")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.version_option(version=__version__, prog_name="reclaim")
def main(verbose: int) -> None:
    """Reclaim — find and remove what is wasting your disk space."""
    _setup_logging(verbose)


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(as_json: bool) -> None:
    """List the known cleanup categories."""
    ignored = Settings().filter_config().ignored_categories
    categories = sorted(CATEGORIES.values(), key=lambda c: c.id.value)

    if as_json:
        data = [
            {
                "id": c.id.value,
                "name": c.name,
                "safety_level": c.safety_level.value,
                "description": c.description,
                "ignored": c.id.value in ignored,
            }
            for c in categories
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for category in categories:
        safety = click.style(f"[{category.safety_level.value}]", fg=_SAFETY_COLORS[category.safety_level])
        ignored_tag = click.style(" [ignored]", fg="bright_black") if category.id.value in ignored else ""
        click.echo(f"  {click.style(category.id.value, fg='cyan', bold=True):25s}  {category.name} {safety}{ignored_tag}")
        if category.description:
            click.echo(f"    {category.description}")


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("category_ids", nargs=-1)
@click.option("--sequential", is_flag=True, help="Run scanners one at a time")
@click.option("--concurrency", type=int, default=None, help="Maximum scanners running at once")
@click.option("--days-old", type=int, default=None, help="Age threshold in days for age-based categories")
@click.option("--min-size", type=int, default=None, help="Size threshold in bytes for size-based categories")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(
    category_ids: tuple[str, ...],
    sequential: bool,
    concurrency: int | None,
    days_old: int | None,
    min_size: int | None,
    as_json: bool,
) -> None:
    """Scan for cleanable files (preview only, never deletes)."""
    ids = _parse_ids(category_ids)
    settings = Settings()
    engine = build_engine(settings.filter_config())
    options = ScanOptions(
        days_old=days_old if days_old is not None else settings.get("scan.days_old"),
        min_size=min_size if min_size is not None else settings.get("scan.min_size"),
        ignored_folders=tuple(engine.filter_config.ignored_folders),
        token=CancellationToken(),
    )
    parallel = settings.parallel and not sequential
    limit = concurrency if concurrency is not None else settings.concurrency

    def on_progress(completed: int, total: int, scanner: Scanner, result: ScanResult, elapsed_ms: float) -> None:
        if not as_json:
            click.echo(
                f"  [{completed}/{total}] {scanner.name:28s} "
                f"{click.style(format_elapsed(elapsed_ms / 1000), fg='bright_black')}",
                err=True,
            )

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning...\n", err=True)

    started = time.monotonic()
    try:
        summary = _run_scan(engine, ids, options, parallel=parallel, concurrency=limit, on_progress=on_progress)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--concurrency") from None
    elapsed = time.monotonic() - started

    results = _sorted_results(summary)
    if as_json:
        data = {
            "total_bytes": summary.total_bytes,
            "total_items": summary.total_items,
            "results": [_result_to_dict(r) for r in results],
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo()
    for result in results:
        _echo_result(result)
    click.echo(
        f"\nTotal reclaimable: {click.style(bytes_to_human(summary.total_bytes), fg='green', bold=True)} "
        f"in {format_elapsed(elapsed)}\n"
    )


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("category_ids", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be cleaned without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(category_ids: tuple[str, ...], yes: bool, dry_run: bool, as_json: bool) -> None:
    """Scan and clean the selected categories."""
    ids = _parse_ids(category_ids)
    if as_json and not (yes or dry_run):
        raise click.UsageError("--json requires --yes or --dry-run")

    settings = Settings()
    engine = build_engine(settings.filter_config())
    options = ScanOptions(
        days_old=settings.get("scan.days_old"),
        min_size=settings.get("scan.min_size"),
        ignored_folders=tuple(engine.filter_config.ignored_folders),
        token=CancellationToken(),
    )
    summary = _run_scan(engine, ids, options, parallel=settings.parallel, concurrency=settings.concurrency)
    actionable = [r for r in _sorted_results(summary) if r.items]

    if not actionable:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "results": []}))
        else:
            click.echo("Nothing to clean.")
        return

    if not as_json:
        click.echo()
        for result in actionable:
            _echo_result(result)
        click.echo(f"\nTotal: {click.style(bytes_to_human(summary.total_bytes), fg='green', bold=True)}\n")

    if not yes and not dry_run:
        if not click.confirm("Clean all of the above?", default=False):
            click.echo("Aborted.")
            return

    clean_summary = engine.clean(actionable, dry_run=dry_run)

    if as_json:
        data = [
            {
                "category": r.category.id.value,
                "freed_bytes": r.freed_bytes,
                "cleaned_items": r.cleaned_items,
                "failed": r.failed,
                "errors": r.errors,
            }
            for r in clean_summary.results
        ]
        status = "dry_run" if dry_run else "cleaned"
        click.echo(json.dumps({"status": status, "results": data}, indent=2))
        return

    for result in clean_summary.results:
        name = result.category.name
        if result.errors:
            click.echo(
                f"  {click.style('!', fg='yellow')} {name:28s} — "
                f"freed {bytes_to_human(result.freed_bytes)}, {len(result.errors)} error(s)"
            )
        else:
            click.echo(
                f"  {click.style('✓', fg='green')} {name:28s} — "
                f"freed {click.style(bytes_to_human(result.freed_bytes), fg='green', bold=True)}"
            )

    label = "Would free" if dry_run else "Total freed"
    click.echo(f"\n{label}: {click.style(bytes_to_human(clean_summary.total_freed_bytes), fg='green', bold=True)}\n")
    if dry_run:
        click.echo("(dry run — no files were deleted)")


# ── ignore ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("values", nargs=-1, required=True)
@click.option("--folder", "kind", flag_value="folder", help="Ignore everything below the given folders")
@click.option("--category", "kind", flag_value="category", help="Ignore whole categories by id")
def ignore(values: tuple[str, ...], kind: str | None) -> None:
    """Add paths, folders or categories to the ignore lists."""
    settings = Settings()
    try:
        if kind == "folder":
            settings.add_ignored(folders=values)
        elif kind == "category":
            settings.add_ignored(categories=values)
        else:
            settings.add_ignored(paths=values)
    except UnknownCategoryError as exc:
        raise click.BadParameter(exc.args[0], param_hint="VALUES") from None
    click.echo(f"Updated {settings.path}")
