"""Command-line interface for pagesync."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

# Verify core dependencies
try:
    import aiohttp  # noqa: F401
    import bs4  # noqa: F401
    import html2text  # noqa: F401
    import pydantic  # noqa: F401
    import rich  # noqa: F401
    import yaml
except ImportError as e:
    print(f"\nERROR: Missing required dependency: {e.name}", file=sys.stderr)
    print("\nPagesync requires all core dependencies to be installed.", file=sys.stderr)
    print("\nRecommended fixes:", file=sys.stderr)
    print("  1. For pipx users: pipx reinstall pagesync --force", file=sys.stderr)
    print("  2. For pip users: pip install --upgrade --force-reinstall pagesync", file=sys.stderr)
    print("  3. For development: pip install -e .[dev]", file=sys.stderr)
    sys.exit(1)

from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core.extractor import Extractor
from .exceptions import ConfigError
from .logging_config import setup_logging
from .models.config import PagesyncConfig
from .models.events import EventType
from .sync import SyncBack

DEFAULT_CONFIG_FILE = Path("pagesync.yaml")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be written without touching any file",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    common.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output",
    )

    parser = argparse.ArgumentParser(
        prog="pagesync",
        description="Extract website content to editable markdown and sync edits back into the HTML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract a page into ./content
  pagesync extract https://example.com

  # Extract several pages of a JavaScript-rendered site
  pagesync extract https://example.com --pages https://example.com/about https://example.com/team --js

  # Extract a local static site
  pagesync local ./site -o ./content

  # Preview the edits that would be written back
  pagesync sync --markdown-dir ./content --html-dir ./site --dry-run

  # Apply them (the HTML is backed up first)
  pagesync sync --markdown-dir ./content --html-dir ./site

  # Write a starter configuration and check it
  pagesync init
  pagesync validate pagesync.yaml
        """,
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # extract
    extract = subparsers.add_parser(
        "extract",
        parents=[common],
        help="Extract pages of a website to markdown",
    )
    extract.add_argument("url", help="Site URL to extract")
    extract.add_argument(
        "--pages",
        nargs="+",
        metavar="URL",
        help="Explicit pages to extract instead of the site URL alone",
    )
    _add_output_arguments(extract)

    render_group = extract.add_argument_group("rendering")
    render_group.add_argument(
        "--js",
        "--javascript",
        action="store_true",
        dest="javascript",
        help="Enable JavaScript rendering (requires Playwright)",
    )
    render_group.add_argument(
        "--wait-for",
        type=str,
        metavar="SELECTOR",
        help="Wait for this selector before capturing the page",
    )
    render_group.add_argument(
        "--wait-time",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Extra time to wait after the page has loaded",
    )
    render_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )

    # local
    local = subparsers.add_parser(
        "local",
        parents=[common],
        help="Extract a local HTML file or directory to markdown",
    )
    local.add_argument("path", type=Path, help="HTML file or directory")
    _add_output_arguments(local)

    # sync
    sync = subparsers.add_parser(
        "sync",
        parents=[common],
        help="Write edited markdown back into the original HTML",
    )
    sync.add_argument(
        "--markdown-dir",
        "-m",
        type=Path,
        default=None,
        metavar="DIR",
        help="Directory of edited markdown files (default: ./content)",
    )
    sync.add_argument(
        "--html-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Directory of original HTML files (default: current directory)",
    )
    sync.add_argument(
        "--backup-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Directory receiving the pre-sync backup (default: ./backup)",
    )

    # init
    init = subparsers.add_parser("init", help="Write a default configuration file")
    init.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=DEFAULT_CONFIG_FILE,
        help=f"Configuration file to create (default: {DEFAULT_CONFIG_FILE})",
    )
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file",
    )

    # validate
    validate = subparsers.add_parser("validate", help="Check a configuration file")
    validate.add_argument("config_file", type=Path, help="Configuration file to check")

    return parser


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=None,
        metavar="DIR",
        help="Output directory (default: ./content)",
    )
    output_group.add_argument(
        "--no-readme",
        action="store_true",
        help="Do not write the README.md index",
    )
    output_group.add_argument(
        "--no-xpath",
        action="store_true",
        help="Omit fallback XPaths from unit comments",
    )
    output_group.add_argument(
        "--plain",
        action="store_true",
        help="Write plain markdown without provenance comments (cannot be synced back)",
    )


def load_config_data(path: Optional[Path]) -> dict[str, Any]:
    """
    Read a YAML configuration file into a dict.

    Raises:
        ConfigError: If the file is missing or not a YAML mapping
    """
    if path is None:
        return {}
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def build_config(args: argparse.Namespace) -> PagesyncConfig:
    """Merge the config file with command-line overrides."""
    data = load_config_data(args.config)

    def section(name: str) -> dict[str, Any]:
        return data.setdefault(name, {})

    if args.command == "extract":
        data["site_url"] = args.url
        if args.pages:
            data["pages"] = args.pages
        if args.javascript:
            section("render")["javascript"] = True
        if args.wait_for:
            section("render")["wait_for_selector"] = args.wait_for
        if args.wait_time is not None:
            section("render")["wait_time"] = args.wait_time
        if args.user_agent:
            section("render")["user_agent"] = args.user_agent
    elif args.command == "local":
        data["local_path"] = str(args.path)

    if args.command in ("extract", "local"):
        if args.output_dir:
            section("output")["directory"] = str(args.output_dir)
        if args.no_readme:
            section("output")["generate_readme"] = False
        if args.no_xpath:
            section("output")["include_xpath"] = False
        if args.plain:
            section("output")["provenance"] = False
        if args.dry_run:
            data["dry_run"] = True

    if args.command == "sync":
        if args.markdown_dir:
            section("sync")["markdown_dir"] = str(args.markdown_dir)
        if args.html_dir:
            section("sync")["html_dir"] = str(args.html_dir)
        if args.backup_dir:
            section("sync")["backup_dir"] = str(args.backup_dir)
        if args.dry_run:
            section("sync")["dry_run"] = True

    # Log level
    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return PagesyncConfig.model_validate(data)


def run_extract(args: argparse.Namespace, config: PagesyncConfig, console: Console) -> int:
    """Run an extraction and print a summary."""

    async def run() -> int:
        if not args.quiet:
            console.print(f"[bold blue]pagesync[/bold blue] v{__version__}")
            console.print(f"Source: {config.local_path or config.site_url}")
            console.print(f"Output: {config.output.directory}")
            if config.dry_run:
                console.print("[yellow]Dry run: no files will be written[/yellow]")
            console.print()

        try:
            async with Extractor(config) as extractor:
                if args.quiet:
                    async for _ in extractor.run():
                        pass
                else:
                    with Progress(
                        SpinnerColumn(),
                        TextColumn("[progress.description]{task.description}"),
                        console=console,
                        transient=True,
                    ) as progress:
                        task = progress.add_task("Starting...", total=None)

                        async for event in extractor.run():
                            if event.type == EventType.STARTED:
                                progress.update(task, description=f"[cyan]{event.message}")
                            elif event.type == EventType.PAGE_PROGRESS:
                                progress.update(
                                    task,
                                    description=f"[cyan]Extracting {event.current}/{event.total}: {event.url}",
                                )
                            elif event.type == EventType.PAGE_SAVED and args.verbose:
                                console.print(f"[green]Saved:[/green] {event.output_path} ({event.unit_count} units)")
                            elif event.type == EventType.PAGE_SKIPPED:
                                console.print(f"[yellow]Skipped:[/yellow] {event.url} - {event.message}")
                            elif event.type == EventType.PAGE_FAILED:
                                console.print(f"[red]Failed:[/red] {event.url} - {event.error}")
                            elif event.type == EventType.README_GENERATED:
                                console.print(f"[green]Index:[/green] {event.output_path}")
                            elif event.type == EventType.COMPLETED:
                                progress.update(task, description=f"[green]{event.message}")

                # Print stats
                stats = extractor.stats
                if not args.quiet:
                    console.print()
                    console.print("[bold]Results:[/bold]")
                    console.print(f"  Pages: {stats.pages_total}")
                    console.print(f"  Pages extracted: {stats.pages_extracted}")
                    console.print(f"  Pages skipped: {stats.pages_skipped}")
                    console.print(f"  Pages failed: {stats.pages_failed}")
                    console.print(f"  Content units: {stats.units_extracted}")
                    console.print(f"  Duration: {stats.duration_seconds:.1f}s")
                    if extractor.result is not None:
                        console.print(f"  Extraction ID: {extractor.result.extraction_id}")

                return 0 if stats.pages_failed == 0 else 1

        except Exception as e:
            console.print(f"[red]Error:[/red] {e}")
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    return asyncio.run(run())


def run_sync(args: argparse.Namespace, config: PagesyncConfig, console: Console) -> int:
    """Reconcile edited markdown into the HTML and print the changes."""
    sync_config = config.sync
    if not args.quiet:
        console.print(f"[bold blue]pagesync[/bold blue] v{__version__}")
        console.print(f"Markdown: {sync_config.markdown_dir}")
        console.print(f"HTML: {sync_config.html_dir}")
        if sync_config.dry_run:
            console.print("[yellow]Dry run: no files will be written[/yellow]")
        console.print()

    try:
        result = asyncio.run(SyncBack(sync_config).run())
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    if not args.quiet:
        for change in result.changes:
            console.print(f"[green]Changed:[/green] {change.file} {change.selector}")
            if args.verbose:
                console.print(f"    - {change.old_text}")
                console.print(f"    + {change.new_text}")
        for warning in result.warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning.file}:{warning.line_number} {warning.message}")
        for label, error in result.file_errors.items():
            console.print(f"[red]Failed:[/red] {label} - {error}")

        verb = "Would update" if result.dry_run else "Updated"
        console.print()
        console.print("[bold]Results:[/bold]")
        console.print(f"  Files processed: {result.files_processed}")
        console.print(f"  {verb}: {result.files_updated}")
        console.print(f"  Changes: {len(result.changes)}")
        console.print(f"  Warnings: {len(result.warnings)}")
        console.print(f"  Errors: {result.files_with_errors}")
        if result.backup_path is not None:
            console.print(f"  Backup: {result.backup_path}")

    return 0 if result.files_with_errors == 0 else 1


def run_init(args: argparse.Namespace, console: Console) -> int:
    """Write a default configuration file."""
    if args.path.exists() and not args.force:
        console.print(f"[red]Error:[/red] {args.path} already exists (use --force to overwrite)")
        return 1

    config = PagesyncConfig(site_url="https://example.com")
    args.path.parent.mkdir(parents=True, exist_ok=True)
    args.path.write_text(config.to_yaml(), encoding="utf-8")
    console.print(f"[green]Wrote[/green] {args.path}")
    return 0


def run_validate(args: argparse.Namespace, console: Console) -> int:
    """Load a configuration file and report problems."""
    try:
        config = PagesyncConfig.model_validate(load_config_data(args.config_file))
    except (ConfigError, ValidationError) as e:
        console.print(f"[red]Invalid:[/red] {e}")
        return 1

    source = config.local_path or config.site_url or "(none)"
    console.print(f"[green]Valid:[/green] {args.config_file}")
    console.print(f"  Source: {source}")
    console.print(f"  Pages: {len(config.page_urls())}")
    console.print(f"  Output: {config.output.directory}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console()

    if args.command is None:
        parser.print_help()
        return 1
    if args.command == "init":
        return run_init(args, console)
    if args.command == "validate":
        return run_validate(args, console)

    try:
        config = build_config(args)
    except (ConfigError, ValidationError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(level=config.log_level, log_file=config.log_file)

    if args.command == "sync":
        return run_sync(args, config, console)
    return run_extract(args, config, console)


if __name__ == "__main__":
    sys.exit(main())
