"""CLI entry point: the `trust-sync` command."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from trust_sync.core.base import StoreAction, SyncReport
from trust_sync.core.config import InstallConfig
from trust_sync.core.errors import SyncError, TrustStoreError
from trust_sync.core.log import configure_logging
from trust_sync.core.sync import install_file, uninstall_file

EXIT_USAGE = 1
EXIT_FAILURE = 2

console = Console()
err_console = Console(stderr=True)

ACTION_COLORS = {
    StoreAction.INSTALLED: "green",
    StoreAction.UNINSTALLED: "green",
    StoreAction.UNCHANGED: "dim",
    StoreAction.SKIPPED: "yellow",
    StoreAction.FAILED: "red bold",
}


class TrustSyncCommand(click.Command):
    """Command that exits with status 1 on usage errors instead of click's 2."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise


def _render_report(report: SyncReport) -> None:
    """Print one line per store with Rich."""
    for result in report.results:
        style = ACTION_COLORS.get(result.action, "")
        line = f"  [{style}]{result.action.value.upper()}[/{style}] {result.target.value}"
        if result.detail and result.action != StoreAction.FAILED:
            line += f" [dim]({result.detail})[/dim]"
        console.print(line)


@click.command(
    cls=TrustSyncCommand,
    context_settings={"help_option_names": ["-h", "-help", "--help"]},
)
@click.argument("cert_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "-uninstall", "--uninstall", "uninstall", is_flag=True, help="Uninstall the given certificate."
)
@click.option("-java", "--java", "java", is_flag=True, help="Also use the Java keystore.")
@click.option(
    "-firefox", "--firefox", "firefox", is_flag=True, help="Also use the Firefox/NSS databases."
)
@click.option(
    "-no-system", "--no-system", "no_system", is_flag=True, help="Leave the system store alone."
)
@click.option("-all", "--all", "all_", is_flag=True, help="Shorthand for -java -firefox.")
@click.option("-prefix", "--prefix", "prefix", default=None, help="Alias prefix for store entries.")
@click.option(
    "-config",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML configuration file.",
)
@click.option("-v", "--verbose", "verbose", is_flag=True, help="Enable debug logging.")
def cli(
    cert_file: Path,
    uninstall: bool,
    java: bool,
    firefox: bool,
    no_system: bool,
    all_: bool,
    prefix: str | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Install CERT_FILE (PEM or DER) into the system, NSS and Java trust stores."""
    configure_logging(verbose)

    overrides: dict[str, Any] = {
        "with_java": java or all_,
        "with_firefox": firefox or all_,
        "with_no_system": no_system,
        "verbose": verbose,
        "prefix": prefix,
    }
    config = InstallConfig.load(config_path=config_path, **overrides)
    run = uninstall_file if uninstall else install_file

    try:
        report = run(cert_file, config)
    except SyncError as e:
        _render_report(e.report)
        for target, err in e.errors.items():
            err_console.print(f"[red]{target.value}:[/red] {escape(str(err))}")
        sys.exit(EXIT_FAILURE)
    except (TrustStoreError, OSError) as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(EXIT_FAILURE)

    _render_report(report)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
