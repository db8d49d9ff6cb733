"""Command line interface entry point."""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path

import click

from moqt_interop_runner.configuration import (
    DEFAULT_REGISTRY_FILENAME,
    DEFAULT_REGISTRY_SCAFFOLD_FILENAME,
    DEFAULT_RESULTS_DIRNAME,
    DEFAULT_TIMEOUT_SECONDS,
    SUPPORTED_TRANSPORT_FILTERS,
    ConfigurationError,
    resolve_invocation_settings,
    write_placeholder_registry,
)
from moqt_interop_runner.orchestration import (
    InvocationOutcome,
    PlannedRun,
    run_interop_invocation,
)
from moqt_interop_runner.registry_model import describe_implementations, load_registry
from moqt_interop_runner.results_ledger import (
    LedgerReadError,
    LedgerWriteError,
    load_ledger,
    write_ledger_workbook,
)
from moqt_interop_runner.run_execution import InteropPair, Run

_RULE = "━" * 62


class CliError(Exception):
    """Custom CLI error."""


class TerminalProgress:
    """Prints pair-loop progress in the style of the interop shell runner."""

    def pair_skipped(self, pair: InteropPair) -> None:
        click.secho(f"Skipping {pair.label} (no shared version)", fg="yellow")

    def pair_selected(self, pair: InteropPair, version: str, target_count: int) -> None:
        click.secho(f"Testing: {pair.label} (at {version})", fg="yellow")
        if target_count == 0:
            click.echo("  no targets left after filtering")

    def run_started(self, planned: PlannedRun) -> None:
        click.secho(_RULE, fg="blue")
        click.secho(f"Test: {planned.pair.label}", fg="blue")
        click.echo(f"Version: {planned.version} | Mode: {planned.target.mode}")
        click.echo(f"Target: {planned.target.reference}")
        click.secho(_RULE, fg="blue")

    def run_finished(self, run: Run) -> None:
        if run.passed:
            click.secho(f"✓ PASSED {run.client} → {run.relay} ({run.mode})", fg="green")
        else:
            click.secho(
                f"✗ FAILED {run.client} → {run.relay} ({run.mode}, exit code: {run.exit_code})",
                fg="red",
            )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="moqt-interop-runner")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """MoQT client x relay interop test runner."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


_registry_option = click.option(
    "--registry",
    "registry_path",
    default=DEFAULT_REGISTRY_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the implementation registry (JSON or YAML)",
)


@cli.command(name="run")
@_registry_option
@click.option(
    "--results-dir",
    "results_root",
    default=DEFAULT_RESULTS_DIRNAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Directory receiving one timestamped results folder per invocation",
)
@click.option("--docker-only", is_flag=True, default=False, help="Only test Docker images.")
@click.option("--remote-only", is_flag=True, default=False, help="Only test remote endpoints.")
@click.option(
    "--transport",
    type=click.Choice(SUPPORTED_TRANSPORT_FILTERS),
    default=None,
    help="Only test remote endpoints using this transport.",
)
@click.option(
    "--quic-only", is_flag=True, default=False, help="Only test raw QUIC endpoints (moqt://)."
)
@click.option(
    "--webtransport-only",
    is_flag=True,
    default=False,
    help="Only test WebTransport endpoints (https://).",
)
@click.option(
    "--target-version",
    default=None,
    help="Target draft version, e.g. draft-14 (default: registry current_target).",
)
@click.option("--relay", "relay_filter", default=None, help="Only test this relay implementation.")
@click.option(
    "--list", "list_only", is_flag=True, default=False, help="List implementations and exit."
)
@click.option(
    "--timeout",
    "timeout_seconds",
    default=DEFAULT_TIMEOUT_SECONDS,
    show_default=True,
    type=int,
    help="Seconds one run may take before it is recorded as failed.",
)
@click.option(
    "--jobs",
    "parallelism",
    default=1,
    show_default=True,
    type=int,
    help="Number of runs executed concurrently.",
)
# pylint: disable=too-many-arguments
def run_tests(
    registry_path: str,
    results_root: str,
    docker_only: bool,
    remote_only: bool,
    transport: str | None,
    quic_only: bool,
    webtransport_only: bool,
    target_version: str | None,
    relay_filter: str | None,
    list_only: bool,
    timeout_seconds: int,
    parallelism: int,
) -> int:
    """Run every client against every relay at one selected draft version."""
    try:
        if list_only:
            _echo_implementations(registry_path)
            return 0
        settings = resolve_invocation_settings(
            registry_path=registry_path,
            results_root=results_root,
            docker_only=docker_only,
            remote_only=remote_only,
            transport=_resolve_transport_filter(transport, quic_only, webtransport_only),
            target_version=target_version,
            relay_filter=relay_filter,
            timeout_seconds=timeout_seconds,
            parallelism=parallelism,
        )
        previous_handler = signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
        try:
            outcome = run_interop_invocation(settings, progress=TerminalProgress())
        finally:
            signal.signal(signal.SIGTERM, previous_handler)
    except (ConfigurationError, LedgerWriteError) as exc:
        raise CliError(str(exc)) from exc
    _echo_summary(outcome)
    return outcome.exit_status


# pylint: enable=too-many-arguments


@cli.command(name="list")
@_registry_option
def list_implementations(registry_path: str) -> None:
    """List available implementations with their versions and roles."""
    try:
        _echo_implementations(registry_path)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc


@cli.command(name="export-report")
@click.option(
    "--ledger",
    "ledger_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to a summary.json ledger written by `run`",
)
@click.option(
    "--output",
    "output_path",
    required=False,
    type=click.Path(path_type=str),
    help="Workbook to write (default: summary.xlsx next to the ledger)",
)
def export_report(ledger_path: str, output_path: str | None) -> None:
    """Export a recorded ledger to an .xlsx workbook."""
    destination = Path(output_path) if output_path else Path(ledger_path).with_suffix(".xlsx")
    try:
        written = write_ledger_workbook(load_ledger(ledger_path), destination)
    except (LedgerReadError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(written))


@cli.command(name="generate-registry")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_REGISTRY_SCAFFOLD_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML registry template to write",
)
def generate_registry(output_path: str) -> None:
    """Generate a placeholder YAML implementation registry with guidance comments."""
    try:
        resolved_output = write_placeholder_registry(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


def _resolve_transport_filter(
    transport: str | None, quic_only: bool, webtransport_only: bool
) -> str | None:
    requested = {
        value
        for value, enabled in (
            (transport, transport is not None),
            ("quic", quic_only),
            ("webtransport", webtransport_only),
        )
        if enabled
    }
    if len(requested) > 1:
        raise ConfigurationError("Only one transport filter may be selected.")
    return requested.pop() if requested else None


def _echo_implementations(registry_path: str) -> None:
    for line in describe_implementations(load_registry(registry_path)):
        click.echo(line)


def _echo_summary(outcome: InvocationOutcome) -> None:
    tally = outcome.tally
    click.echo("")
    click.secho("TEST SUMMARY", fg="blue", bold=True)
    click.echo(f"Target version: {outcome.target_version}")
    click.echo(f"Total:   {tally.total}")
    click.secho(f"Passed:  {tally.passed}", fg="green")
    click.secho(f"Failed:  {tally.failed}", fg="red")
    if outcome.skipped_pairs:
        click.secho(
            f"Skipped (no shared version): {', '.join(outcome.skipped_pairs)}", fg="yellow"
        )
    if outcome.cancelled:
        click.secho("Interrupted before all runs completed.", fg="yellow")
    click.echo(f"Results saved to: {outcome.results_dir}")
    click.echo(f"Summary JSON: {outcome.ledger_path}")


def _raise_keyboard_interrupt(signum, frame) -> None:  # pylint: disable=unused-argument
    raise KeyboardInterrupt


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        result = cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
