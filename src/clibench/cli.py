"""Command-line interface for clibench.

Subcommands:
    clibench run         Run the command sequence and record durations
    clibench table       Print the accumulated report as a comparison table
    clibench commands    List the command sequence of a profile
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from clibench import __version__
from clibench.bench.commands import (
    CommandSpec,
    Profile,
    default_profile,
    load_profile,
)
from clibench.logging import setup_logging

log = logging.getLogger("clibench")


def _load_profile_or_default(profile_path: Path | None) -> Profile:
    if profile_path is None:
        return default_profile()
    try:
        return load_profile(profile_path)
    except ValueError as exc:
        raise click.ClickException(f"Invalid profile {profile_path}: {exc}") from exc


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """clibench — time a command-line tool's operations across releases."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.argument(
    "install_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile defining the command sequence (default: built-in apm profile).",
)
@click.option(
    "--executable",
    type=click.Path(path_type=Path),
    default=None,
    help="Tool to run, instead of INSTALL_DIR/bin/<tool>.",
)
@click.option(
    "--shell/--no-shell",
    "use_shell",
    default=None,
    help="Run commands through the shell (default: only for Windows launchers).",
)
@click.option(
    "--version-label",
    type=str,
    default=None,
    help="Label to record durations under (default: version in package.json).",
)
@click.option(
    "--no-report",
    is_flag=True,
    default=False,
    help="Do not record this run in the report file.",
)
@click.option(
    "--target-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory for commands that run inside a project.",
)
@click.option(
    "--cache-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Cache directory removed before cold-cache commands.",
)
@click.option(
    "--report-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Report file (default: $CLIBENCH_REPORT or ~/clibench-report.json).",
)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
def run(  # noqa: PLR0913
    install_dir: Path | None,
    profile_path: Path | None,
    executable: Path | None,
    use_shell: bool | None,
    version_label: str | None,
    no_report: bool,
    target_dir: Path | None,
    cache_dir: Path | None,
    report_file: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run the benchmark against the installation in INSTALL_DIR.

    When INSTALL_DIR is omitted, the first existing directory among the
    profile's install candidates is used.

    \b
    Examples:
        # Benchmark the apm checkout in ~/src/atom/apm
        clibench run

        # Benchmark another checkout with a custom profile
        clibench run ~/src/apm-next --profile my-commands.yaml

        # Try a local build without touching the report
        clibench run --executable ./bin/apm --no-report
    """
    from clibench.bench.commands import (
        BenchConfig,
        find_first_directory,
        read_tool_version,
        resolve_executable,
    )
    from clibench.bench.display import format_run_summary
    from clibench.bench.results import ReportError, merge_and_persist
    from clibench.bench.runner import BenchRunner

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)
    profile = _load_profile_or_default(profile_path)

    try:
        if executable is None:
            if install_dir is None:
                install_dir = find_first_directory(*profile.install_candidates)
            executable, shell_default = resolve_executable(install_dir, profile.tool)
        else:
            shell_default = False

        if no_report:
            version: str | None = None
        elif version_label:
            version = version_label
        elif install_dir is not None:
            version = read_tool_version(install_dir)
        else:
            version = None
            log.warning("No version label; results will not be saved")

        if target_dir is None and any(c.run_in_target_directory for c in profile.commands):
            target_dir = find_first_directory(*profile.target_candidates)
    except (FileNotFoundError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    if cache_dir is None and profile.cache_dir:
        cache_dir = Path(profile.cache_dir).expanduser()

    config = BenchConfig(
        executable=executable,
        use_shell=shell_default if use_shell is None else use_shell,
        version=version,
        target_dir=target_dir,
        cache_dir=cache_dir,
        report_path=report_file,
    )
    log.info(">>> Testing %s %s at %s", profile.tool, version or "(unlabeled)", executable)

    try:
        report = BenchRunner(config, profile.commands).run()
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    click.echo()
    click.echo(format_run_summary(report))

    try:
        merge_and_persist(report, config.report_path)
    except ReportError as exc:
        log.error("Results of this run follow:\n%s", json.dumps(report.to_dict(), indent=2))
        click.echo(f"Error: {exc}", err=True)
        click.echo("The report file was left unchanged.", err=True)
        raise SystemExit(1) from exc
    except OSError as exc:
        click.echo(f"Error: could not save report: {exc}", err=True)
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# table
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--report-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Report file (default: $CLIBENCH_REPORT or ~/clibench-report.json).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: stdout).",
)
def table(report_file: Path | None, output: Path | None) -> None:
    """Print the report as a table comparing all recorded versions.

    The first version column is the baseline; other cells show the
    difference from it.
    """
    from clibench.bench.display import render_table
    from clibench.bench.results import ReportError, default_report_path, load_report

    path = report_file or default_report_path()
    if not path.exists():
        click.echo(f"Error: no report at {path}", err=True)
        raise SystemExit(1)
    try:
        data = load_report(path)
    except ReportError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    text = render_table(data)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Table written to {output}")
    else:
        click.echo(text)


# ---------------------------------------------------------------------------
# commands
# ---------------------------------------------------------------------------


def _describe_flags(spec: CommandSpec) -> str:
    flags = []
    if spec.omit_from_report:
        flags.append("not reported")
    if spec.clean_cache:
        flags.append("cold cache")
    if spec.run_in_target_directory:
        flags.append("in target dir")
    return f" [{', '.join(flags)}]" if flags else ""


@main.command("commands")
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile to list (default: built-in apm profile).",
)
def commands_cmd(profile_path: Path | None) -> None:
    """List the commands a profile runs, in order."""
    import shlex

    profile = _load_profile_or_default(profile_path)
    click.echo(f"Tool: {profile.tool} ({len(profile.commands)} commands)")
    for i, spec in enumerate(profile.commands, 1):
        click.echo(f"{i:3d}. {spec.identity}{_describe_flags(spec)}")
        click.echo(f"     {profile.tool} {shlex.join(spec.args)}")
