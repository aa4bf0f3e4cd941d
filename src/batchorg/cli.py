"""Command line interface for batchorg."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from click.core import ParameterSource
from pydantic import ValidationError
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from batchorg.classification import (
    BatchClassifier,
    BatchSchedule,
    ClassificationError,
    ClassifierClient,
    ClassifierConfigError,
    check_connectivity,
)
from batchorg.config import (
    BatchorgConfig,
    ConfigError,
    ConfigManager,
    OrganizationRules,
    resolve_with_precedence,
)
from batchorg.ingestion import DirectoryScanner, InputFile, InputFileError
from batchorg.logging_setup import configure_logging
from batchorg.organization import (
    ArchiveBuilder,
    BatchSnapshot,
    FileStats,
    OrganizationEngine,
    OrganizedFile,
    compute_stats,
    format_file_size,
)
from batchorg.state import MissingStateError, StateError, StateRepository

LOGGER = logging.getLogger(__name__)

console = Console()

LOG_FILENAME = "batchorg.log"


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    if details is not None:
        message = f"{message} ({details})"
    raise click.ClickException(message) from original


def _handle_unexpected(exc: Exception, *, action: str, json_output: bool, debug: bool) -> None:
    """Report an unexpected failure, attaching diagnostics only in debug mode."""
    LOGGER.info("Unexpected error while %s", action, exc_info=exc)
    if debug:
        _handle_cli_error(
            f"Unexpected error while {action}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__, "message": str(exc)},
            original=exc,
        )
    _handle_cli_error(
        f"Unexpected error while {action}. Re-run with --debug for details.",
        code="internal_error",
        json_output=json_output,
        original=exc,
    )


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return

    if summary_only and mode not in {"summary", "warning", "error"}:
        return

    console.print(message)


def _format_summary_line(command: str, target: str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _load_config(ctx: click.Context) -> tuple[ConfigManager, BatchorgConfig, bool]:
    """Load configuration, configure logging and resolve the debug flag."""
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load()
    debug = bool((ctx.obj or {}).get("debug")) or config.cli.debug
    configure_logging(config.logging, log_path=manager.home / LOG_FILENAME, verbose=debug)
    return manager, config, debug


def _debug_requested(ctx: click.Context) -> bool:
    return bool((ctx.find_root().obj or {}).get("debug"))


def _output_modes(
    ctx: click.Context,
    config: BatchorgConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Resolve quiet/summary modes from flags and CLI defaults.

    Raises:
        click.ClickException: If the resolved modes conflict.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _build_transport(config: BatchorgConfig):
    """Create the language-model transport for ``config``.

    Raises:
        ClassifierConfigError: If credentials or model settings are unusable.
    """
    from batchorg.classification.transport import LanguageModelTransport

    return LanguageModelTransport(config.llm)


def _build_classifier_client(config: BatchorgConfig) -> ClassifierClient:
    return ClassifierClient(
        _build_transport(config),
        settings=config.llm,
        options=config.classification,
    )


def _build_batch_classifier(config: BatchorgConfig) -> Optional[BatchClassifier]:
    """Return a batch classifier, or None when the service is not configured."""
    try:
        client = _build_classifier_client(config)
    except ClassifierConfigError as exc:
        LOGGER.warning("AI classification unavailable: %s", exc)
        return None
    return BatchClassifier(client, schedule=BatchSchedule.from_options(config.classification))


def _load_rules(path: Path) -> OrganizationRules:
    """Load a rules blob (JSON or YAML, snake_case or camelCase keys).

    Raises:
        ConfigError: If the file cannot be read or does not describe valid rules.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read rules file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Rules file {path} must contain a mapping.")
    try:
        return OrganizationRules.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid rules in {path}: {exc}") from exc


def _file_payload(record: OrganizedFile) -> dict[str, Any]:
    payload = record.model_dump(mode="json", exclude={"original_file"})
    payload["name"] = record.original_file.name
    payload["size_bytes"] = record.original_file.size_bytes
    payload["source"] = (
        record.original_file.path.as_posix() if record.original_file.path is not None else None
    )
    return payload


def _stats_table(stats: FileStats, *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Files", str(stats.total_files))
    table.add_row("Total size", format_file_size(stats.total_size))
    table.add_row("Duplicates", str(stats.duplicates))
    table.add_row("AI classified", str(sum(stats.ai_classifications.values())))
    table.add_row("Average confidence", f"{stats.average_confidence:.2f}")
    table.add_row("Fallback classifications", str(stats.fallback_classifications))
    for name, count in sorted(stats.file_types.items()):
        table.add_row(f"Type: {name}", str(count))
    for name, count in sorted(stats.categories.items()):
        table.add_row(f"Folder: {name}", str(count))
    for name, count in sorted(stats.ai_classifications.items()):
        table.add_row(f"AI category: {name}", str(count))
    return table


def _summary_metrics(stats: FileStats) -> dict[str, Any]:
    return {
        "files": stats.total_files,
        "duplicates": stats.duplicates,
        "classified": sum(stats.ai_classifications.values()),
        "size": format_file_size(stats.total_size),
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="batchorg")
@click.option("--debug", is_flag=True, help="Show diagnostic details for unexpected errors.")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """batchorg sorts batches of files into a virtual folder tree.

    Files are routed by custom rules, optional AI classification, or their
    date, type and size, then exported as a ZIP archive.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("-r", "--recursive", is_flag=True, help="Include all subdirectories.")
@click.option("--ai/--no-ai", "ai", default=None, help="Enable or disable AI classification.")
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON or YAML file with organization rules.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Archive destination (defaults to cli.archive_name in the current directory).",
)
@click.option("--dry-run", is_flag=True, help="Preview the layout without writing anything.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the batch.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def org(
    ctx: click.Context,
    paths: tuple[Path, ...],
    recursive: bool,
    ai: Optional[bool],
    rules_path: Optional[Path],
    output: Optional[Path],
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Organize the files found under PATHS and export them as a ZIP archive."""
    debug = _debug_requested(ctx)
    try:
        manager, config, debug = _load_config(ctx)
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )

        rules = _load_rules(rules_path) if rules_path is not None else config.rules
        if ai is not None:
            rules = rules.model_copy(update={"ai_classification": ai})

        max_size_bytes = None
        if config.processing.max_file_size_mb > 0:
            max_size_bytes = config.processing.max_file_size_mb * 1024 * 1024
        scanner = DirectoryScanner(
            recursive=recursive or config.processing.recurse_directories,
            include_hidden=config.processing.process_hidden_files,
            follow_symlinks=config.processing.follow_symlinks,
            max_size_bytes=max_size_bytes,
        )
        files = scanner.collect(paths)

        classifier = _build_batch_classifier(config) if rules.ai_classification else None
        organized = OrganizationEngine(classifier).organize(files, rules)
        stats = compute_stats(organized)

        archive_path: Optional[Path] = None
        if not dry_run:
            destination = output or Path.cwd() / config.cli.archive_name
            archive_path = ArchiveBuilder().write(organized, destination.expanduser())
            repository = StateRepository(manager.home)
            history = repository.load_history(missing_ok=True).push(
                BatchSnapshot(rules=rules, files=organized),
                limit=config.cli.history_limit,
            )
            repository.save_history(history)

        if json_output:
            console.print_json(
                data={
                    "context": {
                        "paths": [path.as_posix() for path in paths],
                        "dry_run": dry_run,
                        "ai_classification": rules.ai_classification,
                        "archive": archive_path.as_posix() if archive_path else None,
                    },
                    "stats": stats.model_dump(mode="json"),
                    "files": [_file_payload(record) for record in organized],
                    "skipped": [path.as_posix() for path in scanner.skipped],
                }
            )
            return

        table = Table(title="Organization preview" if dry_run else "Organized files")
        table.add_column("File", overflow="fold")
        table.add_column("Destination", overflow="fold")
        table.add_column("Size", justify="right")
        table.add_column("Duplicate")
        table.add_column("AI category")
        for record in organized:
            ai_label = "-"
            if record.ai_classification is not None:
                ai_label = (
                    f"{record.ai_classification.category} "
                    f"({record.ai_classification.confidence:.2f})"
                )
            table.add_row(
                record.original_file.name,
                record.organization_path,
                format_file_size(record.original_file.size_bytes),
                "yes" if record.is_duplicate else "",
                ai_label,
            )
        _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)

        for path in scanner.skipped:
            _emit_message(
                f"[yellow]Skipped {path}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if archive_path is not None:
            _emit_message(
                f"Archive written to {archive_path}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Organization", ", ".join(str(path) for path in paths), _summary_metrics(stats)
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except InputFileError as exc:
        _handle_cli_error(str(exc), code="input_error", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_unexpected(exc, action="organizing files", json_output=json_output, debug=debug)


@cli.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="Emit the classification as JSON.")
@click.pass_context
def classify(ctx: click.Context, file: Path, json_output: bool) -> None:
    """Classify a single FILE with the configured language model."""
    debug = _debug_requested(ctx)
    try:
        _, config, debug = _load_config(ctx)
        if not file.is_file():
            raise InputFileError(f"No file provided at {file}")
        input_file = InputFile.from_path(file)
        outcome = _build_classifier_client(config).classify(input_file)

        if outcome is None:
            reason = "Content too short to classify."
            if json_output:
                console.print_json(
                    data={"file": input_file.name, "outcome": None, "reason": reason}
                )
            else:
                console.print(f"[yellow]{input_file.name}: {reason}[/yellow]")
            return

        if json_output:
            console.print_json(
                data={"file": input_file.name, "outcome": outcome.model_dump(mode="json")}
            )
            return

        result = outcome.classification
        table = Table(title=f"Classification for {input_file.name}")
        table.add_column("Field")
        table.add_column("Value", overflow="fold")
        table.add_row("Kind", outcome.kind)
        table.add_row("Category", result.category)
        table.add_row("Subcategory", result.subcategory or "-")
        table.add_row("Confidence", f"{result.confidence:.2f}")
        table.add_row("Suggested folder", result.suggested_folder)
        table.add_row("Reasoning", result.reasoning or "-")
        if result.fallback:
            table.add_row("Fallback", "yes")
        if outcome.kind == "document":
            metadata = outcome.analysis.metadata
            table.add_row("Words", str(metadata.word_count))
            table.add_row("Pages", str(metadata.page_count))
        console.print(table)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except InputFileError as exc:
        _handle_cli_error(str(exc), code="input_error", json_output=json_output, original=exc)
    except ClassifierConfigError as exc:
        _handle_cli_error(
            str(exc), code="classifier_config_error", json_output=json_output, original=exc
        )
    except ClassificationError as exc:
        _handle_cli_error(
            str(exc), code="classification_error", json_output=json_output, original=exc
        )
    except Exception as exc:
        _handle_unexpected(exc, action="classifying the file", json_output=json_output, debug=debug)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit statistics as JSON.")
@click.pass_context
def stats(ctx: click.Context, json_output: bool) -> None:
    """Show statistics for the most recent organize batch."""
    debug = _debug_requested(ctx)
    try:
        manager, _, debug = _load_config(ctx)
        snapshot = StateRepository(manager.home).load_history().current
        if snapshot is None:
            raise MissingStateError("No organize batch recorded yet. Run `batchorg org` first.")

        result = compute_stats(snapshot.files)
        if json_output:
            console.print_json(
                data={
                    "created_at": snapshot.created_at.isoformat(),
                    "stats": result.model_dump(mode="json"),
                }
            )
            return
        console.print(
            _stats_table(result, title=f"Batch organized {snapshot.created_at:%Y-%m-%d %H:%M}")
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_unexpected(exc, action="computing statistics", json_output=json_output, debug=debug)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the restored batch as JSON.")
@click.pass_context
def undo(ctx: click.Context, json_output: bool) -> None:
    """Discard the most recent organize batch and restore the previous one."""
    debug = _debug_requested(ctx)
    try:
        manager, _, debug = _load_config(ctx)
        repository = StateRepository(manager.home)
        history = repository.load_history()
        if not len(history):
            raise MissingStateError("Nothing to undo: the batch history is empty.")
        history, restored = history.undo()
        repository.save_history(history)

        if json_output:
            console.print_json(
                data={
                    "remaining": len(history),
                    "restored": (
                        {
                            "created_at": restored.created_at.isoformat(),
                            "files": [_file_payload(record) for record in restored.files],
                            "stats": compute_stats(restored.files).model_dump(mode="json"),
                        }
                        if restored is not None
                        else None
                    ),
                }
            )
            return

        if restored is None:
            console.print("[green]Undo complete; no earlier batch remains.[/green]")
            return
        console.print(
            _format_summary_line(
                "Undo",
                f"batch from {restored.created_at:%Y-%m-%d %H:%M}",
                _summary_metrics(compute_stats(restored.files)),
            )
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_unexpected(
            exc, action="undoing the last batch", json_output=json_output, debug=debug
        )


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the connectivity report as JSON.")
@click.pass_context
def ping(ctx: click.Context, json_output: bool) -> None:
    """Check that the classification service is reachable with the configured key."""
    debug = _debug_requested(ctx)
    try:
        _, config, debug = _load_config(ctx)
        report = check_connectivity(config.llm)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except Exception as exc:
        _handle_unexpected(
            exc, action="checking connectivity", json_output=json_output, debug=debug
        )
        return

    if json_output:
        console.print_json(data=report.model_dump(mode="json"))
    elif report.ok:
        console.print(f"[green]{report.message}[/green]")
        if report.response:
            console.print(f"Model replied: {report.response}")
    else:
        console.print(f"[red]{report.message}[/red]")
    if not report.ok:
        raise SystemExit(1)


@cli.group()
def config() -> None:
    """Manage batchorg configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    data = loaded.model_dump(mode="python")
    if data["llm"].get("api_key"):
        data["llm"]["api_key"] = "***"
    yaml_text = yaml.safe_dump(data, sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'llm.temperature'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=BatchorgConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The header timestamp always changes; compare the body only.
    diff = list(
        difflib.unified_diff(
            [line for line in before if not line.startswith("#")],
            [line for line in after if not line.startswith("#")],
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
