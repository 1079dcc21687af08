"""Command line entry point for the legacy produce migration."""

from __future__ import annotations

import json
import sys
import tomllib
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError

from .config import AppConfig, load_config, resolve_path
from .migration import MigrationExecutor, MigrationReport, MigrationRunConfig
from .storage import LocalDataStore

app = typer.Typer(help="Migrate legacy produce records into approved stockings")

_console_sink_id: int | None = None


def _default_config_path() -> Path:
    repo_root = Path(__file__).resolve().parents[1]
    return repo_root / "config" / "example.toml"


def _exit(code: int) -> None:
    raise typer.Exit(code)


def _load_app_config(config_path: Path | None) -> tuple[AppConfig, Path]:
    if config_path is None:
        default = _default_config_path()
        if not default.exists():
            logger.info("No configuration file found; using built-in defaults")
            return AppConfig(), Path.cwd()
        config_path = default
    config_path = config_path.resolve()
    logger.info("Loading configuration from {}", config_path)
    return load_config(AppConfig, config_path), config_path.parent


def _configure_logging(config: AppConfig, base_dir: Path) -> list[int]:
    """Apply the configured console level and attach the optional file sink."""

    global _console_sink_id
    if _console_sink_id is not None:
        logger.remove(_console_sink_id)
        _console_sink_id = logger.add(sys.stderr, level=config.logging_level)

    sink_ids: list[int] = []
    log_file = resolve_path(config.log_file, base_dir)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(
            logger.add(
                log_file,
                rotation="5 MB",
                retention=5,
                serialize=True,
                level="INFO",
            )
        )
    return sink_ids


def _report_destination(
    report: MigrationReport,
    config: AppConfig,
    data_root: Path,
    report_path: Path | None,
) -> Path | None:
    if report_path is not None:
        return report_path.resolve()
    if report.dry_run or report.fatal or not config.migration.write_report:
        return None
    report_dir = config.migration.report_dir
    if not report_dir.is_absolute():
        report_dir = data_root / report_dir
    return report_dir / f"migration-{report.run_id}.json"


@app.command()
def migrate(
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Path to the TOML configuration file (defaults to config/example.toml)",
    ),
    data_root: Path | None = typer.Option(
        None,
        "--data-root",
        help="Override the configured data root",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Run the full pipeline without writing stockings, occupancy or legacy flags",
    ),
    admin_id: str | None = typer.Option(
        None,
        "--admin-id",
        help="Approver recorded on every migrated stocking (defaults to the first record's owner)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the structured report as JSON"),
    report_path: Path | None = typer.Option(
        None,
        "--report-path",
        help="Write the JSON report to this path",
    ),
) -> None:
    """Migrate eligible legacy produce into approved stockings."""

    try:
        app_config, base_dir = _load_app_config(config)
        resolved_root = data_root.resolve() if data_root else resolve_path(app_config.data_root, base_dir)
    except (FileNotFoundError, tomllib.TOMLDecodeError, ValidationError, EnvironmentError) as exc:
        logger.error("Cannot load configuration: {}", exc)
        _exit(1)
        return
    assert resolved_root is not None

    sink_ids = _configure_logging(app_config, base_dir)
    try:
        run_config = MigrationRunConfig.from_settings(
            app_config.migration,
            dry_run=dry_run,
            admin_id=admin_id,
        )
        logger.info("Using data root {}", resolved_root)
        store = LocalDataStore(resolved_root)
        executor = MigrationExecutor(run_config, store.as_stores(claims=run_config.use_claims))
        report = executor.run()

        if as_json:
            typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        else:
            typer.echo(report.render_text())

        destination = _report_destination(report, app_config, resolved_root, report_path)
        if destination is not None:
            try:
                report.write_json(destination)
            except OSError as exc:
                logger.error("Failed to write migration report to {}: {}", destination, exc)
    finally:
        for sink_id in sink_ids:
            logger.remove(sink_id)

    if report.fatal:
        _exit(1)


def main(argv: list[str] | None = None) -> int:
    """Entry point compatible with setuptools console scripts."""

    try:
        result = app(args=argv, standalone_mode=False)
    except typer.Exit as exc:  # pragma: no cover - Typer translates exit codes
        return exc.exit_code
    if isinstance(result, int):
        return result
    return 0


def entrypoint() -> None:
    """Console script: route logs to stderr, then run :func:`main`."""

    global _console_sink_id
    logger.remove()
    _console_sink_id = logger.add(sys.stderr, level="INFO")
    raise SystemExit(main())


if __name__ == "__main__":
    entrypoint()
