"""Command line interface for appfetch."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from loguru import logger

from .acquisition import AcquisitionError, ApplicationAcquirer
from .config import AppConfig, load_config
from .config.inspector import check_config, explain_config


@dataclass(slots=True)
class CLIState:
    """Holds shared state between Typer commands."""

    config_path: Path | None
    _config: AppConfig | None = None

    def ensure_config(self) -> AppConfig:
        if self._config is None:
            if self.config_path is None:
                logger.debug("No configuration file given; using defaults")
                self._config = AppConfig()
            else:
                logger.info("Loading configuration from {}", self.config_path)
                self._config = load_config(AppConfig, self.config_path)
        return self._config


app = typer.Typer(help="Fetch, unpack and cache application bundles")
config_app = typer.Typer(help="Validate and document configuration files")
app.add_typer(config_app, name="config")


def _normalize_format(value: str) -> str:
    return value.lower()


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):  # pragma: no cover - defensive guard
        raise RuntimeError("CLI context is not initialised")
    return state


def _exit(code: int) -> None:
    raise typer.Exit(code)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        help="Path to the TOML configuration file",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Route log records at this level and above to stderr",
    ),
) -> None:
    """Initialise CLI state and optional logging."""

    if log_level is not None:
        logger.remove()
        logger.add(sys.stderr, level=log_level.upper())
    ctx.obj = CLIState(config_path=config.resolve() if config is not None else None)


@app.command(help="Resolve application descriptors to local bundle paths")
def acquire(
    ctx: typer.Context,
    descriptors: list[str] = typer.Argument(..., help="Application URLs or local paths"),
    ext: list[str] = typer.Option(
        None,
        "--ext",
        "-e",
        help="Supported bundle extension (repeatable). Defaults to config.default_extensions",
    ),
    cleanup: bool = typer.Option(
        False,
        "--cleanup/--no-cleanup",
        help="Delete every acquired artifact before exiting",
    ),
) -> None:
    state = _get_state(ctx)
    config = state.ensure_config()
    extensions = list(ext) if ext else list(config.default_extensions)

    acquirer = ApplicationAcquirer.from_config(config)
    failed = False
    try:
        for descriptor in descriptors:
            try:
                resolved = acquirer.acquire(descriptor, extensions)
            except AcquisitionError as exc:
                logger.error("Cannot acquire '{}': {}", descriptor, exc)
                failed = True
                continue
            typer.echo(str(resolved))
    finally:
        if cleanup:
            acquirer.shutdown()

    if failed:
        _exit(1)


@config_app.command(help="Validate the configuration file")
def check(
    ctx: typer.Context,
    format: str = typer.Option(  # noqa: A002 - match CLI option name
        "text",
        "--format",
        case_sensitive=False,
        help="Output format for validation results",
        callback=_normalize_format,
    ),
) -> None:
    state = _get_state(ctx)
    if state.config_path is None:
        logger.error("No configuration file given; pass --config")
        _exit(2)
        return

    result, exit_code, _ = check_config(state.config_path)

    if format == "json":
        print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
        _exit(exit_code)

    if result["status"] == "ok":
        logger.info("Configuration OK: {}", result["config_path"])
        for warning in result["warnings"]:
            logger.warning(warning)
    else:
        error: dict[str, Any] = result["error"]
        logger.error(
            "Configuration error ({}) for {}: {}",
            error["type"],
            result["config_path"],
            error["message"],
        )
        for detail in error.get("details", []):
            location = detail["loc"] or "<root>"
            logger.error("  - {}: {} ({})", location, detail["message"], detail["type"])

    _exit(exit_code)


@config_app.command(help="Describe available configuration fields")
def explain(
    format: str = typer.Option(  # noqa: A002 - match CLI option name
        "text",
        "--format",
        case_sensitive=False,
        help="Output format for configuration schema",
        callback=_normalize_format,
    ),
) -> None:
    fields = explain_config()

    if format == "json":
        print(json.dumps({"fields": fields}, indent=2, ensure_ascii=False, default=str))
        return

    logger.info("Configuration schema ({} fields):", len(fields))
    for field in fields:
        default_value = field["default"]
        if isinstance(default_value, (dict, list)):
            default_repr = json.dumps(default_value, ensure_ascii=False, default=str)
        else:
            default_repr = str(default_value)
        logger.info(
            "  - {name}: type={type}, required={required}, default={default}, description={description}",
            name=field["name"],
            type=field["type"],
            required="yes" if field["required"] else "no",
            default=default_repr,
            description=field["description"] or "(no description)",
        )


def main(argv: list[str] | None = None) -> int:
    """Entry point compatible with setuptools console scripts."""

    try:
        result = app(args=argv, standalone_mode=False)
    except typer.Exit as exc:  # pragma: no cover - Typer translates exit codes
        return exc.exit_code
    if isinstance(result, int):
        return result
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
