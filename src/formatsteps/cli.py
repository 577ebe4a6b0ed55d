# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line host compiling the configured pipeline."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from .config import ConfiguredPipeline, build_pipeline, load_config
from .errors import FormatStepsError
from .logging import fail as core_fail
from .logging import ok as core_ok
from .logging import warn as core_warn
from .provisioning import CatalogProvisioner
from .state import CACHE_DIRNAME, compare, load_fingerprints, save_fingerprints

app = typer.Typer(help="Compile formatter configuration into cacheable steps.", no_args_is_help=True)


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around the console helpers respecting emoji settings."""

    use_emoji: bool

    def fail(self, message: str) -> None:
        """Render ``message`` as a failure line."""

        core_fail(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        """Render ``message`` as a warning line."""

        core_warn(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        """Render ``message`` as a success line."""

        core_ok(message, use_emoji=self.use_emoji)


RootOption = Annotated[Path, typer.Option("--root", "-r", help="Project root.")]
EmojiOption = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Decorate output with emoji.")]


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING, format="%(name)s: %(message)s")


def _compile(root: Path) -> ConfiguredPipeline:
    """Load configuration under ``root`` and compile it.

    Raises:
        CLIError: If configuration or compilation fails.
    """

    resolved = root.resolve()
    try:
        config = load_config(resolved)
        return build_pipeline(config, resolved, provisioner=CatalogProvisioner())
    except FormatStepsError as exc:
        raise CLIError(str(exc)) from exc


@app.callback()
def main(debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging.")] = False) -> None:
    _configure_logging(debug)


@app.command("plan")
def plan_command(
    root: RootOption = Path("."),
    as_json: Annotated[bool, typer.Option("--json", help="Emit JSON instead of a table.")] = False,
    use_emoji: EmojiOption = False,
) -> None:
    """Show the compiled steps and their fingerprints."""

    logger = CLILogger(use_emoji=use_emoji)
    try:
        configured = _compile(root)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(exc.exit_code) from exc

    pipeline = configured.pipeline
    if as_json:
        payload = {
            "pipeline": pipeline.fingerprint(),
            "steps": [
                {
                    "slot": index,
                    "name": step.name,
                    "fingerprint": step.fingerprint(),
                    "snapshot": step.snapshot.describe(),
                }
                for index, step in enumerate(pipeline)
            ],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))
        return

    if not len(pipeline):
        logger.warn("No formatter steps configured")
        return
    table = Table(title=f"Pipeline {pipeline.fingerprint()[:12]}")
    table.add_column("Slot", justify="right")
    table.add_column("Step")
    table.add_column("Version")
    table.add_column("Fingerprint")
    for index, step in enumerate(pipeline):
        table.add_row(str(index), step.name, step.tool.version, step.fingerprint()[:12])
    Console().print(table)


@app.command("check")
def check_command(
    root: RootOption = Path("."),
    record: Annotated[bool, typer.Option("--record", help="Store the current fingerprints.")] = False,
    use_emoji: EmojiOption = False,
) -> None:
    """Report which steps changed since fingerprints were last recorded."""

    logger = CLILogger(use_emoji=use_emoji)
    try:
        configured = _compile(root)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(exc.exit_code) from exc

    cache_dir = root.resolve() / CACHE_DIRNAME
    statuses = compare(configured.pipeline, load_fingerprints(cache_dir))
    stale = [status for status in statuses if not status.up_to_date]
    for status in stale:
        if status.removed:
            logger.warn(f"{status.name} (slot {status.index}) was removed")
        else:
            logger.warn(f"{status.name} (slot {status.index}) needs a rerun")
    if record:
        save_fingerprints(cache_dir, configured.pipeline)
        logger.ok(f"Recorded {len(configured.pipeline)} step fingerprints")
        return
    if stale:
        raise typer.Exit(1)
    logger.ok("All steps up to date")


@app.command("versions")
def versions_command() -> None:
    """List the default version of every known formatter."""

    provisioner = CatalogProvisioner()
    for tool in provisioner.tools:
        typer.echo(f"{tool} {provisioner.default_version(tool)}")


__all__ = ["CLIError", "CLILogger", "app"]
