from __future__ import annotations

import logging
import os
import sys

import click

from claude_sandbox import __version__
from claude_sandbox.runtime import IMAGE_NAME, build_image, run_session
from claude_sandbox.workspace import SANDBOX_DIR_NAME, initialize, workspace_dir


LOG_LEVEL_CHOICES = ("critical", "error", "warning", "info", "debug")
DEFAULT_LOG_LEVEL = "warning"
MIN_RESOURCE_UNITS = 2
MAX_RESOURCE_UNITS = 8
DEFAULT_CPUS = 2
DEFAULT_MEMORY_GB = 4

LOGGER = logging.getLogger("claude_sandbox")
LOGGER.addHandler(logging.NullHandler())


def _normalize_log_level(value: object) -> str:
    normalized = str(value or "").strip().lower()
    if normalized in LOG_LEVEL_CHOICES:
        return normalized
    return DEFAULT_LOG_LEVEL


def _configure_logging(level: str) -> None:
    normalized = _normalize_log_level(level)
    handler = logging.StreamHandler(sys.__stderr__)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    LOGGER.handlers.clear()
    LOGGER.addHandler(handler)
    LOGGER.setLevel(getattr(logging, normalized.upper(), logging.WARNING))
    LOGGER.propagate = False


@click.group(help="Launch Claude Code in a sandboxed Apple container VM.")
@click.version_option(version=__version__, prog_name="claude-sandbox")
@click.option(
    "--log-level",
    default=lambda: os.environ.get("CLAUDE_SANDBOX_LOG_LEVEL", DEFAULT_LOG_LEVEL),
    show_default=DEFAULT_LOG_LEVEL,
    type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
    help="Logging verbosity (also read from CLAUDE_SANDBOX_LOG_LEVEL).",
)
def main(log_level: str) -> None:
    _configure_logging(log_level)


@main.command(help="Initialize workspace with default Containerfile")
@click.option("--force", is_flag=True, default=False, help=f"Overwrite existing files in {SANDBOX_DIR_NAME}/")
def init(force: bool) -> None:
    initialize(workspace_dir(), force=force)
    click.echo(f"Initialized workspace in {SANDBOX_DIR_NAME}/")


@main.command(help="Build container image from the Containerfile in the current directory")
def build() -> None:
    build_image()
    click.echo(f"Image '{IMAGE_NAME}' built successfully")


@main.command(help="Run Claude Code in the container")
@click.option(
    "--cpus",
    default=DEFAULT_CPUS,
    show_default=True,
    type=click.IntRange(MIN_RESOURCE_UNITS, MAX_RESOURCE_UNITS),
    help=f"Number of CPUs ({MIN_RESOURCE_UNITS}-{MAX_RESOURCE_UNITS})",
)
@click.option(
    "--memory",
    default=DEFAULT_MEMORY_GB,
    show_default=True,
    type=click.IntRange(MIN_RESOURCE_UNITS, MAX_RESOURCE_UNITS),
    help=f"Memory in GB ({MIN_RESOURCE_UNITS}-{MAX_RESOURCE_UNITS})",
)
def run(cpus: int, memory: int) -> None:
    run_session(cpus, memory)


if __name__ == "__main__":
    main()
