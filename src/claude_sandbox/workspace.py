from __future__ import annotations

import logging
import os
from importlib import resources
from pathlib import Path

from claude_sandbox.errors import AlreadyInitialized, FilesystemError


SANDBOX_DIR_NAME = ".claude-sandbox"
CONTAINERFILE_NAME = "Containerfile"
TEMPLATE_FILE_NAMES = (CONTAINERFILE_NAME, "claude.json", "settings.json", "CLAUDE.md")

LOGGER = logging.getLogger("claude_sandbox")


def template_files() -> list[tuple[str, str]]:
    """Return the canonical workspace files as ordered ``(name, content)`` pairs."""
    templates = resources.files("claude_sandbox") / "templates"
    return [(name, templates.joinpath(name).read_text(encoding="utf-8")) for name in TEMPLATE_FILE_NAMES]


def current_dir() -> Path:
    try:
        return Path(os.getcwd())
    except OSError as exc:
        raise FilesystemError(f"Failed to get current directory: {exc}") from exc


def workspace_dir(cwd: Path | None = None) -> Path:
    return (cwd or current_dir()) / SANDBOX_DIR_NAME


def containerfile_path(sandbox_dir: Path) -> Path:
    return sandbox_dir / CONTAINERFILE_NAME


def initialize(sandbox_dir: Path, force: bool = False) -> Path:
    """Write the template files into ``sandbox_dir``.

    Refuses to touch an initialized workspace unless ``force`` is set. Files are
    written one at a time, so an I/O error part way through leaves the earlier
    files in place.
    """
    if not force and containerfile_path(sandbox_dir).exists():
        raise AlreadyInitialized(f"{SANDBOX_DIR_NAME} already initialized. Use --force to overwrite.")

    try:
        sandbox_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Failed to create {SANDBOX_DIR_NAME} directory: {exc}") from exc

    for name, content in template_files():
        target = sandbox_dir / name
        LOGGER.debug("Writing workspace template %s", target)
        try:
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(f"Failed to write {SANDBOX_DIR_NAME}/{name}: {exc}") from exc

    LOGGER.info("Initialized workspace in %s", sandbox_dir)
    return sandbox_dir
