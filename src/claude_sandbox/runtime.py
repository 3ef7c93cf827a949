from __future__ import annotations

import logging
import os
import signal
import subprocess
from pathlib import Path

from claude_sandbox.credentials import resolve_access_token
from claude_sandbox.errors import BuildFailed, LaunchFailed, RuntimeUnavailable, WorkspaceNotInitialized
from claude_sandbox.workspace import CONTAINERFILE_NAME, SANDBOX_DIR_NAME, containerfile_path, current_dir, workspace_dir


RUNTIME_COMMAND = "container"
IMAGE_NAME = "claude-sandbox"
CONTAINER_CODE_PATH = "/home/claude/code"
TOKEN_ENV_VAR = "CLAUDE_CODE_OAUTH_TOKEN"

LOGGER = logging.getLogger("claude_sandbox")


def check_runtime_available() -> None:
    LOGGER.debug("Checking %s CLI availability", RUNTIME_COMMAND)
    try:
        result = subprocess.run(
            [RUNTIME_COMMAND, "--version"],
            check=False,
            capture_output=True,
        )
    except OSError as exc:
        LOGGER.debug("Unable to start %s --version: %s", RUNTIME_COMMAND, exc)
        raise RuntimeUnavailable("Apple container CLI not found.") from exc
    if result.returncode != 0:
        LOGGER.debug("%s --version exited with %s", RUNTIME_COMMAND, result.returncode)
        raise RuntimeUnavailable("Apple container CLI not found.")
    LOGGER.debug("%s CLI available", RUNTIME_COMMAND)


def build_command(sandbox_dir: Path) -> list[str]:
    return [
        RUNTIME_COMMAND,
        "build",
        "-t",
        IMAGE_NAME,
        "-f",
        str(containerfile_path(sandbox_dir)),
        str(sandbox_dir),
    ]


def build_image(cwd: Path | None = None) -> None:
    """Build the sandbox image from the workspace under ``cwd``.

    Output from the runtime streams straight to the terminal.
    """
    check_runtime_available()
    sandbox_dir = workspace_dir(cwd)
    containerfile = containerfile_path(sandbox_dir)
    if not containerfile.exists():
        raise WorkspaceNotInitialized(
            f"{SANDBOX_DIR_NAME}/{CONTAINERFILE_NAME} not found. "
            "Run 'claude-sandbox init' first to initialize the workspace."
        )

    cmd = build_command(sandbox_dir)
    LOGGER.debug("Building image '%s' from %s", IMAGE_NAME, containerfile)
    try:
        result = subprocess.run(cmd, check=False)
    except OSError as exc:
        raise BuildFailed(f"Failed to execute: {RUNTIME_COMMAND}: {exc}") from exc
    if result.returncode != 0:
        raise BuildFailed(f"{RUNTIME_COMMAND} build failed with exit code {result.returncode}")
    LOGGER.info("Image '%s' built successfully", IMAGE_NAME)


def run_command(*, cpus: int, memory_gb: int, host_dir: Path) -> list[str]:
    # The token is passed by name only; its value travels in the environment.
    return [
        RUNTIME_COMMAND,
        "run",
        "--rm",
        "-it",
        "-e",
        TOKEN_ENV_VAR,
        "-m",
        f"{memory_gb}G",
        "-c",
        str(cpus),
        "-v",
        f"{host_dir}:{CONTAINER_CODE_PATH}",
        IMAGE_NAME,
    ]


def _handoff(cmd: list[str], env: dict[str, str]) -> None:
    if os.name == "nt":
        try:
            process = subprocess.Popen(cmd, env=env)
        except (OSError, ValueError) as exc:
            raise LaunchFailed(f"Failed to exec {RUNTIME_COMMAND} run: {exc}") from exc
        # Ctrl-C belongs to the session; the child decides when to exit.
        previous_handler = signal.signal(signal.SIGINT, signal.SIG_IGN)
        try:
            returncode = process.wait()
        finally:
            signal.signal(signal.SIGINT, previous_handler)
        raise SystemExit(returncode)

    try:
        os.execvpe(cmd[0], cmd, env)
    except (OSError, ValueError) as exc:
        raise LaunchFailed(f"Failed to exec {RUNTIME_COMMAND} run: {exc}") from exc


def run_session(cpus: int, memory_gb: int, cwd: Path | None = None) -> None:
    """Replace this process with an interactive sandbox session.

    Returns only by raising: on success the runtime takes over the terminal and
    its exit status becomes ours.
    """
    check_runtime_available()
    token = resolve_access_token()

    LOGGER.debug("Running with cpus=%s, memory=%sG", cpus, memory_gb)
    host_dir = (cwd or current_dir()).resolve()
    cmd = run_command(cpus=cpus, memory_gb=memory_gb, host_dir=host_dir)

    env = dict(os.environ)
    env[TOKEN_ENV_VAR] = token
    del token

    LOGGER.debug("exec: %s (token redacted)", " ".join(cmd))
    _handoff(cmd, env)
