from __future__ import annotations

import click


class SandboxError(click.ClickException):
    """Base class for failures reported by a claude-sandbox subcommand."""


class AlreadyInitialized(SandboxError):
    pass


class FilesystemError(SandboxError):
    pass


class RuntimeUnavailable(SandboxError):
    pass


class WorkspaceNotInitialized(SandboxError):
    pass


class BuildFailed(SandboxError):
    pass


class NoCredential(SandboxError):
    pass


class MalformedCredential(SandboxError):
    pass


class MissingToken(SandboxError):
    pass


class LaunchFailed(SandboxError):
    pass
