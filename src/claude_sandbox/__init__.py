"""Launch Claude Code in a sandboxed Apple container VM."""

__version__ = "0.1.0"
