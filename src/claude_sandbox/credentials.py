from __future__ import annotations

import json
import logging
import subprocess

from claude_sandbox.errors import MalformedCredential, MissingToken, NoCredential


KEYCHAIN_COMMAND = "security"
KEYCHAIN_SERVICE = "Claude Code-credentials"
OAUTH_RECORD_KEY = "claudeAiOauth"
ACCESS_TOKEN_KEY = "accessToken"

LOGGER = logging.getLogger("claude_sandbox")


def read_keychain_secret(service: str = KEYCHAIN_SERVICE) -> str:
    """Return the trimmed password stored under ``service`` in the login keychain."""
    LOGGER.debug("Reading keychain service: %s", service)
    try:
        result = subprocess.run(
            [KEYCHAIN_COMMAND, "find-generic-password", "-s", service, "-w"],
            check=False,
            capture_output=True,
        )
    except OSError:
        result = None

    secret = ""
    if result is not None and result.returncode == 0:
        secret = result.stdout.decode("utf-8", errors="replace").strip()
    if not secret:
        raise NoCredential(
            "No OAuth token found in keychain. "
            "Authenticate using the official Claude CLI first: claude auth login"
        )
    return secret


def parse_access_token(raw: str) -> str:
    try:
        record = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise MalformedCredential("Failed to parse keychain credentials as JSON") from exc

    oauth = record.get(OAUTH_RECORD_KEY) if isinstance(record, dict) else None
    token = oauth.get(ACCESS_TOKEN_KEY) if isinstance(oauth, dict) else None
    if not isinstance(token, str) or not token:
        raise MissingToken(f"No {ACCESS_TOKEN_KEY} found in keychain credentials")
    return token


def resolve_access_token() -> str:
    return parse_access_token(read_keychain_secret())
