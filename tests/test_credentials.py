from __future__ import annotations

import json
import subprocess
import unittest
from pathlib import Path
from unittest.mock import patch

import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from claude_sandbox import credentials
from claude_sandbox.errors import MalformedCredential, MissingToken, NoCredential


def _completed(returncode: int = 0, stdout: bytes = b"") -> subprocess.CompletedProcess[bytes]:
    return subprocess.CompletedProcess(args=["security"], returncode=returncode, stdout=stdout, stderr=b"")


class KeychainReadTests(unittest.TestCase):
    def test_queries_fixed_service_and_trims_output(self) -> None:
        with patch("claude_sandbox.credentials.subprocess.run", return_value=_completed(stdout=b'  {"a": 1}\n')) as run:
            secret = credentials.read_keychain_secret()

        self.assertEqual(secret, '{"a": 1}')
        cmd = run.call_args.args[0]
        self.assertEqual(cmd, ["security", "find-generic-password", "-s", "Claude Code-credentials", "-w"])

    def test_empty_output_is_no_credential(self) -> None:
        with patch("claude_sandbox.credentials.subprocess.run", return_value=_completed(stdout=b"  \n")):
            with self.assertRaises(NoCredential) as ctx:
                credentials.read_keychain_secret()
        self.assertIn("claude auth login", ctx.exception.message)

    def test_nonzero_exit_is_no_credential(self) -> None:
        result = _completed(returncode=44, stdout=b"partial")
        with patch("claude_sandbox.credentials.subprocess.run", return_value=result):
            with self.assertRaises(NoCredential):
                credentials.read_keychain_secret()

    def test_missing_security_binary_is_no_credential(self) -> None:
        with patch("claude_sandbox.credentials.subprocess.run", side_effect=FileNotFoundError("security")):
            with self.assertRaises(NoCredential):
                credentials.read_keychain_secret()


class AccessTokenParseTests(unittest.TestCase):
    def test_extracts_nested_token_and_ignores_other_fields(self) -> None:
        raw = json.dumps(
            {
                "claudeAiOauth": {
                    "accessToken": "sk-ant-oat01-test",
                    "refreshToken": "ignored",
                    "expiresAt": 1,
                },
                "other": [1, 2, 3],
            }
        )
        self.assertEqual(credentials.parse_access_token(raw), "sk-ant-oat01-test")

    def test_non_json_is_malformed(self) -> None:
        with self.assertRaises(MalformedCredential):
            credentials.parse_access_token("not json at all")

    def test_deeply_nested_payload_is_malformed(self) -> None:
        with self.assertRaises(MalformedCredential):
            credentials.parse_access_token("[" * 200000 + "]" * 200000)

    def test_missing_or_empty_token_is_missing_token(self) -> None:
        cases = [
            {},
            {"claudeAiOauth": {}},
            {"claudeAiOauth": {"accessToken": ""}},
            {"claudeAiOauth": {"accessToken": 12345}},
            {"claudeAiOauth": "sk-ant"},
            {"accessToken": "top-level-does-not-count"},
            ["claudeAiOauth"],
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                with self.assertRaises(MissingToken):
                    credentials.parse_access_token(json.dumps(payload))

    def test_resolve_access_token_combines_read_and_parse(self) -> None:
        stdout = json.dumps({"claudeAiOauth": {"accessToken": "tok"}}).encode("utf-8")
        with patch("claude_sandbox.credentials.subprocess.run", return_value=_completed(stdout=stdout)):
            self.assertEqual(credentials.resolve_access_token(), "tok")


if __name__ == "__main__":
    unittest.main()
