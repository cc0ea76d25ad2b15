"""Tests for SSH config parsing."""

from pathlib import Path

import pytest

from remoteops.config import SSHConfigParser


@pytest.fixture
def ssh_config(tmp_path: Path) -> Path:
    config_file = tmp_path / "config"
    config_file.write_text(
        """
# Production
Host db1 db2
    HostName 10.0.1.5
    User postgres
    Port 2222

Host web-*
    HostName web.internal
    User deploy
    IdentityFile ~/.ssh/deploy_key

Host broken
    Port not-a-number

Host *
    User fallback
"""
    )
    return config_file


def test_entries_in_file_order(ssh_config: Path) -> None:
    entries = SSHConfigParser(ssh_config).entries()

    assert [e.pattern for e in entries] == ["db1 db2", "web-*", "broken", "*"]


def test_resolve_exact_pattern_list(ssh_config: Path) -> None:
    entry = SSHConfigParser(ssh_config).resolve("db2")

    assert entry is not None
    assert entry.hostname == "10.0.1.5"
    assert entry.user == "postgres"
    assert entry.port == 2222


def test_resolve_wildcard_and_expand_identity(ssh_config: Path) -> None:
    entry = SSHConfigParser(ssh_config).resolve("web-3")

    assert entry is not None
    assert entry.user == "deploy"
    assert entry.identity_files == [str(Path.home() / ".ssh" / "deploy_key")]


def test_first_match_wins(ssh_config: Path) -> None:
    entry = SSHConfigParser(ssh_config).resolve("anything-else")

    assert entry is not None
    assert entry.pattern == "*"
    assert entry.user == "fallback"


def test_invalid_port_is_ignored(ssh_config: Path) -> None:
    entry = SSHConfigParser(ssh_config).resolve("broken")

    assert entry is not None
    assert entry.port is None


def test_missing_file_has_no_entries(tmp_path: Path) -> None:
    parser = SSHConfigParser(tmp_path / "missing")

    assert parser.entries() == []
    assert parser.resolve("db1") is None


@pytest.mark.parametrize(
    ("pattern", "target", "expected"),
    [
        ("db1", "db1", True),
        ("db1,db2", "db2", True),
        ("web-?", "web-1", True),
        ("web-?", "web-10", False),
        ("*.example.com", "a.example.com", True),
        ("db1", "DB1", False),
    ],
)
def test_matches(pattern: str, target: str, expected: bool) -> None:
    assert SSHConfigParser.matches(pattern, target) is expected


def test_existing_identity_file(tmp_path: Path) -> None:
    key = tmp_path / "id_rsa"
    key.write_text("key")
    config_file = tmp_path / "config"
    config_file.write_text(
        f"Host box\n    IdentityFile {tmp_path / 'absent'}\n    IdentityFile {key}\n"
    )

    entry = SSHConfigParser(config_file).resolve("box")

    assert entry is not None
    assert entry.existing_identity_file() == str(key)
