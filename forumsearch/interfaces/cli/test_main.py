"""Tests for the CLI."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from forumsearch.config import get_settings

from .main import app

runner = CliRunner()

FIXTURE = {
    "users": [{"username": "alice"}, {"username": "bob"}],
    "categories": [
        {"name": "General"},
        {"name": "Staff", "read_restricted": True, "granted_to": ["bob"]},
    ],
    "topics": [
        {
            "title": "Door sensor fault",
            "category": "General",
            "user": "alice",
            "posts": [{"user": "alice", "raw": "The door sensor keeps tripping."}],
        },
        {
            "title": "Staff door rota",
            "category": "Staff",
            "user": "bob",
            "posts": [{"user": "bob", "raw": "Who covers the door checks?"}],
        },
    ],
}


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point settings at a temporary database."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("DB_PATH", str(tmp_path / "data" / "forum.db"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixture_file(tmp_path: Path) -> Path:
    path = tmp_path / "forum.json"
    path.write_text(json.dumps(FIXTURE))
    return path


def test_version() -> None:
    """Test version output."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "ForumSearch v" in result.stdout


def test_init_creates_database(tmp_path: Path) -> None:
    """Test init creates the database file."""
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert (tmp_path / "data" / "forum.db").exists()


def test_import_and_search(fixture_file: Path) -> None:
    """Test imported topics are searchable."""
    result = runner.invoke(app, ["import", str(fixture_file)])
    assert result.exit_code == 0
    assert "Import Summary" in result.stdout

    result = runner.invoke(app, ["search", "door", "--type", "topic"])
    assert result.exit_code == 0
    assert "Door sensor fault" in result.stdout
    assert "Staff door rota" not in result.stdout


def test_search_as_granted_user(fixture_file: Path) -> None:
    """Test --as-user includes granted categories."""
    runner.invoke(app, ["import", str(fixture_file)])

    result = runner.invoke(app, ["search", "rota", "--as-user", "2"])

    assert result.exit_code == 0
    assert "Staff door rota" in result.stdout


def test_search_unknown_user(fixture_file: Path) -> None:
    """Test an unknown --as-user id fails."""
    runner.invoke(app, ["import", str(fixture_file)])

    result = runner.invoke(app, ["search", "door", "--as-user", "99"])
    assert result.exit_code == 1


def test_search_invalid_type(fixture_file: Path) -> None:
    """Test invalid facets are reported."""
    runner.invoke(app, ["import", str(fixture_file)])

    result = runner.invoke(app, ["search", "door", "--type", "files"])

    assert result.exit_code == 1
    assert "invalid type filter" in result.stdout


def test_search_single_context_only() -> None:
    """Test context options are mutually exclusive."""
    result = runner.invoke(app, ["search", "door", "--topic", "1", "--user", "2"])
    assert result.exit_code == 1


def test_import_missing_file(tmp_path: Path) -> None:
    """Test import of a missing file fails."""
    result = runner.invoke(app, ["import", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
