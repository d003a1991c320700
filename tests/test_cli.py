import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from clabot.author_map import Author, AuthorMap
from clabot.cli import main


@pytest.fixture
def action_env(monkeypatch, tmp_path):
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"action": "opened", "pull_request": {"number": 7}}))
    output = tmp_path / "output.txt"
    monkeypatch.setenv("GITHUB_TOKEN", "ghs_token")
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo-org/widgets")
    monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request_target")
    monkeypatch.setenv("GITHUB_EVENT_PATH", str(event))
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    return output


def _fake_runner(mock_runner_class, passed: bool, author_map: AuthorMap | None):
    runner = mock_runner_class.return_value
    runner.execute = AsyncMock(return_value=passed)
    runner.aclose = AsyncMock()
    runner.author_map = author_map
    return runner


@patch("clabot.cli.ClaRunner")
def test_all_signed_exits_zero(mock_runner_class, action_env):
    runner = _fake_runner(mock_runner_class, True, AuthorMap([(Author("alice", 1), True)]))

    assert main([]) == 0

    runner.aclose.assert_awaited_once()
    settings = mock_runner_class.call_args.args[0]
    assert settings.pull_request_number == 7
    outputs = action_env.read_text()
    assert "all-signed=true" in outputs
    assert "unsigned=\n" in outputs


@patch("clabot.cli.ClaRunner")
def test_unsigned_authors_exit_one(mock_runner_class, action_env):
    author_map = AuthorMap([(Author("alice", 1), True), (Author("bob", 2), False)])
    _fake_runner(mock_runner_class, False, author_map)

    assert main([]) == 1

    outputs = action_env.read_text()
    assert "all-signed=false" in outputs
    assert "unsigned=bob" in outputs


@patch("clabot.cli.ClaRunner")
def test_api_failure_exits_one(mock_runner_class, action_env):
    runner = _fake_runner(mock_runner_class, False, None)
    runner.execute.side_effect = httpx.ConnectError("connection refused")

    assert main([]) == 1

    runner.aclose.assert_awaited_once()


def test_settings_error_exits_two(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("INPUT_GITHUB_TOKEN", raising=False)

    assert main([]) == 2
