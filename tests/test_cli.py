"""Tests for the vibe-logger-auth command."""

import json

import httpx
import pytest

from vibe_logger import cli
from vibe_logger.models import TokenSet


@pytest.fixture
def config_dir(credentials_path):
    return credentials_path.parent


@pytest.fixture
def tokens_path(config_dir):
    return config_dir / "google-tokens.json"


@pytest.fixture
def mock_token_endpoint(monkeypatch):
    """Route every AsyncClient the CLI creates to a fake token endpoint."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"access_token": "cli-access", "refresh_token": "cli-refresh", "expires_in": 3600},
        )

    original = httpx.AsyncClient

    def patched(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return original(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", patched)
    return requests


class TestSetup:
    """Test the interactive setup command."""

    def test_setup_stores_tokens(self, config_dir, tokens_path, mock_token_endpoint, capsys):
        exit_code = cli.main(
            ["--config-dir", str(config_dir), "setup", "--no-browser"],
            input_func=lambda prompt: "4/0AX-code",
        )

        assert exit_code == 0
        assert len(mock_token_endpoint) == 1
        assert json.loads(tokens_path.read_text())["access_token"] == "cli-access"
        assert "accounts.google.com" in capsys.readouterr().out

    def test_setup_without_credentials(self, tmp_path, capsys):
        exit_code = cli.main(
            ["--config-dir", str(tmp_path), "setup", "--no-browser"],
            input_func=lambda prompt: pytest.fail("should not prompt"),
        )

        assert exit_code == 1
        assert "Credentials file not found" in capsys.readouterr().out

    def test_setup_invalid_code(self, config_dir, tokens_path, mock_token_endpoint):
        exit_code = cli.main(
            ["--config-dir", str(config_dir), "setup", "--no-browser"],
            input_func=lambda prompt: "",
        )

        assert exit_code == 1
        assert mock_token_endpoint == []
        assert not tokens_path.exists()


class TestReset:
    """Test the reset command."""

    def test_reset_force(self, config_dir, tokens_path):
        tokens_path.write_text(json.dumps(TokenSet(access_token="a").to_file_data()))

        assert cli.main(["--config-dir", str(config_dir), "reset", "--force"]) == 0
        assert not tokens_path.exists()
        assert (config_dir / "google-credentials.json").exists()

    def test_reset_cancelled(self, config_dir, tokens_path):
        tokens_path.write_text("{}")

        exit_code = cli.main(
            ["--config-dir", str(config_dir), "reset"], input_func=lambda prompt: "n"
        )

        assert exit_code == 0
        assert tokens_path.exists()

    def test_reset_credentials(self, config_dir, tokens_path, capsys):
        exit_code = cli.main(
            ["--config-dir", str(config_dir), "reset", "--credentials"],
            input_func=lambda prompt: "yes",
        )

        assert exit_code == 0
        assert not (config_dir / "google-credentials.json").exists()
        assert "already clean" in capsys.readouterr().out


class TestTest:
    """Test the test command."""

    def test_not_authenticated(self, config_dir):
        assert cli.main(["--config-dir", str(config_dir), "test"]) == 1

    def test_authenticated(self, config_dir, tokens_path):
        tokens_path.write_text(
            json.dumps({"access_token": "a", "refresh_token": "r", "expiry_date": 32503680000000})
        )
        assert cli.main(["--config-dir", str(config_dir), "test"]) == 0
