"""Tests for the command-line interface."""

import argparse
import json
import logging

import pytest

from netlink_scraper import cli
from netlink_scraper.exceptions import LaunchError, NetlinkScraperError
from netlink_scraper.models import MatchResult, MatchType, ScrapeResult, ScrapingStats


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SCRAPE_CONCURRENCY", "SCRAPE_RETRIES", "SCRAPE_SKIP_ERRORS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoadTargets:
    """Test cases for load_targets."""

    def test_load(self, tmp_path):
        """Test records are adapted and URL-less ones skipped."""
        path = tmp_path / "targets.json"
        path.write_text(json.dumps([
            {"id": 1, "url": "https://a.fr", "landing_page": "https://x.com"},
            {"id": 2},
        ]))

        targets = cli.load_targets(str(path))

        assert [(t.id, t.url, t.landing_page) for t in targets] == [
            (1, "https://a.fr", "https://x.com")
        ]

    def test_not_a_list(self, tmp_path):
        """Test a JSON object is rejected."""
        path = tmp_path / "targets.json"
        path.write_text(json.dumps({"url": "https://a.fr"}))

        with pytest.raises(NetlinkScraperError):
            cli.load_targets(str(path))


class TestConfigFromArgs:
    """Test cases for command-line overrides."""

    def test_overrides(self):
        """Test flags override environment defaults."""
        args = argparse.Namespace(
            headed=True,
            timeout_ms=5000,
            concurrency=7,
            retries=None,
            delay_ms=0,
            batch_size=None,
            no_skip_errors=True,
        )

        config = cli._config_from_args(args)

        assert config.headless is False
        assert config.timeout_ms == 5000
        assert config.concurrency == 7
        assert config.retries == 3
        assert config.delay_ms == 0
        assert config.skip_errors is False


class TestMain:
    """Test cases for main."""

    def test_check_json(self, monkeypatch, capsys):
        """Test the check command prints the classified result."""
        async def fake_check(config, url, landing_page):
            return ScrapeResult(
                url=url,
                success=True,
                landing_page=landing_page,
                status_code=200,
                all_links_count=4,
                found_link=MatchResult(matched=True, match_type=MatchType.EXACT, href=landing_page),
                attempts=1,
            )

        monkeypatch.setattr(cli, "_check", fake_check)

        cli.main([
            "--log-level", "ERROR",
            "check", "https://blog.partner.fr",
            "-l", "https://example.com",
            "-o", "json",
        ])

        data = json.loads(capsys.readouterr().out)
        assert data["online_status"] == 1
        assert data["link_type"] == "unknown"
        assert data["found_link"]["match_type"] == "exact"

    def test_check_failure_exit_code(self, monkeypatch, capsys):
        """Test a failed scrape exits with status 1."""
        async def fake_check(config, url, landing_page):
            return ScrapeResult(url=url, success=False, error="Timeout", attempts=3)

        monkeypatch.setattr(cli, "_check", fake_check)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["check", "https://down.partner.fr"])

        assert exc_info.value.code == 1
        assert "UNREACHABLE" in capsys.readouterr().out

    def test_check_launch_error_exit_code(self, monkeypatch, capsys):
        """Test a browser launch failure is reported without a traceback."""
        async def fake_check(config, url, landing_page):
            raise LaunchError("Failed to start browser: no executable")

        monkeypatch.setattr(cli, "_check", fake_check)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--log-level", "ERROR", "check", "https://blog.partner.fr"])

        assert exc_info.value.code == 1
        assert "Error: Failed to start browser" in capsys.readouterr().out

    def test_run_dry_run(self, monkeypatch, capsys):
        """Test the run command forwards the dry-run flag and prints stats."""
        seen = {}

        async def fake_run(config, dry_run):
            seen["dry_run"] = dry_run
            seen["concurrency"] = config.concurrency
            stats = ScrapingStats(total=2, successful=2)
            stats.finish()
            return stats

        monkeypatch.setattr(cli, "_run", fake_run)

        cli.main(["--log-level", "ERROR", "run", "--dry-run", "-c", "4"])

        assert seen == {"dry_run": True, "concurrency": 4}
        assert json.loads(capsys.readouterr().out)["successful"] == 2

    def test_no_command_prints_help(self, capsys):
        """Test help is shown without a command."""
        cli.main([])
        assert "usage" in capsys.readouterr().out.lower()

    def test_bad_log_level_env(self, monkeypatch, capsys):
        """Test an unknown LOG_LEVEL is reported as a configuration error."""
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["check", "https://blog.partner.fr"])

        assert exc_info.value.code == 1
        assert "Configuration error" in capsys.readouterr().out
