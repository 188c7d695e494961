"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from dep_sentry.cli import main as cli
from dep_sentry.core.aggregator import build_report
from dep_sentry.core.models import PackageResult, SecurityAdvisory, Severity
from dep_sentry.exceptions import AdvisoryPayloadError

runner = CliRunner()


def sample_report():
    advisory = SecurityAdvisory(
        advisory_id="RUSTSEC-2024-0001",
        package_name="serde",
        title="Stack overflow",
        cve="CVE-2024-0001",
        affected_versions="1.0.0 - 1.0.5",
        source="OSV/RustSec",
        reported_at="2024-01-01T00:00:00Z",
        severity=Severity.HIGH,
        reference="https://osv.dev/vulnerability/RUSTSEC-2024-0001",
    )
    return build_report([
        PackageResult(package_name="serde", current_version="1.0.1", vulnerabilities=(advisory,)),
        PackageResult(package_name="rand", current_version="0.8"),
    ])


class FakeScanner:
    """Replaces the scanner so no network is touched."""

    outcome = None
    seen = []

    def __init__(self, config, client=None, performance_monitor=None):
        self.config = config

    def scan_sync(self, dependencies):
        FakeScanner.seen.append((self.config, dict(dependencies)))
        if isinstance(FakeScanner.outcome, Exception):
            raise FakeScanner.outcome
        return FakeScanner.outcome


@pytest.fixture
def fake_scanner(monkeypatch):
    FakeScanner.outcome = sample_report()
    FakeScanner.seen = []
    monkeypatch.setattr(cli, "DependencyScanner", FakeScanner)
    return FakeScanner


@pytest.fixture
def deps_file(tmp_path):
    path = tmp_path / "deps.json"
    path.write_text(json.dumps({"serde": "1.0.1", "rand": "0.8"}))
    return path


class TestScanCommand:
    """Test the scan command."""

    def test_scan_success(self, fake_scanner, deps_file):
        """Test a scan that finds vulnerabilities still exits 0."""
        result = runner.invoke(cli.app, ["scan", str(deps_file)], env={"COLUMNS": "200"})

        assert result.exit_code == 0
        assert "RUSTSEC-2024-0001" in result.output
        assert fake_scanner.seen[0][1] == {"serde": "1.0.1", "rand": "0.8"}

    def test_scan_accepts_request_body(self, fake_scanner, tmp_path):
        """Test that a file shaped like a scan request is unwrapped."""
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"dependencies": {"tokio": "1.0"}}))

        result = runner.invoke(cli.app, ["scan", str(path)])
        assert result.exit_code == 0
        assert fake_scanner.seen[0][1] == {"tokio": "1.0"}

    def test_scan_options_reach_config(self, fake_scanner, deps_file):
        """Test that command-line options build the scan config."""
        result = runner.invoke(cli.app, [
            "scan", str(deps_file), "--ecosystem", "python", "--concurrency", "5",
            "--retries", "1", "--max-packages", "10",
        ])
        assert result.exit_code == 0

        config = fake_scanner.seen[0][0]
        assert config.ecosystem == "PyPI"
        assert config.concurrency == 5
        assert config.max_retries == 1
        assert config.max_packages == 10

    def test_scan_env_vars(self, fake_scanner, deps_file):
        """Test that settings can come from the environment."""
        result = runner.invoke(cli.app, ["scan", str(deps_file)], env={"DEP_SENTRY_ECOSYSTEM": "npm"})
        assert result.exit_code == 0
        assert fake_scanner.seen[0][0].ecosystem == "npm"

    def test_scan_writes_json_report(self, fake_scanner, deps_file, tmp_path):
        """Test the --output report."""
        output = tmp_path / "report.json"
        result = runner.invoke(cli.app, ["scan", str(deps_file), "--output", str(output)])
        assert result.exit_code == 0

        data = json.loads(output.read_text())
        assert data["summary"]["vulnerable"] == 1
        assert data["summary"]["high"] == 1
        assert data["vulnerabilities"][0]["packageName"] == "serde"
        assert data["metadata"]["ecosystem"] == "crates.io"
        assert "timestamp" in data["metadata"]

    def test_scan_log_file(self, fake_scanner, deps_file, tmp_path, package_logger):
        """Test that --log-file receives a copy of the log."""
        log_file = tmp_path / "scan.log"
        result = runner.invoke(cli.app, ["scan", str(deps_file), "--log-file", str(log_file)])
        assert result.exit_code == 0

        cli.logger.warning("Treating rand as clean")
        for handler in package_logger.handlers:
            handler.flush()
        assert "dep_sentry.CLI - WARNING - Treating rand as clean" in log_file.read_text()

    def test_invalid_json_file(self, fake_scanner, tmp_path):
        """Test that an unreadable file is an input error."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = runner.invoke(cli.app, ["scan", str(path)])
        assert result.exit_code == cli.EXIT_INPUT_ERROR
        assert fake_scanner.seen == []

    def test_invalid_option(self, fake_scanner, deps_file):
        """Test that a bad config value is an input error."""
        result = runner.invoke(cli.app, ["scan", str(deps_file), "--concurrency", "0"])
        assert result.exit_code == cli.EXIT_INPUT_ERROR

    def test_empty_mapping_uses_real_validation(self, tmp_path):
        """Test that validation errors from the scanner map to the input exit code."""
        path = tmp_path / "empty.json"
        path.write_text("{}")

        result = runner.invoke(cli.app, ["scan", str(path)])
        assert result.exit_code == cli.EXIT_INPUT_ERROR
        assert "No dependencies found" in result.output

    def test_internal_error(self, fake_scanner, deps_file, tmp_path):
        """Test that unexpected failures exit 1 and write a generic error report."""
        fake_scanner.outcome = AdvisoryPayloadError("bad body")
        output = tmp_path / "report.json"

        result = runner.invoke(cli.app, ["scan", str(deps_file), "--output", str(output)])
        assert result.exit_code == cli.EXIT_INTERNAL_ERROR
        assert json.loads(output.read_text())["error"]["message"] == "Internal server error"


class TestOtherCommands:
    """Test check, test and info."""

    def test_connection_command_rejects_bad_timeout(self, monkeypatch):
        """Test that an invalid timeout exits with the input error code."""
        def no_client(*args, **kwargs):
            raise AssertionError("no client should be opened")

        monkeypatch.setattr(cli, "OSVOnlineClient", no_client)
        result = runner.invoke(cli.app, ["test", "--timeout", "0"])

        assert result.exit_code == cli.EXIT_INPUT_ERROR
        assert "Timeout must be positive" in result.output

    def test_check_vulnerable(self, fake_scanner):
        """Test checking a single package."""
        result = runner.invoke(cli.app, ["check", "serde", "1.0.1"])

        assert result.exit_code == 0
        assert "RUSTSEC-2024-0001" in result.output
        assert fake_scanner.seen[0][1] == {"serde": "1.0.1"}

    def test_check_clean(self, fake_scanner):
        """Test the message for an unaffected package."""
        fake_scanner.outcome = build_report([PackageResult(package_name="rand", current_version="0.8")])
        result = runner.invoke(cli.app, ["check", "rand", "0.8"])

        assert result.exit_code == 0
        assert "No known vulnerabilities" in result.output

    def test_info_lists_presets(self):
        """Test that the ecosystem presets are shown."""
        result = runner.invoke(cli.app, ["info"])

        assert result.exit_code == 0
        assert "crates.io" in result.output
        assert "OSV/RustSec" in result.output
