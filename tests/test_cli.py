import collections
import pickle
from pathlib import Path

import pytest
from typer.testing import CliRunner

from serialgate.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SERIALGATE_LEDGER_DIR", str(tmp_path / "audit"))
    monkeypatch.delenv("SERIALGATE_CONFIG", raising=False)
    monkeypatch.delenv("SERIALGATE_RELOAD_INTERVAL", raising=False)


def test_check_reports_decisions(write_policy):
    path = write_policy(blacklist=[r"^evil\."], whitelist=[r"^com\.acme\."])
    result = runner.invoke(app, ["check", "--config", str(path), "com.acme.Widget"])
    assert result.exit_code == 0
    assert "ALLOW" in result.output

    result = runner.invoke(app, ["check", "--config", str(path), "com.acme.Widget", "evil.Payload"])
    assert result.exit_code == 2
    assert "BLOCK" in result.output
    assert "denied by blacklist" in result.output


def test_check_uses_env_config(write_policy, monkeypatch):
    path = write_policy(whitelist=[".*"])
    monkeypatch.setenv("SERIALGATE_CONFIG", str(path))
    result = runner.invoke(app, ["check", "any.Type"])
    assert result.exit_code == 0


def test_check_with_invalid_policy(write_policy):
    path = write_policy(whitelist=["(unclosed"])
    result = runner.invoke(app, ["check", "--config", str(path), "x.Y"])
    assert result.exit_code == 2
    assert "invalid policy" in result.output


def test_load_allows_and_rejects(write_policy, tmp_path: Path):
    data = tmp_path / "payload.pkl"
    data.write_bytes(pickle.dumps(collections.OrderedDict(a=1)))

    ok = write_policy(whitelist=[r"^collections\."], name="ok.yaml")
    result = runner.invoke(app, ["load", "--config", str(ok), str(data)])
    assert result.exit_code == 0
    assert "OrderedDict" in result.output

    strict = write_policy(whitelist=[r"^datetime\."], name="strict.yaml")
    result = runner.invoke(app, ["load", "--config", str(strict), str(data)])
    assert result.exit_code == 2
    assert "blocked from deserialization" in result.output


def test_load_missing_file(write_policy, tmp_path: Path):
    result = runner.invoke(app, ["load", "--config", str(write_policy(whitelist=[".*"])), str(tmp_path / "nope.pkl")])
    assert result.exit_code == 1


def test_policy_validate(write_policy):
    good = write_policy(blacklist=[r"^evil\."], whitelist=[".*"], profiling=True, name="good.yaml")
    result = runner.invoke(app, ["policy", "validate", "--config", str(good)])
    assert result.exit_code == 0
    assert "OK" in result.output
    assert '"profiling": true' in result.output

    bad = write_policy(whitelist=["(unclosed"], name="bad.yaml")
    result = runner.invoke(app, ["policy", "validate", "--config", str(bad)])
    assert result.exit_code == 2
    assert "FAIL" in result.output


def test_audit_tail_and_report(write_policy, tmp_path: Path):
    path = write_policy(whitelist=[r"^com\."])
    runner.invoke(app, ["check", "--config", str(path), "org.other.Thing"])

    result = runner.invoke(app, ["audit", "tail", "--lines", "5"])
    assert result.exit_code == 0
    assert "blocked_by_whitelist" in result.output

    report = tmp_path / "report.md"
    result = runner.invoke(app, ["audit", "report", "--output", str(report)])
    assert result.exit_code == 0
    assert "org.other.Thing" in report.read_text()
