from __future__ import annotations

import logging
import pickle
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from serialgate.audit.ledger import DecisionLedger
from serialgate.audit.render import render_markdown_report
from serialgate.config import Settings, load_settings
from serialgate.errors import ConfigurationError, DeserializationRejected
from serialgate.events import CompositeEventSink, LedgerEventSink, LoggingEventSink
from serialgate.gate import Gate, Verdict
from serialgate.policy.load import load_policy
from serialgate.policy.store import PolicyStore
from serialgate.reconstruct import PickleReconstructor
from serialgate.telemetry.exporter import export_ledger

app = typer.Typer(help="SerialGate CLI")
audit_app = typer.Typer(help="Decision ledger commands")
policy_app = typer.Typer(help="Policy file commands")
app.add_typer(audit_app, name="audit")
app.add_typer(policy_app, name="policy")
console = Console()

_VERDICT_STYLE = {
    Verdict.ALLOW: "[green]ALLOW[/green]",
    Verdict.ALLOW_WITH_WARNING: "[yellow]WARN[/yellow]",
    Verdict.BLOCK: "[red]BLOCK[/red]",
}


def _settings() -> Settings:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        console.print(f"[red]ERROR[/red] {exc}")
        raise typer.Exit(2)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    return settings


def _build_gate(config: str, settings: Settings) -> Gate:
    ledger = DecisionLedger(settings.ledger_dir)
    sink = CompositeEventSink(LoggingEventSink(), LedgerEventSink(ledger))
    # One-shot process: no background reload.
    store = PolicyStore(reload_interval=0)
    try:
        return Gate(PickleReconstructor(), config, store=store, sink=sink)
    except ConfigurationError as exc:
        console.print(f"[red]BLOCK[/red] invalid policy: {escape(str(exc))}")
        raise typer.Exit(2)


@app.command("check")
def check(
    type_names: list[str] = typer.Argument(..., help="Fully-qualified type names, e.g. collections.OrderedDict"),
    config: str = typer.Option("", "--config", help="Path to policy YAML (default: $SERIALGATE_CONFIG)"),
) -> None:
    settings = _settings()
    gate = _build_gate(config or settings.config_path, settings)

    blocked = False
    for type_name in type_names:
        decision = gate.check(type_name)
        suffix = f" (pattern {escape(repr(decision.pattern))})" if decision.pattern else ""
        console.print(f"{_VERDICT_STYLE[decision.verdict]} {escape(type_name)}: {decision.reason}{suffix}", highlight=False)
        blocked = blocked or decision.blocked

    if blocked:
        raise typer.Exit(2)


@app.command("load")
def load(
    path: str = typer.Argument(..., help="Pickle file to load through the gate"),
    config: str = typer.Option("", "--config", help="Path to policy YAML (default: $SERIALGATE_CONFIG)"),
) -> None:
    settings = _settings()
    gate = _build_gate(config or settings.config_path, settings)

    try:
        with Path(path).open("rb") as fh:
            obj = gate.load(fh)
    except DeserializationRejected as exc:
        console.print(f"[red]BLOCK[/red] {escape(str(exc))}")
        raise typer.Exit(2)
    except (OSError, EOFError, pickle.UnpicklingError) as exc:
        console.print(f"[red]ERROR[/red] cannot load {escape(path)}: {escape(str(exc))}")
        raise typer.Exit(1)

    console.print(repr(obj), markup=False)


@policy_app.command("validate")
def policy_validate(
    config: str = typer.Option("", "--config", help="Path to policy YAML (default: $SERIALGATE_CONFIG)"),
) -> None:
    settings = _settings()
    try:
        policy = load_policy(config or settings.config_path)
    except ConfigurationError as exc:
        console.print(f"[red]FAIL[/red] {escape(str(exc))}")
        raise typer.Exit(2)
    console.print_json(data=policy.summary())
    console.print("[green]OK[/green] policy compiled")


@audit_app.command("tail")
def audit_tail(lines: int = typer.Option(20, "--lines")) -> None:
    ledger = DecisionLedger(_settings().ledger_dir)
    for event in ledger.tail(lines):
        console.print_json(data=event)


@audit_app.command("report")
def audit_report(
    format: str = typer.Option("md", "--format"),
    output: str = typer.Option("audit/report.md", "--output"),
) -> None:
    if format != "md":
        raise typer.BadParameter("Only md format is supported")
    ledger = DecisionLedger(_settings().ledger_dir)
    report = render_markdown_report(ledger)
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(report, encoding="utf-8")
    console.print(f"wrote {output_path}")


@audit_app.command("export")
def audit_export(
    endpoint: str = typer.Option("", "--endpoint"),
    ledger: str = typer.Option("", "--ledger", help="Ledger file (default: $SERIALGATE_LEDGER_DIR/decisions.jsonl)"),
) -> None:
    if not endpoint:
        raise typer.BadParameter("--endpoint is required")
    ledger_path = ledger or str(Path(_settings().ledger_dir) / "decisions.jsonl")
    count = export_ledger(ledger_path=ledger_path, endpoint=endpoint)
    console.print(f"exported {count} events to {endpoint}")


if __name__ == "__main__":
    app()
