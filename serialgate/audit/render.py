from __future__ import annotations

from collections import Counter

from .ledger import DecisionLedger

_WOULD_BLOCK = {"blacklist_match", "whitelist_miss"}
_BLOCKED = {"blocked_by_blacklist", "blocked_by_whitelist"}


def render_markdown_report(ledger: DecisionLedger, limit: int = 500) -> str:
    events = ledger.tail(limit)
    if not events:
        return "# SerialGate Decision Report\n\nNo events found."

    levels = Counter(event.get("level", "unknown") for event in events)
    kinds = Counter(event.get("event", "unknown") for event in events)
    # One check can emit several would-block events; count it once.
    would_block_checks = {
        (event.get("type_name", "?"), event.get("check_id") or f"line-{idx}")
        for idx, event in enumerate(events)
        if event.get("event") in _WOULD_BLOCK
    }
    would_block = Counter(type_name for type_name, _ in would_block_checks)
    blocked = Counter(event.get("type_name", "?") for event in events if event.get("event") in _BLOCKED)

    lines = [
        "# SerialGate Decision Report",
        "",
        "## Summary",
        f"- Events: {len(events)}",
        f"- info: {levels.get('info', 0)}",
        f"- error: {levels.get('error', 0)}",
        "",
        "## Event Kinds",
    ]
    for kind, count in kinds.most_common():
        lines.append(f"- {kind}: {count}")

    lines.append("")
    lines.append("## Blocked Types")
    if not blocked:
        lines.append("- none")
    for type_name, count in blocked.most_common():
        lines.append(f"- `{type_name}`: {count}")

    lines.append("")
    lines.append("## Would Be Blocked (profiling)")
    if not would_block:
        lines.append("- none")
    for type_name, count in would_block.most_common():
        lines.append(f"- `{type_name}`: {count}")

    lines.append("")
    lines.append("## Recent Events")
    for event in events[-20:]:
        level = event.get("level", "unknown")
        kind = event.get("event", "unknown")
        type_name = event.get("type_name", "?")
        pattern = event.get("pattern", "")
        suffix = f" (pattern `{pattern}`)" if pattern else ""
        lines.append(f"- `{level}` `{kind}` `{type_name}`{suffix}")

    return "\n".join(lines)
