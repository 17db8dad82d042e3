"""
Output formatters for CLI display.

Supports human-readable, JSON, and markdown output modes.
"""

import json
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class OutputFormat(str, Enum):
    HUMAN = "human"
    JSON = "json"
    MARKDOWN = "markdown"


def format_currency(value: Any) -> str:
    """Format an amount the way the shop reads it: R$ 1.234,56."""
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"))
    text = f"{amount:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def format_result(
    result: Any,
    fmt: OutputFormat = OutputFormat.HUMAN,
    title: Optional[str] = None,
) -> str:
    """Format a result object for display."""
    if fmt == OutputFormat.JSON:
        return _format_json(result)
    elif fmt == OutputFormat.MARKDOWN:
        return _format_markdown(result, title)
    else:
        return _format_human(result, title)


def _to_dict(result: Any) -> Dict:
    if is_dataclass(result):
        return asdict(result)
    elif isinstance(result, dict):
        return result
    elif hasattr(result, "__dict__"):
        return result.__dict__
    return {"value": str(result)}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _format_json(result: Any) -> str:
    return json.dumps(_to_dict(result), indent=2, default=_json_default, ensure_ascii=False)


def _format_value(value: Any, joiner: str) -> str:
    if isinstance(value, Decimal):
        return format_currency(value)
    if isinstance(value, float):
        return f"{value:.3f}" if abs(value) < 100 else f"{value:,.1f}"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, dict):
        return joiner.join(f"{k}: {v}" for k, v in value.items()) if value else "-"
    if isinstance(value, list):
        return joiner.join(str(v) for v in value) if value else "-"
    return str(value)


def _format_human(result: Any, title: Optional[str] = None) -> str:
    lines = []
    if title:
        lines.extend([title, "=" * len(title), ""])

    data = _to_dict(result)
    max_key_len = max(len(str(k)) for k in data.keys()) if data else 0

    for key, value in data.items():
        label = key.replace("_", " ").title()
        if isinstance(value, dict) and value:
            formatted = "\n" + "\n".join(f"  - {k}: {v}" for k, v in value.items())
        elif isinstance(value, list) and value:
            formatted = "\n" + "\n".join(f"  - {v}" for v in value)
        else:
            formatted = _format_value(value, ", ")
        lines.append(f"{label:<{max_key_len + 2}}: {formatted}")

    return "\n".join(lines)


def _format_markdown(result: Any, title: Optional[str] = None) -> str:
    lines = []
    if title:
        lines.extend([f"# {title}", ""])

    data = _to_dict(result)
    lines.extend(["| Parameter | Value |", "|-----------|-------|"])

    for key, value in data.items():
        label = key.replace("_", " ").title()
        lines.append(f"| {label} | {_format_value(value, ', ')} |")

    return "\n".join(lines)
