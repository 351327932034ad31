"""Rendering of what-if results."""
import json
from collections import defaultdict
from typing import Any, Dict, List, Tuple

from rich.text import Text

# change type -> (symbol, style, summary verb)
CHANGE_TYPES: Dict[str, Tuple[str, str, str]] = {
    "Create": ("+", "green", "to create"),
    "Modify": ("~", "magenta", "to modify"),
    "Delete": ("-", "red", "to delete"),
    "Deploy": ("!", "blue", "to deploy"),
    "NoChange": ("=", "bright_black", "no change"),
    "Ignore": ("*", "bright_black", "to ignore"),
    "Unsupported": ("x", "bright_black", "unsupported"),
}

PROPERTY_CHANGE_TYPES: Dict[str, Tuple[str, str]] = {
    "Create": ("+", "green"),
    "Modify": ("~", "magenta"),
    "Delete": ("-", "red"),
    "Array": ("~", "magenta"),
    "NoEffect": ("x", "bright_black"),
}

CHANGE_ORDER = ["Delete", "Create", "Deploy", "Modify", "Unsupported", "NoChange", "Ignore"]


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value))


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return json.dumps(value)


def _split_resource_id(resource_id: str) -> Tuple[str, str]:
    """Split a resource id into its scope and the relative resource path."""
    scope, sep, relative = resource_id.rpartition("/providers/")
    if not sep:
        return "", resource_id
    return scope or "/", relative


def _format_property_changes(text: Text, changes: List[Any], indent: int) -> None:
    for change in sorted(changes or [], key=lambda c: c.path or ""):
        kind = _enum_value(change.property_change_type)
        symbol, style = PROPERTY_CHANGE_TYPES.get(kind, ("?", "default"))
        text.append(" " * indent)
        text.append(symbol, style=style)
        text.append(f" {change.path}")

        if kind == "Modify":
            text.append(f": {_format_value(change.before)} => {_format_value(change.after)}\n")
        elif kind == "Delete":
            text.append(f": {_format_value(change.before)}\n")
        elif kind == "Array":
            text.append(":\n")
            _format_property_changes(text, change.children, indent + 2)
        else:
            text.append(f": {_format_value(change.after)}\n")


def format_what_if_result(result: Any) -> Text:
    """Render a WhatIfOperationResult as a colorized report.

    Args:
        result: The what-if result returned by the deployments client.

    Returns:
        Text: Report listing each resource change, grouped by scope.
    """
    text = Text()
    changes = list(getattr(result, "changes", None) or [])

    text.append("Resource and property changes are indicated with these symbols:\n")
    used = {_enum_value(change.change_type) for change in changes}
    for kind in CHANGE_ORDER:
        if kind in used:
            symbol, style, _ = CHANGE_TYPES[kind]
            text.append("  ")
            text.append(symbol, style=style)
            text.append(f" {kind}\n")
    text.append("\n")

    by_scope: Dict[str, List[Tuple[str, Any]]] = defaultdict(list)
    for change in changes:
        scope, relative = _split_resource_id(change.resource_id or "")
        by_scope[scope].append((relative, change))

    text.append(f"The deployment will update the following scope{'s' if len(by_scope) > 1 else ''}:\n\n")
    for scope in sorted(by_scope):
        text.append(f"Scope: {scope}\n\n", style="bold")
        for relative, change in sorted(by_scope[scope], key=lambda item: item[0].lower()):
            kind = _enum_value(change.change_type)
            symbol, style, _ = CHANGE_TYPES.get(kind, ("?", "default", kind))
            resource = change.after or change.before or {}
            api_version = resource.get("apiVersion") if isinstance(resource, dict) else None

            text.append("  ")
            text.append(f"{symbol} {relative}", style=style)
            if api_version:
                text.append(f" [{api_version}]")
            if kind == "Unsupported" and getattr(change, "unsupported_reason", None):
                text.append(f"\n    {change.unsupported_reason}", style="bright_black")
            text.append("\n")
            if kind == "Modify":
                _format_property_changes(text, change.delta, 4)
        text.append("\n")

    counts: Dict[str, int] = defaultdict(int)
    for change in changes:
        counts[_enum_value(change.change_type)] += 1
    summary = [
        f"{counts[kind]} {CHANGE_TYPES[kind][2]}"
        for kind in CHANGE_ORDER
        if counts.get(kind) and kind not in ("NoChange", "Ignore")
    ]
    text.append("Resource changes: ")
    text.append(", ".join(summary) + "." if summary else "no change.")
    return text
