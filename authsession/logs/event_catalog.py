"""Human-readable templates for structured log events.

``event_templates.json`` (next to this module) maps domain -> action ->
``str.format`` template. Only the domains this package emits are loaded;
anything else in the file is ignored so a stray entry cannot shadow the
derived fallback message.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DOMAINS = frozenset({"app", "auth", "request", "refresh", "session", "store"})
TEMPLATE_FILE = Path(__file__).with_name("event_templates.json")


def load_event_templates(path: Path = TEMPLATE_FILE) -> dict[tuple[str, str], str]:
    """Read the catalog at ``path`` into a ``(domain, action) -> template`` map.

    A missing or malformed file yields a single ``("app", "load_error")``
    entry so logging keeps working with derived messages.
    """
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {("app", "load_error"): f"Event templates file missing: {path.name}"}
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Failed to load event templates: {e}"[:200]}
    if not isinstance(raw, dict):
        return {("app", "load_error"): "Event templates root must be an object"}
    return {
        (domain, action): template
        for domain, actions in raw.items()
        if domain in DOMAINS and isinstance(actions, dict)
        for action, template in actions.items()
        if isinstance(template, str)
    }


EVENT_TEMPLATES = load_event_templates()

__all__ = ["DOMAINS", "EVENT_TEMPLATES", "TEMPLATE_FILE", "load_event_templates"]
