"""Project logging package.

Contains internal logging utilities (event catalog + SessionLogger). Avoid
importing stdlib logging through this package name externally.
"""

from .event_catalog import EVENT_TEMPLATES, load_event_templates  # noqa: F401
from .logger import SessionLogger, logger  # noqa: F401

__all__ = ["SessionLogger", "logger", "EVENT_TEMPLATES", "load_event_templates"]
