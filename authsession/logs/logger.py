"""Structured event logger for the session layer."""

from __future__ import annotations

import logging
import os
import sys

import colorlog

from .event_catalog import EVENT_TEMPLATES

_LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


class SessionLogger:
    """Emits ``log_event`` records through one colored stdout handler.

    Records still propagate to the root logger, so host applications (and
    pytest's ``caplog``) see them too.
    """

    def __init__(self, name: str = "authsession") -> None:
        # Fixed width for event name column when in debug (alignment)
        self._event_name_width = 32
        self.logger = logging.getLogger(name)
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG if self._is_debug_enabled() else logging.INFO)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            colorlog.ColoredFormatter(
                "%(log_color)s%(levelname)-8s%(reset)s %(message)s",
                log_colors=_LOG_COLORS,
                reset=True,
                stream=sys.stdout,
            )
        )
        self.logger.addHandler(console_handler)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        **kwargs: object,
    ) -> None:
        """Log ``domain``/``action`` with its catalog template filled from ``kwargs``.

        ``request`` is reserved for the ``METHOD path`` label shown as prefix.
        Events without a template get a derived ``"domain: action"`` text.
        """
        event_name = f"{domain}_{action}".lower()
        template = EVENT_TEMPLATES.get((domain, action))
        if template is None:
            human_text = f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
            kwargs.setdefault("derived", True)
        else:
            try:
                human_text = template.format(**kwargs)
            except (KeyError, IndexError, ValueError):
                human_text = template
        request = kwargs.pop("request", None)
        prefix = self._build_prefix(request if isinstance(request, str) else None)
        msg = (
            self._build_debug_message(event_name, prefix, human_text, kwargs)
            if self._is_debug_enabled()
            else self._build_concise_message(event_name, prefix, human_text)
        )
        self.logger.log(level, msg)

    @staticmethod
    def _is_debug_enabled() -> bool:
        return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    @staticmethod
    def _build_prefix(request: str | None) -> str:
        # 'METHOD path' labels are padded so the message column lines up
        core = request or "session"
        padded = core.ljust(28)[:28]
        return f"[{padded}]"

    def _build_debug_message(
        self,
        event_name: str,
        prefix: str,
        human_text: str | None,
        kwargs: dict[str, object],
    ) -> str:
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        width = self._event_name_width
        if len(event_name) <= width:
            ev = event_name.ljust(width)
        else:  # truncate but keep rightmost indicator
            ev = event_name[: width - 1] + "…"
        base = f"{ev} {prefix}"
        if human_text:
            base = f"{base} {human_text}"
        if context:
            base = f"{base} ({context})"
        return base

    @staticmethod
    def _build_concise_message(
        event_name: str, prefix: str, human_text: str | None
    ) -> str:
        return f"{prefix} {human_text or event_name}"


logger = SessionLogger()
