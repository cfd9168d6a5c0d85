"""Structured logging for GrantHub.

Log lines are JSON outside local development. Request scoped values
(request_id, team_id, user_id) travel as ``custom_dimensions`` on the record
so a log query can narrow down to a single team or request.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "custom_dimensions",
}

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON document."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the record, its dimensions and any ``extra`` values."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        dimensions = getattr(record, "custom_dimensions", None)
        if dimensions:
            payload["custom_dimensions"] = dimensions

        payload.update(
            {key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS}
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying a message prefix and a set of dimensions.

    Adapters are immutable: ``with_context`` returns a new adapter, so a
    service can narrow the request logger without touching the caller's.
    """

    def __init__(
        self,
        logger: logging.Logger,
        prefix: str = "",
        dimensions: Optional[dict] = None,
    ) -> None:
        """Wrap ``logger`` with the given prefix and dimensions."""
        super().__init__(logger, {})
        self.prefix = prefix
        self.dimensions = dict(dimensions or {})

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        """Prefix the message and merge dimensions into ``extra``."""
        extra = kwargs.setdefault("extra", {})
        if self.dimensions:
            extra["custom_dimensions"] = {
                **self.dimensions,
                **extra.get("custom_dimensions", {}),
            }
        return f"{self.prefix}{msg}", kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return an adapter with ``dimensions`` added to the current ones.

        Example:
        -------
            log = logger.with_context(team_id=str(team_id), component="contacts")
            log.info("Listing contacts")

        """
        return ContextualLogger(self.logger, self.prefix, {**self.dimensions, **dimensions})


class LoggerConfigurator:
    """Builds named loggers with the handler and level taken from settings."""

    @staticmethod
    def _handler(local: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT) if local else JSONFormatter())
        return handler

    @classmethod
    def configure_logger(
        cls,
        name: str,
        prefix: str = "",
        dimensions: Optional[dict] = None,
    ) -> ContextualLogger:
        """Return a contextual logger for ``name``.

        The underlying logger gets its handler once. Calling this again for
        the same name only refreshes the level.
        """
        # Imported late: config imports nothing from here, but keep the cycle impossible
        from granthub.core.config import settings

        base = logging.getLogger(name)
        base.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
        base.propagate = False

        if not getattr(base, "_granthub_handler", False):
            base.handlers.clear()
            base.addHandler(cls._handler(settings.LOCAL_DEVELOPMENT))
            base._granthub_handler = True

        return ContextualLogger(base, prefix, dimensions)


logger = LoggerConfigurator.configure_logger("granthub")
