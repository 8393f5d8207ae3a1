from __future__ import annotations

import logging
import sys

import orjson

from stylesquare.core.config import settings

_PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload).decode("utf-8")


def configure_logging(level: str | None = None, *, json_output: bool | None = None) -> None:
    level_name = str(level or settings.log_level or "INFO").upper()
    use_json = settings.log_json if json_output is None else json_output

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if use_json else logging.Formatter(_PLAIN_FORMAT))

    root = logging.getLogger()
    # avoid stacking handlers when the app module is reloaded
    for existing in list(root.handlers):
        if getattr(existing, "_stylesquare", False):
            root.removeHandler(existing)
    handler._stylesquare = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level_name)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
