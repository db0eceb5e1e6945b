import json
import logging
from datetime import datetime, timezone

from craftflow.config import get_settings

# Third-party loggers that drown out ledger activity at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx")


class ServiceContextFilter(logging.Filter):
    """Stamps every record with the service name and environment."""

    def __init__(self, app_name: str, environment: str) -> None:
        super().__init__()
        self.app_name = app_name
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.app = self.app_name
        record.environment = self.environment
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "app": getattr(record, "app", None),
            "env": getattr(record, "environment", None),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def build_handler(app_name: str, environment: str, json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.addFilter(ServiceContextFilter(app_name, environment))
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(app)s/%(environment)s] %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
    return handler


def setup_logging(level: str | None = None, json_output: bool | None = None) -> logging.Handler:
    settings = get_settings()
    level_name = (level or settings.LOG_LEVEL).upper()
    if json_output is None:
        json_output = settings.LOG_JSON

    handler = build_handler(settings.APP_NAME, settings.ENVIRONMENT, json_output)
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    if level_name != "DEBUG":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    return handler
