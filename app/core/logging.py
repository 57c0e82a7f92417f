import logging
import sys
from pythonjsonlogger import jsonlogger
from app.core.config import Settings

# chatty on every SSE push and ping; keep at INFO unless debugging streams
_STREAM_LOGGERS = ("app.services.live_delivery", "app.api.v1.notifications")


def configure_logging(settings: Settings) -> None:
    """
    JSON logs on stdout, one object per line, tagged with app and environment
    so lifecycle and notification events can be filtered per deployment.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # create_app may run more than once per process (tests)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"app": settings.app_name, "env": settings.environment},
        )
    )
    root.addHandler(handler)

    for name in ("uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(level)
    for name in _STREAM_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    # engine echo would log every membership/notification statement
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
