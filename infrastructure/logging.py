import logging
import logging.handlers
import sys

import structlog

from infrastructure.config import Settings, settings

# Handlers installed here carry this name so a second setup replaces them
HANDLER_NAME = "omnistore"

# Storage backends that log through the standard library
_BACKEND_LOGGERS = ("fsspec", "s3fs", "adlfs", "gcsfs", "botocore", "azure")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _build_handlers(app_settings: Settings, formatter: logging.Formatter) -> list[logging.Handler]:
    app_settings.log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    rotating = logging.handlers.TimedRotatingFileHandler(
        app_settings.log_dir / f"{app_settings.app_env}.log",
        when="midnight",
        backupCount=app_settings.log_retention_days,
        utc=True,
    )
    handlers: list[logging.Handler] = [console, rotating]
    for handler in handlers:
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(app_settings: Settings | None = None) -> None:
    """Route structlog and stdlib records through one formatter.

    Development gets the console renderer, other environments emit JSON.
    Records go to stdout and to ``{log_dir}/{app_env}.log``, rotated daily.
    Calling this again swaps the previous handlers instead of stacking them.
    """
    app_settings = app_settings or settings
    processors = _shared_processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if app_settings.app_env == "development"
        else structlog.processors.JSONRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(foreign_pre_chain=processors, processor=renderer)

    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(app_settings, formatter):
        root_logger.addHandler(handler)
    root_logger.setLevel(app_settings.log_level.upper())

    # chatty at DEBUG, only warnings are useful here
    for logger_name in _BACKEND_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(logging.WARNING, root_logger.level))
