import logging.config
import structlog
from pythonjsonlogger import jsonlogger
import coloredlogs

from core.config import get_settings


def build_logging_config(level: str = "INFO", log_format: str = "console") -> dict:
    """Return the dictConfig used by setup_logging.

    ``log_format`` picks the root handler: ``console`` for coloured
    human-readable output, ``json`` for one JSON object per line.
    """
    FIELD_STYLES = {
        'asctime': {'color': 'green'},
        'levelname': {'bold': True, 'color': 'cyan'},
        'name': {'color': 'white'},
        'message': {'color': 'white'}
    }

    LEVEL_STYLES = {
        'DEBUG': {'color': 'blue'},
        'INFO': {'color': 'green'},
        'WARNING': {'color': 'yellow'},
        'ERROR': {'color': 'red'},
        'CRITICAL': {'bold': True, 'color': 'red'}
    }

    handler = "json" if log_format == "json" else "console"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s"
            },
            "colored": {
                "()": coloredlogs.ColoredFormatter,
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "field_styles": FIELD_STYLES,
                "level_styles": LEVEL_STYLES
            }
        },
        "handlers": {
            "json": {
                "class": "logging.StreamHandler",
                "formatter": "json"
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored"
            }
        },
        "loggers": {
            "": {
                "handlers": [handler],
                "level": level.upper()
            },
            # SQL echo is controlled by DATABASE_ECHO, keep the engine quiet otherwise
            "sqlalchemy.engine": {
                "level": "WARNING"
            }
        }
    }


def setup_logging():
    settings = get_settings()
    logging.config.dictConfig(
        build_logging_config(settings.LOG_LEVEL, settings.LOG_FORMAT)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
