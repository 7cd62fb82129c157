import logging
import logging.config

# Loggers whose per-request INFO lines drown out the one-line-per-platform
# summaries written by the refresh pipeline.
QUIET_LOGGERS = ("httpx", "httpcore")

PIPELINE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", access_log: bool = True):
    level = level.upper()
    loggers = {
        "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
        "uvicorn.access": {
            "level": "INFO" if access_log else "WARNING",
            "handlers": ["access"],
            "propagate": False,
        },
        "app": {"level": level, "handlers": ["pipeline"], "propagate": False},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s %(message)s", "datefmt": "%H:%M:%S"},
            "pipeline": {"format": PIPELINE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "access_simple": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
            "pipeline": {"class": "logging.StreamHandler", "formatter": "pipeline"},
            "access": {"class": "logging.StreamHandler", "formatter": "access_simple"},
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["console"]},
    })
