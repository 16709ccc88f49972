import logging
import logging.config
import os


def build_logging_config(log_dir: str = "logs", level: str = "INFO") -> dict:
    os.makedirs(log_dir, exist_ok=True)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "[%(asctime)s] [%(levelname)s] [%(name)s] [%(filename)s:%(lineno)d] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
            "file_app": {
                "level": "DEBUG",
                "class": "logging.handlers.TimedRotatingFileHandler",
                "filename": os.path.join(log_dir, "survey_insights.log"),
                "when": "midnight",
                "interval": 1,
                "backupCount": 30,
                "encoding": "utf-8",
                "delay": True,
                "formatter": "standard",
            },
            "file_error": {
                "level": "ERROR",
                "class": "logging.handlers.TimedRotatingFileHandler",
                "filename": os.path.join(log_dir, "survey_insights.error.log"),
                "when": "midnight",
                "interval": 1,
                "backupCount": 30,
                "encoding": "utf-8",
                "delay": True,
                "formatter": "standard",
            },
        },
        "loggers": {
            "survey_insights": {
                "handlers": ["console", "file_app", "file_error"],
                "level": "DEBUG",
                "propagate": False,
            },
        },
    }


def setup_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """Apply the service logging configuration."""
    logging.config.dictConfig(build_logging_config(log_dir, level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
