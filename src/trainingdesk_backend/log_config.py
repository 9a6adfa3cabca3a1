import logging
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ["httpx", "httpcore"]


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log output."""

    # ANSI color codes
    grey = "\x1b[38;21m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    orange = "\x1b[38;5;208m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: green,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red
    }

    def format(self, record):
        formatted = super().format(record)

        # Only colorize if outputting to terminal
        if sys.stdout.isatty():
            log_color = self.COLORS.get(record.levelno, self.grey)

            # Format is: "timestamp - LEVEL - name - message"
            parts = formatted.split(' - ', 3)
            if len(parts) >= 3:
                timestamp = parts[0]
                level = parts[1]
                rest = ' - '.join(parts[2:])

                colored_timestamp = f"{self.orange}{timestamp}{self.reset}"
                colored_level = f"{log_color}{level}{self.reset}"
                formatted = f"{colored_timestamp} - {colored_level} - {rest}"

        return formatted


def normalize_level(level: str, default: str = "INFO") -> str:
    level = (level or default).upper()
    return level if level in VALID_LEVELS else default


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with the colored console handler."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("trainingdesk_backend").setLevel(normalize_level(level))
    logging.getLogger("trainingdesk_client").setLevel(normalize_level(level))
    logging.getLogger("trainingdesk_types").setLevel(normalize_level(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def build_uvicorn_log_config(uvicorn_log_level: str = "info") -> dict:
    """Uvicorn dictConfig that routes its loggers through ``ColoredFormatter``."""
    uvicorn_level = normalize_level(uvicorn_log_level)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colored": {
                "()": ColoredFormatter,
                "fmt": "%(asctime)s - %(levelname)-8s - %(message)s",
                "datefmt": DATE_FORMAT
            },
            "access": {
                "()": ColoredFormatter,
                "fmt": "%(asctime)s - %(levelname)-8s - %(message)s",
                "datefmt": DATE_FORMAT
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "stream": "ext://sys.stdout"
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": uvicorn_level,
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": uvicorn_level,
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": "INFO" if uvicorn_level != "ERROR" else "WARNING",
                "propagate": False
            }
        }
    }
