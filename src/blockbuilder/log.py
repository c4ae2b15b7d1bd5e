"""Logging setup for the CLI, the API server and tests.

Console records go to stderr: ``blockbuilder render`` prints form markup on
stdout and the two must not interleave. The rotating file keeps DEBUG, which
is where the router reports errors it could not reach.
"""

import copy
import logging.config

from .consts import LOG_BACKUP_COUNT, LOG_FILE, LOG_MAX_BYTES
from .utils import canonicalify, ensure_path

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {"format": "%(levelname)s %(name)s: %(message)s"},
        "file": {
            "format": "%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": logging.INFO,
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": logging.DEBUG,
            "formatter": "file",
            "filename": LOG_FILE,
            "maxBytes": LOG_MAX_BYTES,
            "backupCount": LOG_BACKUP_COUNT,
            "encoding": "utf-8",
        },
    },
    "loggers": {
        "blockbuilder": {
            "handlers": ["console", "file"],
            "level": logging.DEBUG,
            "propagate": True,
        }
    },
}


def setup(logfile=None, level="INFO"):
    """Configure the ``blockbuilder`` logger.

    Args:
        logfile: Rotating log file, created with its directory if missing
        level: Console threshold; the file always receives DEBUG
    """
    p = canonicalify(logfile or LOG_FILE)
    if len(p.parts) > 1:
        ensure_path(p.parent)

    config = copy.deepcopy(LOGGING_CONFIG)
    config["handlers"]["file"]["filename"] = str(p)
    config["handlers"]["console"]["level"] = level.upper()
    logging.config.dictConfig(config)


logger = logging.getLogger("blockbuilder")
