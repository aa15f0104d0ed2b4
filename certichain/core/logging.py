# certichain/core/logging.py
import logging
import logging.config

from certichain.core.config import settings

_CONFIGURED = False


def setup_logging(level: str | None = None) -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "default"},
            },
            "loggers": {
                "certichain": {"handlers": ["console"], "level": (level or settings.LOG_LEVEL).upper()},
                # web3 logs every RPC payload at DEBUG
                "web3": {"level": "WARNING"},
            },
        }
    )
    _CONFIGURED = True
