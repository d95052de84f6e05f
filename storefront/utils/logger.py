"""
Logging for the storefront backend.

Everything logs under the "storefront" logger, which owns the only handler
(stdout) and does not propagate to the root logger, so uvicorn's own logging
is left alone. Modules ask for an area logger by dotted path:

    get_logger("cart.ledger")        -> storefront.cart.ledger
    get_logger("data.sql_store")     -> storefront.data.sql_store
    get_logger("api.server")         -> storefront.api.server

Area loggers carry no handlers of their own and inherit the level, so
LOG_LEVEL=DEBUG turns on debug output for every area at once. An unknown
LOG_LEVEL value falls back to INFO instead of failing at import.
"""
import logging
import os
import sys

ROOT_NAME = "storefront"
DEFAULT_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(value) -> str:
    """Normalise a LOG_LEVEL value to a level name logging understands."""
    name = (value or DEFAULT_LEVEL).strip().upper()
    if name in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
        return name
    if name == "WARN":
        return "WARNING"
    return DEFAULT_LEVEL


LOG_LEVEL = resolve_level(os.getenv("LOG_LEVEL"))
logger = logging.getLogger(ROOT_NAME)
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """Area logger under "storefront", or the storefront logger itself."""
    if name:
        return logging.getLogger(f"{ROOT_NAME}.{name}")
    return logger
