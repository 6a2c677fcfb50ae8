"""
# Logging Manager

Central logger factory for the LuxeBlog API. Every module obtains its logger here so that
format, level and handlers are configured exactly once.

```python
from luxeblog.managers.logging_manager import get_logger

logger = get_logger(prefix="[Blog Routes]")
logger.info("Created post: %s", post_id)
```

Log records look like:

```
2026-01-01 12:00:00,000 | INFO | LuxeBlog | [Blog Routes] Created post: post_ab12cd34ef56ab78
```

The level comes from `settings.DEFAULT_LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Tuple

from luxeblog.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured_loggers: Dict[str, logging.Logger] = {}


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Prepends a fixed component prefix such as `[DATABASE]` to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {"prefix": prefix})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure_logger(name: str) -> logging.Logger:
    base_logger = logging.getLogger(name)
    if name in _configured_loggers:
        return base_logger

    level = getattr(logging, str(settings.DEFAULT_LOG_LEVEL).upper(), logging.INFO)
    base_logger.setLevel(level)

    if not base_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        base_logger.addHandler(handler)
    base_logger.propagate = False

    _configured_loggers[name] = base_logger
    return base_logger


def get_logger(name: str = "LuxeBlog", prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a logger for `name` that prefixes messages with `prefix`.

    Args:
        name (str): Underlying logger name. Defaults to the application logger.
        prefix (str): Component tag shown before each message, e.g. `"[Blog Routes]"`.

    Returns:
        PrefixedLoggerAdapter: A logger adapter supporting the usual `%`-style lazy arguments.
    """
    return PrefixedLoggerAdapter(_configure_logger(name), prefix)
