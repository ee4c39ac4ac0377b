"""Process-wide logging configuration for runtime entrypoints."""

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(processName)s] %(name)s: %(message)s"


def config_configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process.

    Spawned worker processes call this again because they do not inherit the
    parent's handler configuration.

    Args:
        level: Logging level name.

    Returns:
        None: Configures the root logger as side effect.

    Raises:
        ValueError: Raised when level name is unknown.
    """

    normalized_level = level.strip().upper()
    numeric_level = logging.getLevelName(normalized_level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level={level}")

    logging.basicConfig(level=numeric_level, format=_LOG_FORMAT, force=True)
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
