import logging
from enum import StrEnum

from svcbalancer.exceptions import BalancerCLIException


class LogLevels(StrEnum):
    """The log levels accepted on the command line."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


LOGGING_LEVEL_MAP: dict[str, int] = {
    LogLevels.CRITICAL: logging.CRITICAL,
    LogLevels.ERROR: logging.ERROR,
    LogLevels.WARNING: logging.WARNING,
    LogLevels.INFO: logging.INFO,
    LogLevels.DEBUG: logging.DEBUG,
}


def get_log_level(level: LogLevels | str | int) -> int:
    """Translates a log level to its logging module value.

    Args:
        level: An integer, a LogLevels member or a level name in any case.

    Returns:
        The log level as an integer.
    """
    if isinstance(level, int):
        return level

    name = level.value if isinstance(level, LogLevels) else str(level).upper()
    if name not in LOGGING_LEVEL_MAP:
        possible_values = [member.value for member in LogLevels]
        raise BalancerCLIException(
            f"Invalid value for '--log-level', it should be one of {possible_values}"
        )

    return LOGGING_LEVEL_MAP[name]
