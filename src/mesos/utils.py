"""
Utility functions and classes for the Mesos package.
"""

from time import perf_counter
import logging
import sys
import warnings
from typing import Optional, Type
from .config import config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ========== EXCEPTIONS ==========
class MesosError(Exception):
    """Base class for errors raised by the Mesos package."""


class ConfigurationError(MesosError):
    """
    A collaborator was used before it was properly configured.

    Raised for missing attitude providers, Jacobians requested before the
    variational equations advanced, out-of-domain coefficient indices and
    short-period queries outside the propagation mode they were built for.
    """


class CacheLimitError(MesosError):
    """A coefficient cache was asked to grow beyond its configured limit."""


class ConvergenceError(MesosError):
    """An iterative conversion failed to converge."""


# ========== TIMING ==========
class Timer:
    """
    Context manager for timing code execution.

    Examples
    --------
    >>> from mesos.utils import Timer
    >>> with Timer("Propagation"):
    ...     state = propagator.propagate(initial, 86400.0)
    Propagation: 0.123456 s

    >>> with Timer(verbose=False) as t:
    ...     # ... code ...
    >>> print(f"Took {t.elapsed:.6f} seconds")
    """
    def __init__(self, name="Operation", verbose=True):
        """
        Parameters
        ----------
        name : str, optional
            Name to report when timing completes (default: "Operation")
        verbose : bool, optional
            Whether to log timing automatically (default: True)
        """
        self.name = name
        self.verbose = verbose
        self.elapsed = None

    def __enter__(self):
        self.start = perf_counter()
        return self

    def __exit__(self, *args):
        self.end = perf_counter()
        self.elapsed = self.end - self.start
        if self.verbose:
            logger.info("%s: %.6f s", self.name, self.elapsed)


# ========== LOGGING ==========
def configure_logging(level: Optional[str | int] = None,
                      log_file: Optional[str] = None) -> None:
    """
    Attach a console (and optionally file) handler to the package logger.

    Parameters
    ----------
    level : str or int, optional
        Logging level; defaults to ``config.LOG_LEVEL``.
    log_file : str, optional
        Path of an additional log file.
    """
    if level is None:
        level = config.LOG_LEVEL
    package_logger = logging.getLogger("mesos")
    package_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)


# ========== VALIDATION ==========
def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)


def check_cache_index(name: str, value: int, limit: Optional[int] = None) -> None:
    """
    Validate an integer index requested from a coefficient cache.

    Parameters
    ----------
    name : str
        Index name used in the error message
    value : int
        Requested index
    limit : int, optional
        Upper bound, defaults to ``config.MAX_COEFFICIENT_INDEX``

    Raises
    ------
    ConfigurationError
        If the index is negative
    CacheLimitError
        If the index exceeds the cache limit
    """
    if limit is None:
        limit = config.MAX_COEFFICIENT_INDEX
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}")
    if value > limit:
        raise CacheLimitError(
            f"{name} = {value} exceeds the coefficient cache limit ({limit}). "
            f"Raise config.MAX_COEFFICIENT_INDEX if this is intended."
        )
