# cartpy/logging.py
"""
Opt-in loguru logging for cartpy.

The package logger is disabled when ``cartpy`` is imported. Call
``enable_logging()`` to watch tree induction, pruning and cross-validation
progress; the returned handle removes its handler again on ``disable()`` or
when used as a context manager.

Note:
    Importing this module removes loguru's default stderr handler (ID 0) so
    that ``enable_logging()`` does not produce duplicate lines. If handler 0
    was already removed by the application the removal is a no-op.
"""
from __future__ import annotations

import contextlib
import sys
import threading
from typing import TYPE_CHECKING, ClassVar, Final, Literal

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["short", "full"]

_SHORT_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{function}</cyan> - "
    "<level>{message}</level> {extra}"
)
_FULL_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> {extra}"
)


class LoggingHandle:
    """Handle for one cartpy logging handler.

    Examples
    --------
    >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
    ...     build_overfit_tree(dataset, evaluator)
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's handler.

        When the last active handle is disabled the ``cartpy`` logger is
        disabled again. Calling ``disable()`` twice is harmless.
        """
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(
    *,
    level: LogLevel = "INFO",
    log_format: LogFormat = "short",
    sink=sys.stderr,
) -> LoggingHandle:
    """
    Enable cartpy logging.

    Parameters
    ----------
    level : str, default="INFO"
        Minimum level to emit. ``"DEBUG"`` shows every installed split, every
        pruning step and every cross-validation fold.
    log_format : {"short", "full"}, default="short"
        ``"full"`` adds module and line number to each record.
    sink : file-like or callable, default=sys.stderr
        Any loguru sink.

    Returns
    -------
    LoggingHandle
        Handle that removes the handler on ``disable()`` or context exit.
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(
        sink,
        level=level,
        filter=_is_cartpy_record,
        format=_SHORT_FORMAT if log_format == "short" else _FULL_FORMAT,
    )
    return LoggingHandle(handler_id)


def _is_cartpy_record(record: Record) -> bool:
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
