import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

LOGGER_PREFIX = "canonforge"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PprintLogger:
    """A logger wrapper that pretty-prints dicts, lists and pydantic models."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _format_message(self, msg: Any, pprint: bool = True) -> str:
        """Render a message for the underlying logger.

        Plain strings pass through untouched. Pydantic models are rendered
        with model_dump_json() so that discoveries and conflicts show their
        fields; other containers go through pformat.
        """
        if isinstance(msg, str) or not pprint:
            return str(msg)
        if isinstance(msg, BaseModel):
            return msg.model_dump_json(indent=2)
        return pformat(msg, width=120, depth=None)

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.debug(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.info(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.warning(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.error(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.exception(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def setup_logging(component: str, level: int | str | None = None) -> PprintLogger:
    """Return a PprintLogger named ``canonforge.<component>``.

    A stream handler is attached once to the package root logger, so every
    component shares one output format. ``level`` is applied to the
    component logger when given.
    """
    root = logging.getLogger(LOGGER_PREFIX)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    name = component if component.startswith(LOGGER_PREFIX) else f"{LOGGER_PREFIX}.{component}"
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return PprintLogger(logger)
