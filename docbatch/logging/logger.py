import logging
import sys


class Log:
    """Process-wide logging facade for the batch pipeline."""

    _logger: logging.Logger = logging.getLogger("docbatch")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and attach a single stdout handler.

        Safe to call more than once; the handler is only added the first time.
        httpx request lines are kept at WARNING unless running at DEBUG.
        """
        level = log_level.upper()
        cls._logger.setLevel(level)
        logging.getLogger("httpx").setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Run milestones such as queued items and batch totals."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Failures recorded against an item or the whole run."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Recoverable trouble such as retried attempts or skipped images."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Per-step detail such as progress ticks and image counts."""
        cls._logger.debug(message, extra=kwargs)
