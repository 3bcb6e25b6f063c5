import logging

from src.utils.logging.base_logger import get_logger


class Logger:
    """
    Logger that stamps every record with the context of the current analysis run.

    Wraps a stdlib logger and merges the run context (tier, project, ...) into the
    `extra` of each call, so handlers and formatters can pick the fields up.

    Args:
        name (str): The name of the logger instance
        run_context (dict, optional): Context attached to every log record
    """

    def __init__(self, name: str, run_context: dict | None = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.run_context = run_context or {}

    def bind(self, **context) -> "Logger":
        """Return a logger with additional context, leaving this one unchanged."""
        return Logger(self.base_logger.name, {**self.run_context, **context})

    def __merge_run_context(self, extra: dict | None) -> dict:
        """
        Merges the run context with additional extra information.

        Args:
            extra (dict): Additional context information to be added to the log

        Returns:
            dict: Merged dictionary of run context and extra information
        """
        if not extra:
            return dict(self.run_context)
        merged = dict(extra)
        merged.update(self.run_context)
        return merged

    def __with_context(self, message: str) -> str:
        if not self.run_context:
            return message
        context = " ".join(f"{key}={value}" for key, value in self.run_context.items())
        return f"{message} [{context}]"

    def debug(self, message, extra=None):
        self.base_logger.debug(
            self.__with_context(message), extra=self.__merge_run_context(extra)
        )

    def info(self, message, extra=None):
        self.base_logger.info(
            self.__with_context(message), extra=self.__merge_run_context(extra)
        )

    def warning(self, message, extra=None):
        self.base_logger.warning(
            self.__with_context(message), extra=self.__merge_run_context(extra)
        )

    def error(self, message, extra=None, exc_info=False):
        """
        Log a message with ERROR level.

        Args:
            message: The message to be logged
            extra (dict, optional): Additional context information for this log entry
            exc_info (bool): Attach the current exception's traceback
        """
        self.base_logger.error(
            self.__with_context(message),
            extra=self.__merge_run_context(extra),
            exc_info=exc_info,
        )
