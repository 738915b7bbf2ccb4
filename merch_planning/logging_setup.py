import logging
import logging.handlers
import traceback
from datetime import datetime
from pathlib import Path

from merch_planning.config import config

# Logger receiving one line per product lifecycle change
AUDIT_LOGGER = 'audit'

class Logger:
    """Logging manager for the Merchandise Planning Engine.

    Every named logger writes to ``<directory>/<name>.log`` through a
    rotating file handler, plus the console when ``console_output`` is on.
    """

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._log_config = config.log_config
        self._log_dir = Path(self._log_config['directory'])
        self._log_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(self.level)
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        if self._log_config['console_output']:
            root_logger.addHandler(self._console_handler())

        self._initialized = True

    @property
    def level(self):
        """Numeric level for the configured level name (INFO if unknown)."""
        return getattr(logging, self._log_config['level'].upper(), logging.INFO)

    def _formatter(self):
        return logging.Formatter(self._log_config['format'])

    def _console_handler(self):
        handler = logging.StreamHandler()
        handler.setFormatter(self._formatter())
        return handler

    def _file_handler(self, name):
        handler = logging.handlers.RotatingFileHandler(
            self._log_dir / f"{name}.log",
            maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
            backupCount=self._log_config['backup_count'],
            encoding='utf-8'
        )
        handler.setFormatter(self._formatter())
        return handler

    def get_logger(self, name):
        """Get (creating on first use) the logger called ``name``.

        Args:
            name: Logger name, also used as the log file name

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        named_logger = logging.getLogger(name)
        named_logger.setLevel(self.level)
        for handler in named_logger.handlers[:]:
            named_logger.removeHandler(handler)

        named_logger.addHandler(self._file_handler(name))
        if self._log_config['console_output']:
            named_logger.addHandler(self._console_handler())

        # Own handlers only, the root logger would print everything twice
        named_logger.propagate = False

        self._loggers[name] = named_logger
        return named_logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception followed by the current stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to prefix
        """
        target = self.get_logger(logger_name)
        target.error(f"{message}: {exception}" if message else str(exception))
        target.error(traceback.format_exc())

    def product_event(self, product_id, event, **fields):
        """Append a lifecycle change (season end, stage move, ...) to the audit log.

        Args:
            product_id: Product ID
            event: Short event name, e.g. 'season_ended'
            **fields: Values recorded with the event
        """
        details = ' '.join(f"{key}={value}" for key, value in sorted(fields.items()))
        self.get_logger(AUDIT_LOGGER).info(f"product={product_id} event={event} {details}".rstrip())

    def command_start_log(self, command_name, additional_info=None):
        """Log the start of a CLI command.

        Returns:
            Dictionary passed back to command_end_log()
        """
        cli_logger = self.get_logger('cli')
        cli_logger.info(f"Starting command: {command_name}")
        if additional_info:
            cli_logger.info(f"Command args: {additional_info}")

        return {
            'command_name': command_name,
            'start_time': datetime.now(),
            'additional_info': additional_info
        }

    def command_end_log(self, log_info, success=True):
        cli_logger = self.get_logger('cli')
        command_name = log_info.get('command_name', 'Unknown')
        duration = datetime.now() - log_info.get('start_time', datetime.now())

        if success:
            cli_logger.info(f"Completed command: {command_name} in {duration}")
        else:
            cli_logger.error(f"Failed command: {command_name} after {duration}")

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)

def product_event(product_id, event, **fields):
    """Record a product lifecycle change in the audit log."""
    logger.product_event(product_id, event, **fields)
