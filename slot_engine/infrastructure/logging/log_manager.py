# slot_engine/infrastructure/logging/log_manager.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_LOGGING_CONFIG = {
    'level': 'INFO',
    'console': True,
    'console_level': 'WARNING',
    'file': {
        'enabled': False,
        'path': 'logs/slot_engine.log',
        'level': 'DEBUG',
        'max_bytes': 10 * 1024 * 1024,  # 10 MB
        'backup_count': 5
    },
    'loggers': {
        'domain.machine': {'level': 'INFO'},
        'domain.session': {'level': 'WARNING'},
        'application.analysis': {'level': 'INFO'},
        'infrastructure.rng': {'level': 'INFO'}
    }
}


class LogManager:
    """
    Centralized logging configuration manager.
    """
    def __init__(self):
        """Initialize the log manager."""
        self.root_logger = logging.getLogger()
        self.loggers = {}  # name -> logger
        self.handlers = {}  # name -> handler
        self.initialized = False

    def initialize(self, config: Dict[str, Any], force: bool = False):
        """
        Initialize logging system based on configuration.

        Args:
            config: Logging configuration dictionary
            force: Re-apply even if logging was already initialized
        """
        if self.initialized and not force:
            return

        # Get config values with defaults
        log_level = self._get_log_level(config.get('level', 'INFO'))
        log_format = config.get('format', DEFAULT_FORMAT)
        log_date_format = config.get('date_format', '%Y-%m-%d %H:%M:%S')
        console_enabled = config.get('console', True)
        file_enabled = config.get('file', {}).get('enabled', False)

        # Configure root logger
        self.root_logger.setLevel(log_level)

        # Clear any existing handlers
        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
        self.handlers.clear()

        formatter = logging.Formatter(log_format, log_date_format)

        if console_enabled:
            console_level = self._get_log_level(config.get('console_level', log_level))
            # stderr keeps the report on stdout clean
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(console_level)
            console_handler.setFormatter(formatter)
            self.root_logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        if file_enabled:
            file_config = config.get('file', {})
            file_path = file_config.get('path', 'logs/slot_engine.log')
            file_level = self._get_log_level(file_config.get('level', log_level))
            max_bytes = file_config.get('max_bytes', 10 * 1024 * 1024)
            backup_count = file_config.get('backup_count', 5)

            log_dir = os.path.dirname(file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=max_bytes,
                backupCount=backup_count
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            self.root_logger.addHandler(file_handler)
            self.handlers['file'] = file_handler

        # Parent loggers first so children can override them
        logger_configs = config.get('loggers', {})
        for logger_name in sorted(logger_configs.keys(), key=lambda x: len(x.split('.'))):
            logger_config = logger_configs[logger_name] or {}
            logger_level = self._get_log_level(logger_config.get('level', log_level))

            logger = logging.getLogger(logger_name)
            logger.setLevel(logger_level)

            # Records still reach the root handlers unless told otherwise
            propagate = logger_config.get('propagate', True)
            logger.propagate = propagate

            self.loggers[logger_name] = logger
            self.root_logger.debug(
                f"Configured logger '{logger_name}' with level={logging.getLevelName(logger_level)}, "
                f"propagate={propagate}"
            )

        self.root_logger.debug("Logging system initialized")
        self.initialized = True

    def _get_log_level(self, level_name: Union[str, int]) -> int:
        """
        Convert a log level name to its numeric value.

        Args:
            level_name: Level name (DEBUG, INFO, etc.) or numeric value

        Returns:
            Numeric log level
        """
        if isinstance(level_name, int):
            return level_name

        level_map = {
            'CRITICAL': logging.CRITICAL,
            'FATAL': logging.FATAL,
            'ERROR': logging.ERROR,
            'WARNING': logging.WARNING,
            'WARN': logging.WARN,
            'INFO': logging.INFO,
            'DEBUG': logging.DEBUG,
            'NOTSET': logging.NOTSET
        }
        return level_map.get(level_name.upper(), logging.INFO)


# Singleton instance
log_manager = LogManager()


def initialize_logging(config: Optional[Dict[str, Any]] = None, force: bool = False) -> LogManager:
    """
    Initialize the logging system from a configuration dict or the defaults.

    Args:
        config: Optional logging configuration; defaults are used when None
        force: Re-apply even if logging was already initialized
    """
    if config is None:
        config = DEFAULT_LOGGING_CONFIG

    log_manager.initialize(config, force=force)
    return log_manager
