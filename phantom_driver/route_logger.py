"""
Route Logger Module
Printouts for the joystick engine and the console, routed through logging
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class RouteLogger:
    """Named logger with a stdout handler and an optional log file"""

    def __init__(self, name="PhantomJoystick", log_file=None, level=logging.INFO):
        """
        Args:
            name: Logger name, shown on every line
            log_file: Path to log file (optional)
            level: Logging level
        """
        self.logger = logging.getLogger(name)
        self.level = level
        self.logger.setLevel(level)

        # A second RouteLogger with the same name replaces the first one's handlers
        self.logger.handlers.clear()
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def from_settings(cls, name: str, settings: Optional[Dict[str, Any]] = None) -> "RouteLogger":
        """
        Build a logger from the 'logging' section of the phantom config.

        Args:
            name: Logger name
            settings: Dict with optional 'level', 'log_file' and 'printouts' keys
        """
        settings = settings or {}
        level = logging.getLevelName(str(settings.get('level', 'INFO')).upper())
        if not isinstance(level, int):
            level = logging.INFO
        route_logger = cls(name, log_file=settings.get('log_file'), level=level)
        if not settings.get('printouts', True):
            route_logger.disable_printouts()
        return route_logger

    @property
    def printouts_enabled(self) -> bool:
        return self.logger.level <= logging.INFO

    def disable_printouts(self):
        """Stop info and debug echoes. Warnings and errors still come through."""
        self.logger.setLevel(max(self.level, logging.WARNING))

    def enable_printouts(self):
        self.logger.setLevel(self.level)

    def info(self, message):
        self.logger.info(message)

    def warning(self, message):
        self.logger.warning(message)

    def error(self, message):
        self.logger.error(message)

    def debug(self, message):
        self.logger.debug(message)
