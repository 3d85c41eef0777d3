import logging
from collections import deque
from typing import Deque, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class RecentErrorsHandler(logging.Handler):
    """Keeps the most recent WARNING+ records in memory for the health check"""

    def __init__(self, capacity: int = 100):
        super().__init__(level=logging.WARNING)
        self.records: Deque[logging.LogRecord] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


recent_errors = RecentErrorsHandler()


class LogConfig(BaseSettings):
    """日誌配置管理"""

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    LEVEL: str = "INFO"
    FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    FILE: Optional[str] = None

    def setup(self, root_name: str = "newsfeed") -> logging.Logger:
        """Attach handlers to the package logger once"""
        logger = logging.getLogger(root_name)

        if not logger.handlers:
            formatter = logging.Formatter(self.FORMAT)

            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

            if self.FILE:
                file_handler = logging.FileHandler(self.FILE)
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)

            logger.addHandler(recent_errors)
            logger.setLevel(getattr(logging, self.LEVEL.upper(), logging.INFO))

        return logger
