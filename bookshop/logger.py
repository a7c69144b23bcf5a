"""
Application logger

One JSON-lines logger per process, named "bookshop". Every module asks for it
through get_logger(); the name argument is accepted for readability at call
sites but all records go to the same handlers:

- LOG_DIR/bookshop.log   INFO and above (rewritten each run)
- LOG_DIR/errors.log     ERROR and above (rewritten each run)
- console                LOG_LEVEL and above (default DEBUG)

Order and inventory identifiers passed as `extra={...}` (customer_id,
listing_id, order_id, shop_id, quantity) are written as top-level JSON keys.
"""

import json
import logging
import os
import threading
from pathlib import Path

CONTEXT_FIELDS = ('customer_id', 'listing_id', 'order_id', 'shop_id', 'quantity')


class JsonFormatter(logging.Formatter):
    """Renders a LogRecord as a single JSON object"""

    FIELDS = {
        'timestamp': 'asctime',
        'level': 'levelname',
        'logger': 'name',
        'module': 'module',
        'function': 'funcName',
        'line': 'lineno',
        'message': 'message',
    }

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record) -> str:
        record.message = record.getMessage()
        record.asctime = self.formatTime(record, self.datefmt)

        entry = {key: getattr(record, attr) for key, attr in self.FIELDS.items()}
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                entry[field] = getattr(record, field)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry['exc_info'] = record.exc_text
        if record.stack_info:
            entry['stack_info'] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


class SingletonLogger:
    """Builds the "bookshop" logger once, on first use, from any thread."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._logger = None
                    cls._instance = instance
        return cls._instance

    def get_logger(self) -> logging.Logger:
        if self._logger is None:
            with self._lock:
                if self._logger is None:
                    self._logger = self._build()
        return self._logger

    @staticmethod
    def _build() -> logging.Logger:
        logger = logging.getLogger("bookshop")
        logger.setLevel(logging.DEBUG)
        logger.handlers.clear()

        formatter = JsonFormatter()
        log_dir = Path(os.environ.get("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)

        handlers = (
            (logging.FileHandler(log_dir / "bookshop.log", mode='w', encoding='utf-8'), logging.INFO),
            (logging.FileHandler(log_dir / "errors.log", mode='w', encoding='utf-8'), logging.ERROR),
            (logging.StreamHandler(), os.environ.get("LOG_LEVEL", "DEBUG").upper()),
        )
        for handler, level in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger


def get_logger(name: str = "bookshop") -> logging.Logger:
    """
    Get the application logger.

    Args:
        name (str): Caller's dotted name; kept for call-site readability only

    Returns:
        logging.Logger: The shared "bookshop" logger
    """
    return SingletonLogger().get_logger()
