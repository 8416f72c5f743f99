import json
import logging
import os
import threading
from pathlib import Path

from flask import has_request_context, request


ROOT_LOGGER_NAME = "invoicing"

# Output key -> LogRecord attribute
LOG_FIELDS = {
    "timestamp": "asctime",
    "level": "levelname",
    "logger": "name",
    "function": "funcName",
    "line": "lineno",
    "message": "message",
}

_configure_lock = threading.Lock()
_configured = False


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line. Inside a Flask request the HTTP method and path
    are added so API failures can be matched to the call that caused them.
    """

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def __init__(self, fields=None):
        super().__init__()
        self.fields = dict(fields or LOG_FIELDS)

    def format(self, record) -> str:
        record.message = record.getMessage()
        record.asctime = self.formatTime(record)

        entry = {key: getattr(record, attribute, None) for key, attribute in self.fields.items()}
        if has_request_context():
            entry["request"] = f"{request.method} {request.path}"
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exc_info"] = record.exc_text
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def _configure_root() -> logging.Logger:
    """
    Attach handlers to the "invoicing" logger once per process.

    LOG_LEVEL sets the threshold; LOG_TO_FILE adds LOG_DIR/invoicing.log (INFO+)
    and LOG_DIR/errors.log (ERROR+), both truncated at start-up.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, os.environ.get('LOG_LEVEL', 'DEBUG').upper(), logging.DEBUG))
    root.propagate = False
    root.handlers.clear()

    formatter = JsonFormatter()
    handlers = [(logging.StreamHandler(), logging.DEBUG)]

    if _env_flag('LOG_TO_FILE', 'True'):
        logs_dir = Path(os.environ.get('LOG_DIR', 'logs'))
        logs_dir.mkdir(parents=True, exist_ok=True)
        handlers.append((logging.FileHandler(logs_dir / "invoicing.log", mode='w', encoding='utf-8'), logging.INFO))
        handlers.append((logging.FileHandler(logs_dir / "errors.log", mode='w', encoding='utf-8'), logging.ERROR))

    for handler, level in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return root


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Logger below the shared "invoicing" root, e.g. get_logger("invoicing.business.invoices").
    Names outside the root are nested under it.
    """
    global _configured
    if not _configured:
        with _configure_lock:
            if not _configured:
                _configure_root()
                _configured = True

    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
