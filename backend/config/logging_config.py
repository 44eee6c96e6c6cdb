"""
Logging Configuration
=====================

Root logger setup for the API process.

LOG_FORMAT:
- pretty: human readable lines (development)
- json:   one JSON object per line (log shippers)

LOG_DIR adds a rotating file handler next to the console handler.
"""
import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone

from .settings import Settings

# Record attributes that are not user-supplied `extra=` fields
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {'message', 'asctime'}


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line, including `extra=` fields"""

    def __init__(self, environment: str):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'time': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname.lower(),
            'logger': record.name,
            'env': self.environment,
            'msg': record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                payload[key] = value
        if record.exc_info:
            payload['exc'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(settings: Settings) -> None:
    """Configure root logger from settings (idempotent)"""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == 'json':
        formatter: logging.Formatter = JsonFormatter(settings.environment)
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)-7s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(logging.handlers.TimedRotatingFileHandler(
            os.path.join(settings.log_dir, 'api.log'),
            when='midnight',
            backupCount=30,
            encoding='utf-8',
        ))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    # Driver notifications are noisy at INFO
    logging.getLogger('neo4j').setLevel(max(level, logging.WARNING))
    logging.getLogger('stripe').setLevel(max(level, logging.WARNING))
