"""
Structured logging configuration.

Called once from create_app(). LOG_FORMAT selects text (default) or JSON
lines; LOG_LEVEL defaults to INFO. Conversion code passes identifiers through
`extra=` (lead_id, payment_intent_id, event_id); the JSON formatter lifts them
to top-level keys so a purchase can be traced across webhook → provisioning →
notification.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone


CONTEXT_FIELDS = ('lead_id', 'payment_intent_id', 'event_id', 'service')

# Third-party loggers that are noisy at INFO
_NOISY_LOGGERS = [
    'urllib3',
    'stripe',
    'sqlalchemy.engine',
    'werkzeug',
]


class JSONFormatter(logging.Formatter):
    """Single-line JSON log formatter for production log aggregators."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable lines with any context ids appended as key=value."""

    def format(self, record):
        line = super().format(record)
        context = ' '.join(
            f'{key}={getattr(record, key)}' for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        return f'{line} [{context}]' if context else line


def configure_logging(app=None):
    """
    Set up root logger with format/level from env vars.

    With an app, Flask's own logger is routed through the root handler
    instead of keeping its default stderr handler.
    """
    level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    log_format = os.getenv('LOG_FORMAT', 'text').lower()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if log_format == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ContextTextFormatter(
            '[%(asctime)s] %(levelname)s %(name)s — %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.handlers.clear()
        app.logger.propagate = True
