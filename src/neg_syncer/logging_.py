import logging
import os
import sys
import structlog

# fields every reconciliation log line should lead with, in this order
_LEADING_KEYS = ('neg', 'zone', 'service')


def _order_keys(_, __, event_dict):
    """Moves NEG identity fields to the front so lines group well when scanned."""
    ordered = {k: event_dict.pop(k) for k in _LEADING_KEYS if k in event_dict}
    ordered.update(event_dict)
    return ordered


def _renderer(log_format: str):
    if log_format == 'json':
        return structlog.processors.JSONRenderer(sort_keys=False)
    return structlog.dev.ConsoleRenderer(sort_keys=False)


def configure(level_name: str = None, log_format: str = None):
    """Configures stdlib logging and structlog.

    LOG_LEVEL and LOG_FORMAT (console or json) are read when not given.
    Context bound with structlog.contextvars (neg, service) is merged into
    every line logged while it is bound.
    """
    level_name = (level_name or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    log_format = (log_format or os.environ.get('LOG_FORMAT', 'console')).lower()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _order_keys,
            _renderer(log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    get_logger._configured = True


def get_logger(name: str = None):
    """Return a configured structured logger."""
    if not getattr(get_logger, "_configured", False):
        configure()
    return structlog.get_logger(name)
