import logging
import sys
import structlog

SENSITIVE_FIELDS = ('password', 'secret', 'token', 'api_key', 'oai_key', 'authorization')


def filter_sensitive_data(logger, log_method, event_dict):
    """
    A structlog processor that masks values of credential-like keys.

    Matching is case-insensitive, so ``OAI_KEY`` and ``oai_key`` are both masked.
    """
    for key in list(event_dict.keys()):
        if key.lower() in SENSITIVE_FIELDS:
            event_dict[key] = '[FILTERED]'
    return event_dict


def _resolve_level(log_level) -> int:
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(log_level=logging.INFO, stream=None, force_reconfigure=False):
    """Configure structlog-based JSON logging.

    Args:
        log_level: Level as int or name (``"DEBUG"``, ``"INFO"``...).
        stream: Output stream, stdout by default.
        force_reconfigure: Re-run setup even if logging was configured before.
    """
    if stream is None:
        stream = sys.stdout

    if not force_reconfigure and getattr(structlog, '_modification_configured', False):
        return

    level = _resolve_level(log_level)
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(format="%(message)s", stream=stream, level=level, force=True)
    logging.root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            # Request-scoped session_id / request_id
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            filter_sensitive_data,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    structlog._modification_configured = True
