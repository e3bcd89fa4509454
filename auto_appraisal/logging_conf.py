import logging, sys, structlog
from logging.handlers import RotatingFileHandler

from auto_appraisal.config import settings

LOG_FORMAT = "[%(asctime)s]{%(filename)s %(funcName)s:%(lineno)d %(threadName)s} %(levelname)s - %(message)s"

def setup_logging(level: str | None = None, log_file: str | None = None):
    level_value = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    # Rotating file handler; an empty LOG_FILE disables it
    log_file = settings.LOG_FILE if log_file is None else log_file
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level_value)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        format=LOG_FORMAT,
        level=level_value,
        handlers=handlers,
        force=True,
    )

    # httpx logs every Supabase round trip at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Configure structlog to wrap standard logging
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
