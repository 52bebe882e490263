import logging
import sys
import time
import uuid

import structlog
from structlog.types import Processor


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging for the application"""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "console" or (log_format != "json" and sys.stderr.isatty()):
        shared_processors.append(structlog.dev.ConsoleRenderer())
    else:
        shared_processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=shared_processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


class LoggingMiddleware:
    """ASGI middleware that logs each HTTP request under a request id"""

    def __init__(self, app, logger_name: str = "api"):
        self.app = app
        self.logger = get_logger(logger_name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = uuid.uuid4().hex[:12]
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request_logger = self.logger.bind(
            method=scope["method"],
            path=scope["path"],
            client=(scope.get("client") or [None, None])[0],
        )
        start_time = time.time()
        request_logger.debug("Request started")

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                request_logger.info(
                    "Request completed",
                    status_code=message["status"],
                    duration=round(time.time() - start_time, 4),
                )
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            request_logger.error(
                "Request failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")


# Application loggers
security_logger = get_logger("security")
auth_logger = get_logger("auth")
llm_logger = get_logger("llm")
db_logger = get_logger("database")
prompt_logger = get_logger("prompts")
cascade_logger = get_logger("cascade")
mail_logger = get_logger("mail")
