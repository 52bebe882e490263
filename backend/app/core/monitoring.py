import re
import time
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from fastapi import Response
from app.core.logging import get_logger

logger = get_logger("monitoring")

REGISTRY = CollectorRegistry()

# HTTP Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    registry=REGISTRY
)

# Application Metrics
total_projects = Gauge(
    'total_projects',
    'Total number of projects in the system',
    registry=REGISTRY
)

total_prompts = Gauge(
    'total_prompts',
    'Total number of prompts in the system',
    registry=REGISTRY
)

total_tags = Gauge(
    'total_tags',
    'Total number of tags in the system',
    registry=REGISTRY
)

llm_requests_total = Counter(
    'llm_requests_total',
    'Total requests to LLM',
    ['operation', 'status'],
    registry=REGISTRY
)

llm_request_duration_seconds = Histogram(
    'llm_request_duration_seconds',
    'LLM request duration in seconds',
    ['operation'],
    registry=REGISTRY
)

emails_sent_total = Counter(
    'emails_sent_total',
    'Feedback emails handed to the email API',
    ['status'],
    registry=REGISTRY
)

# Database Metrics
database_connections = Gauge(
    'database_connections_active',
    'Active database connections',
    registry=REGISTRY
)

database_queries_total = Counter(
    'database_queries_total',
    'Total database queries',
    ['operation'],
    registry=REGISTRY
)

database_query_duration_seconds = Histogram(
    'database_query_duration_seconds',
    'Database query duration in seconds',
    ['operation'],
    registry=REGISTRY
)

cascade_deletes_total = Counter(
    'cascade_deletes_total',
    'Cascade delete operations by root entity',
    ['entity', 'status'],
    registry=REGISTRY
)

cascade_rows_deleted_total = Counter(
    'cascade_rows_deleted_total',
    'Rows removed by cascade deletes',
    ['table'],
    registry=REGISTRY
)

# Authentication Metrics
auth_attempts_total = Counter(
    'auth_attempts_total',
    'Total authentication attempts',
    ['status'],
    registry=REGISTRY
)

# Error Metrics
errors_total = Counter(
    'errors_total',
    'Total application errors',
    ['error_type', 'endpoint'],
    registry=REGISTRY
)

_ID_SEGMENT = re.compile(r'/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}')


class MetricsMiddleware:
    """Middleware to collect HTTP metrics"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        path = scope["path"]

        if path == "/metrics":
            await self.app(scope, receive, send)
            return

        normalized_path = self._normalize_path(path)

        start_time = time.time()
        http_requests_in_progress.inc()

        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            errors_total.labels(
                error_type=type(e).__name__,
                endpoint=normalized_path
            ).inc()
            logger.error("Request error", path=path, error=str(e))
            raise
        finally:
            duration = time.time() - start_time
            http_requests_in_progress.dec()

            http_requests_total.labels(
                method=method,
                endpoint=normalized_path,
                status_code=status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=normalized_path
            ).observe(duration)

    def _normalize_path(self, path: str) -> str:
        """Collapse entity ids so label cardinality stays bounded"""
        if path.startswith("/files/"):
            return "/files/{key}"
        return _ID_SEGMENT.sub('/{id}', path)


def record_llm_request(operation: str, duration: float, success: bool = True):
    """Record LLM request metrics"""
    status = "success" if success else "error"
    llm_requests_total.labels(operation=operation, status=status).inc()
    llm_request_duration_seconds.labels(operation=operation).observe(duration)


def record_email_sent(success: bool = True):
    emails_sent_total.labels(status="success" if success else "error").inc()


def record_auth_attempt(success: bool = True):
    """Record authentication attempt"""
    status = "success" if success else "failure"
    auth_attempts_total.labels(status=status).inc()


def record_database_operation(operation: str, duration: float):
    """Record database operation metrics"""
    database_queries_total.labels(operation=operation).inc()
    database_query_duration_seconds.labels(operation=operation).observe(duration)


def record_cascade_delete(entity: str, removed: dict, success: bool = True):
    """Record a cascade delete and the rows it removed per table"""
    cascade_deletes_total.labels(entity=entity, status="success" if success else "error").inc()
    for table, count in removed.items():
        cascade_rows_deleted_total.labels(table=table).inc(count)


def update_application_metrics(project_count: int, prompt_count: int, tag_count: int):
    """Update application-level metrics"""
    total_projects.set(project_count)
    total_prompts.set(prompt_count)
    total_tags.set(tag_count)


async def get_metrics() -> Response:
    """Endpoint to expose Prometheus metrics"""
    try:
        metrics_data = generate_latest(REGISTRY)
        return Response(
            content=metrics_data,
            media_type=CONTENT_TYPE_LATEST
        )
    except Exception as e:
        logger.error("Failed to generate metrics", error=str(e))
        return Response(
            content="Error generating metrics",
            status_code=500
        )


class DatabaseMetricsCollector:
    """Collect database-related metrics"""

    @staticmethod
    async def collect_from_db(db_session):
        try:
            from app.models import Project, Prompt, Tag

            update_application_metrics(
                db_session.query(Project).count(),
                db_session.query(Prompt).count(),
                db_session.query(Tag).count(),
            )
        except Exception as e:
            logger.error("Failed to collect database metrics", error=str(e))


health_check_status = Gauge(
    'health_check_status',
    'Health check status (1 = healthy, 0 = unhealthy)',
    ['service'],
    registry=REGISTRY
)


def update_health_status(service: str, is_healthy: bool):
    """Update health status for a service"""
    health_check_status.labels(service=service).set(1 if is_healthy else 0)
