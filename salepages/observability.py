from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from pythonjsonlogger import jsonlogger
import logging
import time
from flask import Response, g, request

# Basic metrics
HTTP_REQUESTS = Counter('http_requests_total', 'HTTP requests', ['method', 'endpoint', 'status'])
HTTP_LATENCY = Histogram('http_request_duration_seconds', 'HTTP request latency', ['endpoint'])

# Page cache metrics
PAGE_CACHE_LOOKUPS = Counter(
    'page_cache_lookups_total', 'Rendered page cache lookups', ['namespace', 'result']
)
PAGE_CACHE_WRITES = Counter(
    'page_cache_writes_total', 'Rendered page cache writes', ['namespace', 'result']
)
PAGE_CACHE_ERRORS = Counter(
    'page_cache_errors_total', 'Cache store failures absorbed by the page cache', ['operation']
)
RENDER_LATENCY = Histogram(
    'page_render_duration_seconds', 'Template render latency', ['template']
)


def configure_logging(level=logging.INFO):
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    root = logging.getLogger()
    # Avoid adding duplicate handlers
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)


def metrics_endpoint():
    """Return a Flask Response with current Prometheus metrics."""
    data = generate_latest()
    return Response(data, mimetype=CONTENT_TYPE_LATEST)


def instrument_app(app):
    """Record request count and latency for every endpoint of ``app``."""

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _record_request(response):
        endpoint = request.endpoint or "unknown"
        HTTP_REQUESTS.labels(request.method, endpoint, response.status_code).inc()
        started = g.pop("request_started", None)
        if started is not None:
            HTTP_LATENCY.labels(endpoint).observe(time.perf_counter() - started)
        return response
