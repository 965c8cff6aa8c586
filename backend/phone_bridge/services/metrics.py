"""Prometheus metrics instrumentation for the signaling relay.

Exposes metrics for monitoring session churn and relay outcomes. Metrics are
exposed via HTTP on a dedicated port when METRICS_PORT is configured.

Metrics exported:
- signaling_active_sessions: Gauge of sessions with at least one open stream
- signaling_open_streams: Gauge of currently open event streams
- signaling_messages_relayed_total: Counter of relay calls by outcome
- images_saved_total: Counter of image save requests by status

Usage:
    from phone_bridge.services.metrics import start_metrics_server, messages_relayed

    start_metrics_server(port=8001)
    messages_relayed.labels(outcome='delivered').inc()
"""

from prometheus_client import Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

active_sessions_gauge = Gauge(
    'signaling_active_sessions',
    'Number of sessions with at least one open event stream'
)

open_streams_gauge = Gauge(
    'signaling_open_streams',
    'Number of currently open event streams'
)

# outcome: delivered, session_not_found, peer_not_found, malformed, too_large
messages_relayed = Counter(
    'signaling_messages_relayed_total',
    'Total signaling messages posted for relay',
    labelnames=['outcome']
)

# status: saved, rejected, error
images_saved = Counter(
    'images_saved_total',
    'Total image save requests',
    labelnames=['status']
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except OSError as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
