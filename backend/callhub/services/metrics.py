"""Prometheus metrics instrumentation for the realtime layer.

Metrics exported:
- ws_active_connections: Gauge of currently registered sessions
- ws_frames_received_total: Counter of inbound frames by envelope type
- ws_frames_dropped_total: Counter of inbound frames dropped by reason
- ws_deliveries_failed_total: Counter of outbound frames that could not be written
- call_transitions_total: Counter of call state transitions by call type and status

Usage:
    from callhub.services.metrics import start_metrics_server, frames_received

    start_metrics_server(port=8001)
    frames_received.labels(type='ping').inc()
"""

from prometheus_client import Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

active_connections_gauge = Gauge(
    'ws_active_connections',
    'Number of currently registered WebSocket sessions'
)

frames_received = Counter(
    'ws_frames_received_total',
    'Inbound WebSocket frames by envelope type',
    labelnames=['type']
)

frames_dropped = Counter(
    'ws_frames_dropped_total',
    'Inbound WebSocket frames dropped without handling',
    labelnames=['reason']  # reason: malformed, invalid_payload, no_recipient, unknown_type
)

deliveries_failed = Counter(
    'ws_deliveries_failed_total',
    'Outbound frames that could not be written to a session'
)

call_transitions = Counter(
    'call_transitions_total',
    'Call state transitions',
    labelnames=['call_type', 'status']  # status: RINGING, ACTIVE, ENDED
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except Exception as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
