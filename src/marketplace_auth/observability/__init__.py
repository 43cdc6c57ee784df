"""
marketplace_auth.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for consistent log enrichment.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Security-relevant events (token rejections, rate denials) are plain log events
# here; a SIEM exporter would hook in at this layer.
