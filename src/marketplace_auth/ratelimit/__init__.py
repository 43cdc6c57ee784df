"""
marketplace_auth.ratelimit

Per-client request-rate gating.

Responsibilities:
- Fixed-window rate gate and its named profiles.
- FastAPI dependencies that guard sensitive endpoints.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The gate itself has no FastAPI dependency and can be reused outside the API layer.
