"""
marketplace_auth.api

HTTP API package (FastAPI).

Responsibilities:
- App factory, dependencies, exception handlers and routers.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers are thin; decisions live in `services`, `auth` and `ratelimit`.
