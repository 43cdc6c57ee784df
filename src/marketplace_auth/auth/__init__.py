"""
marketplace_auth.auth

Authentication/authorization package.

Responsibilities:
- Credential codec (JWT issue/verify) and password hashing.
- Role authorization engine.
- FastAPI auth dependencies (Principal + role requirements).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only `deps.py` imports FastAPI; the rest of this package is framework-free.
