"""
marketplace_auth.services

Service layer package.

Responsibilities:
- Own transaction boundaries and coordinate repositories with the credential codec.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin and delegate to services; services never touch FastAPI types.
