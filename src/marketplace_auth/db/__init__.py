"""
marketplace_auth.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for the identity
  store and the refresh token ledger.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only the two tables the access-control core needs live here; business data
# (listings, orders, messages) is owned elsewhere.
