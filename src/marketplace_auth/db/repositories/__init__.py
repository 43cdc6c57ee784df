"""
marketplace_auth.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for the persistence layer.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories flush but never commit; the session issuer owns the transaction.
