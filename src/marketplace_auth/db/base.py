"""
marketplace_auth.db.base

SQLAlchemy declarative base.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
