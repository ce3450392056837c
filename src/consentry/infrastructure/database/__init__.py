"""
Database infrastructure components.
"""

from consentry.infrastructure.database.connection import Base, DatabaseManager

__all__ = [
    "Base",
    "DatabaseManager",
]
