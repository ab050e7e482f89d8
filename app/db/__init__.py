"""Database package"""
from app.db.session import get_db, Database, DatabaseConnectionError
from app.models.base import Base

__all__ = ["get_db", "Database", "DatabaseConnectionError", "Base"]
