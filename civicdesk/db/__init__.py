"""
Database module for CivicDesk.

Exports connection utilities and the user repository.
"""

from civicdesk.db.connection import (
    check_db_connection,
    close_db_connection,
    get_engine,
    get_session,
    get_session_maker,
    init_models,
)
from civicdesk.db.users import UserRepository

__all__ = [
    "check_db_connection",
    "close_db_connection",
    "get_engine",
    "get_session",
    "get_session_maker",
    "init_models",
    "UserRepository",
]
