"""
A session, search result and entry layer over python-ldap.
"""

from .entries import Entry
from .errors import (
    AuthenticationError,
    DirectoryError,
    ErrorState,
    NotConnected,
)
from .results import SearchResult
from .session import DirectorySession
from .utils import escape, generate_password, generate_salted_password
from .values import ValueList

__version__ = "1.0.0"

__all__ = [
    "AuthenticationError",
    "DirectoryError",
    "DirectorySession",
    "Entry",
    "ErrorState",
    "NotConnected",
    "SearchResult",
    "ValueList",
    "escape",
    "generate_password",
    "generate_salted_password",
]
