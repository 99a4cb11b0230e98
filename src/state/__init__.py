
"""
Session models and credential persistence.

This package defines the user/session schema exchanged with the remote API
and the key-value credential store that keeps the session across restarts.
"""

from .models import Credentials, ImcRecord, ImcResult, SessionSnapshot, StoredCredentials, User

__all__ = [
    "Credentials",
    "ImcRecord",
    "ImcResult",
    "SessionSnapshot",
    "StoredCredentials",
    "User",
]

