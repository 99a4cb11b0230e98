"""
Client session lifecycle.

- manager: SessionManager state machine (login, register, logout, restore)
- forms: form controllers that validate input and call the manager
- bootstrap: wiring from environment settings
"""

from .manager import SessionManager

__all__ = ["SessionManager"]
