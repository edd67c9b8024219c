"""Session orchestration"""

from .session_manager import SessionManager, SessionState

__all__ = [
    "SessionManager",
    "SessionState",
]
