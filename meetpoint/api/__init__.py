"""HTTP access to the MeetPoint backend"""

from .client import MeetPointClient
from .token_store import AUTH_TOKEN_KEY, FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    "AUTH_TOKEN_KEY",
    "FileTokenStore",
    "MeetPointClient",
    "MemoryTokenStore",
    "TokenStore",
]
