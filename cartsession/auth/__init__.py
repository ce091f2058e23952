"""Authentication session."""
from .session import SessionProvider

__all__ = ["SessionProvider"]
