"""Cricket Scorer - ball-by-ball scoring engine."""

from .config import settings
from .database import get_database_engine, session_scope
from .engine import ScoringEngine

__all__ = ["settings", "get_database_engine", "session_scope", "ScoringEngine"]
