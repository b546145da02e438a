"""API route modules."""

from . import plans, profiles, sessions

__all__ = ["plans", "profiles", "sessions"]
