"""
Version helpers for the scrt-client package.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"


def user_agent() -> str:
    """Default User-Agent sent by the RPC transport, e.g. 'scrt-client-py/0.1.0'."""
    return f"scrt-client-py/{__version__}"


__all__ = ["__version__", "user_agent"]
