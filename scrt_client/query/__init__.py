"""
scrt_client.query
-----------------

Read-only chain lookups the transaction pipeline depends on.
"""

from .auth import AccountInfo, AuthQuerier

__all__ = ["AccountInfo", "AuthQuerier"]
