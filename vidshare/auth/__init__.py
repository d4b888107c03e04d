"""Authentication module for vidshare."""

from vidshare.auth.dependencies import optional_user, require_user

__all__ = ["optional_user", "require_user"]
