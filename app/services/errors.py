from __future__ import annotations


class AuthError(Exception):
    """Sign-up, sign-in or sign-out failed; the message is the backend's."""


class StoreError(Exception):
    """A document store operation failed."""
