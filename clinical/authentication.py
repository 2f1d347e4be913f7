"""
Token authentication for the clinical API.

Kept apart from the login view so that DRF can import it from settings
without pulling in view modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` using DRF's authtoken table."""

    keyword = 'Token'
