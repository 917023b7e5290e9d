from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .errors import Unauthorized
from .settings import get_settings

_security = HTTPBasic(auto_error=False)


# PUBLIC_INTERFACE
async def get_owner_id(
    request: Request,
    creds: Optional[HTTPBasicCredentials] = Depends(_security),
) -> str:
    """
    Resolve the authenticated owner of the request.

    Behavior:
    - Default: identity is established upstream (gateway/session layer) and
      passed in the header named by OWNER_HEADER (X-Owner-Id).
    - If settings.enable_basic_auth is True: credentials are checked against
      BASIC_AUTH_USERNAME/BASIC_AUTH_PASSWORD and the username is the owner id.

    Raises:
        Unauthorized if no identity is present or credentials are invalid.
    """
    settings = get_settings()

    if not settings.enable_basic_auth:
        owner = request.headers.get(settings.owner_header, "").strip()
        if not owner:
            raise Unauthorized("Not authenticated")
        return owner

    if creds is None or not creds.username or creds.password is None:
        raise Unauthorized("Not authenticated")

    expected_user = settings.basic_auth_username
    expected_pass = settings.basic_auth_password
    if expected_user is None or expected_pass is None:
        # Misconfiguration: auth enabled but username/password not provided
        raise Unauthorized("Server authentication not configured")

    user_ok = secrets.compare_digest(creds.username.encode(), expected_user.encode())
    pass_ok = secrets.compare_digest(creds.password.encode(), expected_pass.encode())
    if not (user_ok and pass_ok):
        raise Unauthorized("Invalid authentication credentials")
    return creds.username
