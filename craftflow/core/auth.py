from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from fastapi import HTTPException, Request, status

from craftflow.config import get_settings

SESSION_USER_KEY = "user"


def auth_enabled() -> bool:
    settings = get_settings()
    return bool(settings.AUTH_USERNAME and (settings.AUTH_PASSWORD or settings.AUTH_PASSWORD_HASH))


def hash_password(password: str, salt: str, rounds: int) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        rounds,
    )
    return digest.hex()


def verify_credentials(username: str, password: str) -> bool:
    settings = get_settings()
    if not auth_enabled():
        return False

    username = username.strip()
    password = password.strip()

    expected_username = settings.AUTH_USERNAME.strip()
    if not hmac.compare_digest(username.casefold(), expected_username.casefold()):
        return False

    if settings.AUTH_PASSWORD_HASH:
        if not settings.AUTH_PASSWORD_SALT:
            raise ValueError("Password salt is not configured.")
        computed = hash_password(
            password,
            settings.AUTH_PASSWORD_SALT,
            settings.AUTH_PBKDF2_ROUNDS,
        )
        return hmac.compare_digest(computed, settings.AUTH_PASSWORD_HASH)

    if settings.AUTH_PASSWORD:
        return hmac.compare_digest(password, settings.AUTH_PASSWORD.strip())

    return False


def login(request: Request, username: str, password: str) -> bool:
    if not verify_credentials(username, password):
        request.session.pop(SESSION_USER_KEY, None)
        return False
    request.session[SESSION_USER_KEY] = username.strip()
    return True


def logout(request: Request) -> None:
    request.session.clear()


def current_user(request: Request) -> Optional[str]:
    return request.session.get(SESSION_USER_KEY)


def is_authenticated(request: Request) -> bool:
    if not auth_enabled():
        return True
    return bool(current_user(request))


def require_login_api(request: Request) -> None:
    if is_authenticated(request):
        return
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
