from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from craftflow.core import auth

router = APIRouter(tags=["Auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


def _session_payload(request: Request):
    return {
        "auth_enabled": auth.auth_enabled(),
        "authenticated": auth.is_authenticated(request),
        "user": auth.current_user(request),
    }


@router.post("/login")
def login(payload: LoginRequest, request: Request):
    if not auth.auth_enabled():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Login is not configured. Set credentials in the environment.",
        )

    try:
        authenticated = auth.login(request, payload.username, payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    if not authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login ID or password.",
        )
    return _session_payload(request)


@router.post("/logout")
def logout(request: Request):
    auth.logout(request)
    return _session_payload(request)


@router.get("/session")
def session(request: Request):
    return _session_payload(request)
