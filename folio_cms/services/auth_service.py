from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from ..utils import decode_token
from .users import get_user

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def decode_access_token(token: str) -> dict:
    try:
        return decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user(token: str = Depends(oauth2_scheme)) -> dict:
    """Resolve the bearer token to a stored account; deleted accounts lose access immediately."""
    payload = decode_access_token(token)

    if "sub" not in payload:
        raise HTTPException(401, "Invalid token payload")

    user = get_user(payload["sub"])
    if user is None:
        raise HTTPException(401, "Unknown user")
    return user


def require_role(*roles: str):
    def checker(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            raise HTTPException(403, "Insufficient permissions")
        return user
    return checker
