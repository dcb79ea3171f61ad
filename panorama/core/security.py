"""
Security helpers.

Password hashing, bearer token issuing and the FastAPI dependencies that
resolve the signed-in user and enforce permissions.

Tokens are HS256 JWTs whose subject is the user id. Passwords are stored
as salted hashes produced by `werkzeug.security` in the `credentials`
collection.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from werkzeug.security import check_password_hash, generate_password_hash

from panorama.core.config import ACCESS_TOKEN_MINUTES, ALGORITHM, SECRET_KEY
from panorama.db.client import get_db
from panorama.models.user import User

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return check_password_hash(hashed_password, password)


def create_access_token(data: dict) -> str:
    """
    Issues a signed bearer token.

    Args:
        data (dict): Claims to embed, typically ``{"sub": user_id}``.

    Returns:
        str: The encoded token, valid for `ACCESS_TOKEN_MINUTES`.
    """

    payload = dict(data)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_MINUTES)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous reconnecter.")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Jeton d'authentification invalide.")


def profile_to_user(doc: dict) -> User:
    """Builds a `User` from a `users` document."""
    data = dict(doc)
    data["_id"] = str(data["_id"])
    return User.model_validate(data)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> User:
    """
    Resolves the signed-in user from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired, or
        if the user profile no longer exists.
    """

    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentification requise.")

    payload = decode_access_token(credentials.credentials)
    try:
        user_id = ObjectId(payload.get("sub"))
    except (InvalidId, TypeError):
        raise HTTPException(status_code=401, detail="Jeton d'authentification invalide.")

    db = get_db()
    doc = await db["users"].find_one({"_id": user_id})
    if not doc:
        raise HTTPException(status_code=401, detail="Profil utilisateur introuvable.")
    return profile_to_user(doc)


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.permissions.is_admin:
        raise HTTPException(status_code=403, detail="Accès réservé aux administrateurs.")
    return user


def require_permission(permission: str) -> Callable:
    """
    FastAPI dependency factory enforcing one of the user permissions.

    Administrators pass every check.

    Usage in routes:
        @router.post("", dependencies=[Depends(require_permission("can_create"))])

    Args:
        permission (str): Name of a `Permissions` flag (e.g., ``"can_export"``).

    Returns:
        A dependency returning the signed-in `User`.
    """

    def _check_permission(user: User = Depends(get_current_user)) -> User:
        if user.permissions.is_admin or getattr(user.permissions, permission, False):
            return user
        raise HTTPException(status_code=403, detail="Vous n'avez pas les droits nécessaires pour cette action.")

    return _check_permission
