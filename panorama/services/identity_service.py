"""
Identity service.

Manages sign-in credentials in the `credentials` collection, apart from the
user profiles stored in `users`. A credential and its profile share the
same document id.

Failures are reported with provider-style error codes (``auth/...``), each
mapped to a fixed French message shown to the user. Creating a credential
never issues a token, so an administrator provisioning an account keeps
their own session.
"""

import time

from email_validator import EmailNotValidError, validate_email
from fastapi import HTTPException
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from panorama.core.config import LOCKOUT_MINUTES, MAX_FAILED_LOGINS
from panorama.core.security import hash_password, verify_password
from panorama.db.client import get_db

MIN_PASSWORD_LENGTH = 6

AUTH_ERROR_MESSAGES = {
    "auth/invalid-email": "Format email invalide.",
    "auth/user-not-found": "Identifiants incorrects.",
    "auth/wrong-password": "Identifiants incorrects.",
    "auth/invalid-credential": "Identifiants incorrects.",
    "auth/too-many-requests": "Compte temporairement bloqué. Réessayez plus tard.",
    "auth/network-request-failed": "Vérifiez votre connexion internet.",
    "auth/email-already-in-use": "Cette adresse email est déjà utilisée.",
    "auth/weak-password": "Le mot de passe doit contenir au moins 6 caractères.",
}

AUTH_ERROR_STATUS = {
    "auth/invalid-email": 400,
    "auth/too-many-requests": 429,
    "auth/network-request-failed": 503,
    "auth/email-already-in-use": 409,
    "auth/weak-password": 400,
}


def auth_error_message(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(code, f"Erreur ({code})")


def auth_error(code: str) -> HTTPException:
    """
    Builds the HTTP error for an authentication failure code.

    The detail carries both the code and its user-facing message.
    """

    return HTTPException(
        status_code=AUTH_ERROR_STATUS.get(code, 401),
        detail={"code": code, "message": auth_error_message(code)},
    )


def normalize_email(email: str) -> str:
    """
    Validates the email format and returns it lower-cased.

    Raises:
        HTTPException: ``auth/invalid-email`` if the format is wrong.
    """

    try:
        return validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise auth_error("auth/invalid-email")


async def create_credential(email: str, password: str) -> str:
    """
    Registers a new credential.

    Args:
        email (str): Sign-in email.
        password (str): Clear-text password, hashed before storage.

    Returns:
        str: Id shared by the credential and the profile to create.

    Raises:
        HTTPException: ``auth/invalid-email``, ``auth/weak-password`` or
        ``auth/email-already-in-use``.
    """

    db = get_db()
    email = normalize_email(email)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise auth_error("auth/weak-password")

    if await db["credentials"].find_one({"email": email}):
        raise auth_error("auth/email-already-in-use")

    try:
        result = await db["credentials"].insert_one({
            "email": email,
            "hashed_password": hash_password(password),
            "failed_attempts": 0,
            "locked_until": 0,
        })
    except DuplicateKeyError:
        raise auth_error("auth/email-already-in-use")
    return str(result.inserted_id)


async def verify_credential(email: str, password: str) -> str:
    """
    Checks an email/password pair.

    After `MAX_FAILED_LOGINS` consecutive failures the credential is locked
    for `LOCKOUT_MINUTES`.

    Returns:
        str: The id of the matching credential.

    Raises:
        HTTPException: ``auth/invalid-email``, ``auth/invalid-credential``
        or ``auth/too-many-requests``.
    """

    db = get_db()
    email = normalize_email(email)
    credential = await db["credentials"].find_one({"email": email})
    if not credential:
        raise auth_error("auth/invalid-credential")

    now = time.time()
    if credential.get("locked_until", 0) > now:
        raise auth_error("auth/too-many-requests")

    if not verify_password(password, credential["hashed_password"]):
        # The counter is incremented server-side so concurrent failures all count.
        updated = await db["credentials"].find_one_and_update(
            {"_id": credential["_id"]},
            {"$inc": {"failed_attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if updated["failed_attempts"] >= MAX_FAILED_LOGINS:
            await db["credentials"].update_one(
                {"_id": credential["_id"]},
                {"$set": {"failed_attempts": 0, "locked_until": now + LOCKOUT_MINUTES * 60}},
            )
            raise auth_error("auth/too-many-requests")
        raise auth_error("auth/invalid-credential")

    if credential.get("failed_attempts"):
        await db["credentials"].update_one({"_id": credential["_id"]}, {"$set": {"failed_attempts": 0}})
    return str(credential["_id"])
