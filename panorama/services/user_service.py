from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException

from panorama.core.config import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
from panorama.core.security import create_access_token, profile_to_user
from panorama.db.client import get_db
from panorama.models.user import Permissions, Preferences, Theme, User
from panorama.schemas.user_schema import UserCreate, UserUpdate
from panorama.services import identity_service


def user_to_out(user: User) -> dict:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "permissions": user.permissions,
        "preferences": user.preferences,
    }


def _object_id(user_id: str) -> ObjectId:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        raise ValueError("User not found")


async def sign_in(email: str, password: str) -> dict:
    uid = await identity_service.verify_credential(email, password)
    user = await get_user_by_id(uid)
    if user is None:
        raise HTTPException(status_code=403, detail="Aucun profil n'est associé à ce compte.")
    token = create_access_token({"sub": uid})
    return {"access_token": token, "token_type": "bearer", "user": user_to_out(user)}


async def get_user_by_id(user_id: str):
    db = get_db()
    doc = await db["users"].find_one({"_id": _object_id(user_id)})
    return profile_to_user(doc) if doc else None


async def list_users():
    db = get_db()
    docs = await db["users"].find().to_list(length=None)
    return [user_to_out(profile_to_user(doc)) for doc in docs]


async def provision_user(user_data: UserCreate) -> dict:
    """
    Creates an account: the credential first, then the profile under the same id.

    The password is only handed to the identity service and never stored
    in the profile.
    """

    uid = await identity_service.create_credential(user_data.email, user_data.password)
    profile = {
        "_id": ObjectId(uid),
        "first_name": user_data.first_name,
        "last_name": user_data.last_name,
        "email": identity_service.normalize_email(user_data.email),
        "permissions": user_data.permissions.model_dump(),
        "preferences": Preferences().model_dump(mode="json"),
    }
    db = get_db()
    await db["users"].insert_one(profile)
    print(f"✅ Utilisateur {user_data.first_name} créé avec succès")
    return user_to_out(profile_to_user(profile))


async def update_user(user_id: str, user_data: UserUpdate) -> dict:
    db = get_db()
    update_data = {
        "first_name": user_data.first_name,
        "last_name": user_data.last_name,
        "permissions": user_data.permissions.model_dump(),
    }
    if user_data.preferences is not None:
        update_data["preferences"] = user_data.preferences.model_dump(mode="json")

    result = await db["users"].update_one({"_id": _object_id(user_id)}, {"$set": update_data})
    if result.matched_count == 0:
        raise ValueError("User not found")
    return user_to_out(await get_user_by_id(user_id))


async def delete_user(user_id: str):
    """
    Removes the user profile.

    The credential is left in place: without a profile the account can no
    longer sign in.
    """

    db = get_db()
    result = await db["users"].delete_one({"_id": _object_id(user_id)})
    if result.deleted_count == 0:
        raise ValueError("User not found")
    return {"ok": True}


async def set_theme(user: User, theme: Theme) -> dict:
    db = get_db()
    await db["users"].update_one({"_id": ObjectId(user.id)}, {"$set": {"preferences.theme": theme.value}})
    user.preferences.theme = theme
    return user_to_out(user)


async def ensure_default_admin():
    """
    Seeds an administrator account when no administrator profile exists.
    """

    db = get_db()
    existing = await db["users"].find_one({"permissions.is_admin": True})
    if existing:
        print("ℹ️ Default admin user already exists.")
        return

    admin = UserCreate(
        first_name="Administrateur",
        email=DEFAULT_ADMIN_EMAIL,
        password=DEFAULT_ADMIN_PASSWORD,
        permissions=Permissions(
            can_view_dashboard=True,
            can_read_list=True,
            can_create=True,
            can_update=True,
            can_delete=True,
            can_export=True,
            is_admin=True,
        ),
    )
    try:
        await provision_user(admin)
    except HTTPException as e:
        print(f"⚠️  Default admin user could not be created: {e.detail}")
        return
    print(f"✅ Default admin user created: email={DEFAULT_ADMIN_EMAIL}")
