"""Authentication service - accounts, credentials and profiles."""
from datetime import datetime, timezone

from bson import ObjectId

from habitflow.models.user import PasswordChange, ProfileUpdate, User, UserPreferences, UserStats
from habitflow.utils.auth import create_access_token, hash_password, verify_password


class IncorrectPasswordError(ValueError):
    """Raised when a password check fails for a known user."""


class AuthService:
    """Service for handling user accounts."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]

    def _doc_to_user(self, doc: dict) -> User:
        """Convert database document to User model (never the hash)."""
        return User(
            _id=str(doc["_id"]),
            email=doc["email"],
            name=doc["name"],
            timezone=doc.get("timezone", "UTC"),
            preferences=doc.get("preferences") or UserPreferences(),
            stats=doc.get("stats") or UserStats(),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def register_user(self, email: str, password: str, name: str) -> User:
        """
        Register a new user.

        Args:
            email: User email address (stored lower-cased)
            password: Plain text password
            name: Display name

        Returns:
            User object (without password)

        Raises:
            ValueError: If email is already registered
        """
        email = email.lower()
        if await self.users.find_one({"email": email}):
            raise ValueError("Email already registered")

        now = datetime.now(timezone.utc)
        user_doc = {
            "email": email,
            "hashed_password": hash_password(password),
            "name": name,
            "timezone": "UTC",
            "preferences": UserPreferences().model_dump(mode="json"),
            "stats": UserStats().model_dump(),
            "created_at": now,
            "updated_at": now,
        }

        result = await self.users.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id

        return self._doc_to_user(user_doc)

    async def login(self, email: str, password: str) -> str:
        """
        Check credentials and issue an access token.

        Raises:
            ValueError: If credentials are invalid
        """
        user_doc = await self.users.find_one({"email": email.lower()})
        if not user_doc or not verify_password(password, user_doc["hashed_password"]):
            raise ValueError("Invalid email or password")

        return create_access_token(user_id=str(user_doc["_id"]))

    async def _find_user_doc(self, user_id: str) -> dict:
        try:
            object_id = ObjectId(user_id)
        except Exception:
            raise ValueError("Invalid user ID format")

        user_doc = await self.users.find_one({"_id": object_id})
        if not user_doc:
            raise ValueError("User not found")
        return user_doc

    async def get_user_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            ValueError: If the ID is malformed or the user doesn't exist
        """
        return self._doc_to_user(await self._find_user_doc(user_id))

    async def update_profile(self, user_id: str, profile: ProfileUpdate) -> User:
        """
        Update name, timezone and preferences.

        Raises:
            ValueError: If the ID is malformed or the user doesn't exist
        """
        user_doc = await self._find_user_doc(user_id)

        changes = profile.model_dump(mode="json", exclude_none=True)
        changes["updated_at"] = datetime.now(timezone.utc)

        updated_doc = await self.users.find_one_and_update(
            {"_id": user_doc["_id"]},
            {"$set": changes},
            return_document=True,
        )
        return self._doc_to_user(updated_doc)

    async def change_password(self, user_id: str, change: PasswordChange) -> None:
        """
        Replace the password after checking the current one.

        Raises:
            IncorrectPasswordError: If the current password is wrong
            ValueError: If the user doesn't exist
        """
        user_doc = await self._find_user_doc(user_id)
        if not verify_password(change.current_password, user_doc["hashed_password"]):
            raise IncorrectPasswordError("Current password is incorrect")

        await self.users.update_one(
            {"_id": user_doc["_id"]},
            {"$set": {
                "hashed_password": hash_password(change.new_password),
                "updated_at": datetime.now(timezone.utc),
            }},
        )
