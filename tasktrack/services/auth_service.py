"""Authentication service - business logic for user auth."""
import logging

from tasktrack.database import parse_object_id
from tasktrack.models.user import ProfileUpdate, User
from tasktrack.services.profile_service import ProfileService
from tasktrack.utils.auth import create_access_token, hash_password, verify_password
from tasktrack.utils.clock import utcnow

logger = logging.getLogger(__name__)


class AuthService:
    """Service for handling user authentication."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]
        self.profile_service = ProfileService(db)

    def _doc_to_user(self, doc: dict) -> User:
        """Convert database document to User model."""
        return User(
            _id=str(doc["_id"]),
            email=doc["email"],
            name=doc["name"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def register_user(self, email: str, password: str, name: str) -> User:
        """
        Register a new user and enrol them in the workspace.

        Creates the user's profile (named after the registration name) and
        adds them to the workspace team.

        Args:
            email: User email address
            password: Plain text password
            name: User's full name

        Returns:
            User object (without password)

        Raises:
            ValueError: If email is already registered
        """
        existing = await self.users.find_one({"email": email})
        if existing:
            raise ValueError("Email already registered")

        now = utcnow()
        user_doc = {
            "email": email,
            "hashed_password": hash_password(password),
            "name": name,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.users.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id
        user_id = str(result.inserted_id)

        await self.profile_service.upsert_profile(user_id, ProfileUpdate(full_name=name))
        await self.profile_service.ensure_team_membership(user_id)

        logger.info("Registered user %s", user_id)
        return self._doc_to_user(user_doc)

    async def login(self, email: str, password: str) -> str:
        """
        Login user and return JWT token.

        Raises:
            ValueError: If credentials are invalid
        """
        user_doc = await self.users.find_one({"email": email})
        if not user_doc or not verify_password(password, user_doc["hashed_password"]):
            raise ValueError("Invalid email or password")

        return create_access_token(user_id=str(user_doc["_id"]))

    async def get_user_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            ValueError: If user not found
        """
        user_doc = await self.users.find_one({"_id": parse_object_id(user_id, "user")})
        if not user_doc:
            raise ValueError("User not found")

        return self._doc_to_user(user_doc)
