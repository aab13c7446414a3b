"""Identity Repository - User records and elevated identities"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..utils.logger import get_logger

logger = get_logger(__name__)

PRIVILEGED_ROLES = {"ADMIN", "SYSTEM_ADMIN"}


class IdentityRepository:
    """Repository for user identity lookups"""

    def __init__(self, collection: Optional[Collection] = None):
        self._users: Collection = collection if collection is not None else get_collection("users")

    def is_privileged_identity(self, user_id: str) -> bool:
        """True for system administrators; always read fresh, never cached"""
        doc = self._users.find_one(
            {"user_id": user_id},
            {"_id": 0, "role": 1, "is_system_admin": 1}
        )
        if not doc:
            return False
        if doc.get("is_system_admin"):
            return True
        return str(doc.get("role") or "").upper() in PRIVILEGED_ROLES

    def upsert_user(self, user_id: str, email: str, display_name: str, role: str = "USER") -> None:
        """Create or update a user (seeding)"""
        self._users.update_one(
            {"user_id": user_id},
            {"$set": {"email": email, "display_name": display_name, "role": role.upper()}},
            upsert=True
        )
        logger.info(f"Upserted user: {user_id}", extra={"actor_id": user_id})
