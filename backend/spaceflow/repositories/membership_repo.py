"""Membership Repository - Space roles of users"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MembershipRepository:
    """Repository for space membership lookups"""

    def __init__(self, collection: Optional[Collection] = None):
        self._members: Collection = collection if collection is not None else get_collection("space_members")

    def get_space_role(self, space_id: str, user_id: str) -> Optional[str]:
        """Upper-cased role of the user in the space, None when not a member"""
        doc = self._members.find_one(
            {"space_id": space_id, "user_id": user_id},
            {"_id": 0, "role": 1}
        )
        if not doc or not doc.get("role"):
            return None
        return str(doc["role"]).strip().upper()

    def add_member(self, space_id: str, user_id: str, role: str) -> None:
        """Add or update a membership (seeding)"""
        self._members.update_one(
            {"space_id": space_id, "user_id": user_id},
            {"$set": {"role": role.upper()}},
            upsert=True
        )
        logger.info(
            f"Set {user_id} as {role.upper()} in space {space_id}",
            extra={"space_id": space_id, "actor_id": user_id}
        )
