"""Capability Resolver - What a requester may do on a task"""
from typing import TYPE_CHECKING, Optional

from ..domain.models import RequesterCapabilities, TaskSnapshot

if TYPE_CHECKING:
    from ..repositories.identity_repo import IdentityRepository
    from ..repositories.membership_repo import MembershipRepository


class CapabilityResolver:
    """Builds RequesterCapabilities from the membership and identity stores"""

    def __init__(
        self,
        membership_repo: Optional["MembershipRepository"] = None,
        identity_repo: Optional["IdentityRepository"] = None
    ):
        if membership_repo is None:
            from ..repositories.membership_repo import MembershipRepository
            membership_repo = MembershipRepository()
        if identity_repo is None:
            from ..repositories.identity_repo import IdentityRepository
            identity_repo = IdentityRepository()
        self.membership_repo = membership_repo
        self.identity_repo = identity_repo

    def resolve(self, task: TaskSnapshot, user_id: str) -> RequesterCapabilities:
        return RequesterCapabilities(
            user_id=user_id,
            role=self.membership_repo.get_space_role(task.space_id, user_id),
            is_assignee=bool(task.assignee_id) and task.assignee_id == user_id,
            is_privileged=self.identity_repo.is_privileged_identity(user_id),
        )

    def is_privileged(self, user_id: str) -> bool:
        """Fresh privileged-identity lookup"""
        return self.identity_repo.is_privileged_identity(user_id)
