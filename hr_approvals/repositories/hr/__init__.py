from .entity_status_repository import EntityStatusRepository
from .user_profile_repository import UserProfileRepository

__all__ = ["EntityStatusRepository", "UserProfileRepository"]
