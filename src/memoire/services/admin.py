"""Admin-only operations: deleting memories and editing their tags."""

from ..error_handling import DatabaseError, MemoireError, StorageError
from ..logging_config import get_logger, log_user_action
from ..models.memory import MemoryRecord
from .auth import UserInfo, require_admin
from .repository import MemoryRepository, get_repository

logger = get_logger(__name__)

DELETE_CONFIRMATION_PROMPT = "Are you sure you want to delete this memory?"
DELETE_FAILED_MESSAGE = "Failed to delete memory. Please try again."


class DeleteService:
    """
    Deletes a memory and every object it references.

    Objects go first. If any of them cannot be removed the record is left
    untouched, so the gallery never points at a half-deleted memory.
    """

    def __init__(self, repository: MemoryRepository | None = None) -> None:
        self.repository = repository or get_repository()

    def delete(self, session: UserInfo | None, record: MemoryRecord, confirmed: bool) -> bool:
        """
        Delete ``record`` for an admin session.

        Args:
            session: Current session, must carry the admin flag
            record: Memory to delete
            confirmed: Whether the user answered the confirmation step

        Returns:
            bool: True once the memory is gone, False if not confirmed

        Raises:
            AuthorizationError: For sessions without the admin flag
            StorageError: If an object could not be deleted (record kept)
            DatabaseError: If the record could not be deleted after its objects
        """
        user = require_admin(session, "delete_memory")
        if not confirmed:
            logger.info("memory_delete_not_confirmed", record_id=record.id, user_id=user.user_id)
            return False

        paths = record.storage_paths()
        try:
            self.repository.delete_objects(paths)
        except StorageError as e:
            e.user_message = DELETE_FAILED_MESSAGE
            raise

        try:
            deleted = self.repository.delete_record(record.id)
        except MemoireError as e:
            raise DatabaseError(
                f"Objects of memory '{record.id}' were deleted but the record was not: {e}",
                code="record_delete_failed",
                user_message=DELETE_FAILED_MESSAGE,
                details={"record_id": record.id, "objects_deleted": len(paths)},
                original_exception=e,
            ) from e

        log_user_action(user.user_id, "memory_deleted", record_id=record.id, objects=len(paths), found=deleted)
        return True

    def update_tags(self, session: UserInfo | None, record_id: str, tags: list[str]) -> MemoryRecord:
        """Replace the tags of a memory. Admin only."""
        user = require_admin(session, "update_tags")
        record = self.repository.update_record_tags(record_id, tags)
        log_user_action(user.user_id, "memory_tags_edited", record_id=record_id, tags=record.tags)
        return record


def split_by_type(records: list[MemoryRecord]) -> tuple[list[MemoryRecord], list[MemoryRecord]]:
    """(photos, videos) for the admin listing."""
    photos = [record for record in records if not record.is_video]
    videos = [record for record in records if record.is_video]
    return photos, videos


_delete_service: DeleteService | None = None


def get_delete_service() -> DeleteService:
    """Get the global delete service instance."""
    global _delete_service
    if _delete_service is None:
        _delete_service = DeleteService()
    return _delete_service
