"""
Services module for memoire application.

This module contains all service classes that handle business logic:
- StorageService: Google Cloud Storage operations
- RecordStore: DuckDB memory records and profiles
- MemoryRepository: Data-access interface used by the flows below
- AuthService: Password, Cloud IAP and development sessions
- UploadStage / UploadOrchestrator: Staging and uploading media
- ViewerState, HeroCarousel: Gallery and viewer state
- DeleteService: Admin-only deletion and tag editing
"""

from .admin import DeleteService, get_delete_service
from .auth import AuthService, UserInfo, get_auth_service
from .gallery import HeroCarousel, RotationTimer, filter_records, group_by_timeline
from .media_processor import MediaProcessor, get_media_processor
from .records import RecordStore, get_record_store
from .repository import BackendRepository, MemoryRepository, get_repository
from .storage import StorageService, get_storage_service
from .upload import UploadMode, UploadOrchestrator, UploadSource, UploadStage
from .viewer import ViewerState

__all__ = [
    "AuthService",
    "UserInfo",
    "get_auth_service",
    "BackendRepository",
    "MemoryRepository",
    "get_repository",
    "DeleteService",
    "get_delete_service",
    "HeroCarousel",
    "RotationTimer",
    "filter_records",
    "group_by_timeline",
    "MediaProcessor",
    "get_media_processor",
    "RecordStore",
    "get_record_store",
    "StorageService",
    "get_storage_service",
    "UploadMode",
    "UploadOrchestrator",
    "UploadSource",
    "UploadStage",
    "ViewerState",
]
