"""
Services 패키지

백업/복원 엔진의 서비스 클래스들을 제공합니다.
"""

from .entity_store import EntityStore
from .backup_export import BackupExportService, ExportArtifact
from .backup_import import BackupImportService, MergeStrategy, ReplaceStrategy, resolve_import_request

__all__ = [
    "EntityStore",
    "BackupExportService",
    "ExportArtifact",
    "BackupImportService",
    "MergeStrategy",
    "ReplaceStrategy",
    "resolve_import_request",
]
