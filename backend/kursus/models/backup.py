"""Backup document and API response models."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BackupType = Literal["data", "full"]


class BackupMetadata(BaseModel):
    """Self-describing header of a snapshot document."""

    model_config = ConfigDict(frozen=True)

    version: str
    created_at: str = Field(..., description="ISO-8601 UTC creation timestamp")
    backup_type: BackupType
    total_records: int = Field(..., ge=0)
    description: str
    tables_included: list[str]


class BackupDocument(BaseModel):
    """Snapshot of every application table: metadata plus rows per table."""

    model_config = ConfigDict(frozen=True)

    metadata: BackupMetadata
    data: dict[str, list[dict[str, Any]]]

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent)


class DataBackupResponse(BaseModel):
    success: bool = True
    data: BackupDocument
    size: str
    records: int
    message: str = "Data backup created successfully"


class BackupValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class RestoreResponse(BaseModel):
    success: bool = True
    message: str = "Data restored successfully"
    restored_records: int
    backup_date: str | None = None
    backup_type: str | None = None


@dataclass(frozen=True)
class FileAsset:
    """Local file bundled into a full backup archive."""

    name: str
    path: Path


@dataclass
class AssetManifest:
    certificate_templates: list[FileAsset] = field(default_factory=list)
    certificates: list[FileAsset] = field(default_factory=list)
    cloudinary_urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "certificate_templates": [asset.name for asset in self.certificate_templates],
            "certificates": [asset.name for asset in self.certificates],
            "cloudinary_urls": list(self.cloudinary_urls),
        }
