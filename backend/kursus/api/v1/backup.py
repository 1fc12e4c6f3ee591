"""Admin backup endpoints: data snapshot, full archive, validation and restore."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse, Response

from kursus.api.deps import get_backup_service, require_admin
from kursus.core.config import settings
from kursus.core.exceptions import BackupError, BackupValidationError
from kursus.core.logging import logger, sanitize_log_extra
from kursus.models.backup import BackupValidationResult, DataBackupResponse, RestoreResponse
from kursus.services.auth_service import AuthenticatedUser
from kursus.services.backup_service import BackupService
from kursus.utils.hashing import calculate_data_hash, calculate_file_md5
from kursus.utils.sizes import format_size_mb

router = APIRouter()


def _error(status_code: int, error: str, message: str | None = None, **extra) -> JSONResponse:
    content = {"error": error}
    if message is not None:
        content["message"] = message
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@router.post("/data", response_model=DataBackupResponse)
async def create_data_backup(
    user: AuthenticatedUser = Depends(require_admin),
    backup_service: BackupService = Depends(get_backup_service),
) -> Response:
    """Return a JSON snapshot of every table, with its size and record count."""
    logger.info("Starting data backup", extra={"user_email": user.email})
    try:
        document = await backup_service.create_data_backup()
    except BackupError as exc:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Backup failed", exc.reason)

    size = format_size_mb(len(document.to_json(indent=2).encode("utf-8")))
    body = DataBackupResponse(data=document, size=size, records=document.metadata.total_records)
    logger.info(f"Data backup ready: {size}", extra={"records": body.records})
    return JSONResponse(
        content=body.model_dump(mode="json"),
        headers={"X-Backup-Data-Hash": calculate_data_hash(document.data)},
    )


@router.post("/full")
async def create_full_backup(
    user: AuthenticatedUser = Depends(require_admin),
    backup_service: BackupService = Depends(get_backup_service),
) -> Response:
    """Return the snapshot and certificate files as a downloadable ZIP archive."""
    logger.info("Starting full backup", extra={"user_email": user.email})
    try:
        archive = await backup_service.create_full_backup()
    except BackupError as exc:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Full backup failed", exc.reason)

    filename = f"{settings.BACKUP_FILENAME_PREFIX}-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.zip"
    logger.info(
        f"Full backup ready: {format_size_mb(len(archive))}",
        extra=sanitize_log_extra({"filename": filename, "size_bytes": len(archive)}),
    )
    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(archive)),
            "Content-MD5": calculate_file_md5(archive),
        },
    )


@router.post("/validate", response_model=BackupValidationResult)
async def validate_backup(
    user: AuthenticatedUser = Depends(require_admin),
    backup: UploadFile | None = File(None),
    backup_service: BackupService = Depends(get_backup_service),
) -> Response:
    """Check an uploaded backup file without touching the database."""
    if backup is None:
        return _error(status.HTTP_400_BAD_REQUEST, "No backup file provided")
    try:
        payload = backup_service.parse_backup_file(await backup.read())
    except BackupValidationError as exc:
        return JSONResponse(content=BackupValidationResult(is_valid=False, errors=exc.errors).model_dump())
    return JSONResponse(content=backup_service.validate_backup(payload).model_dump())


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    user: AuthenticatedUser = Depends(require_admin),
    backup: UploadFile | None = File(None),
    backup_service: BackupService = Depends(get_backup_service),
) -> Response:
    """Replace all application data with the contents of an uploaded backup."""
    if backup is None:
        return _error(status.HTTP_400_BAD_REQUEST, "No backup file provided")

    content = await backup.read()
    logger.info(
        f"Restore requested with {backup.filename} ({len(content)} bytes)",
        extra={"user_email": user.email},
    )
    try:
        payload = backup_service.parse_backup_file(content)
        restored = await backup_service.restore_from_backup(payload)
    except BackupValidationError as exc:
        logger.warning(f"Backup validation failed: {exc.errors}")
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid backup file", details=exc.errors)
    except BackupError as exc:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Restore failed", exc.reason)

    metadata = payload["metadata"]
    body = RestoreResponse(
        restored_records=restored,
        backup_date=metadata.get("created_at"),
        backup_type=metadata.get("backup_type"),
    )
    return JSONResponse(content=body.model_dump())
