"""Backup service: full-data snapshots, ZIP archives, validation and restore.

A snapshot reads every table listed in ``BACKUP_TABLES`` (no filters, no
pagination) and merges the rows into one ``BackupDocument``. Reads are
independent and may run concurrently, one session each; the document is
always assembled in registry order. There is no isolation spanning the
whole snapshot, so two tables may reflect slightly different points in time
if writes happen mid-build.

Any failing read aborts the build: no partial document is ever returned.
"""
from __future__ import annotations

import asyncio
import io
import json
import time
import zipfile
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from kursus.core.config import settings
from kursus.core.database import Base, SessionLocal
from kursus.core.exceptions import BackupError, BackupValidationError
from kursus.core.logging import logger, sanitize_log_extra
from kursus.db.crud import delete_all_rows, fetch_all_rows, insert_rows
from kursus.db.models import (
    AnnouncementORM,
    AttendanceORM,
    BlogPostORM,
    CertificateORM,
    CertificateTemplateORM,
    ClassMeetingORM,
    ClassORM,
    ClassStudentORM,
    CoursePricingORM,
    CourseORM,
    EmployeeAttendanceORM,
    FacilityORM,
    GalleryImageORM,
    HeroSectionORM,
    LandingCourseORM,
    LocationInfoORM,
    PaymentORM,
    PaymentTransactionORM,
    RoomORM,
    StudentORM,
    TeacherAttendanceORM,
    TeacherCourseORM,
    TeacherORM,
    TestimonialORM,
    UserORM,
)
from kursus.models.backup import (
    AssetManifest,
    BackupDocument,
    BackupMetadata,
    BackupType,
    BackupValidationResult,
    FileAsset,
)
from kursus.observability.metrics import record_backup

REDACTED_PASSWORD = "[REDACTED]"
UNUSABLE_PASSWORD = "!"  # never matches a bcrypt hash; forces a password reset

DATA_BACKUP_DESCRIPTION = "Complete database backup - all tables included"
FULL_BACKUP_DESCRIPTION = "Full backup - database and files"

ARCHIVE_DATABASE_ENTRY = "database.json"
ARCHIVE_MANIFEST_ENTRY = "assets-manifest.json"
ARCHIVE_TEMPLATES_FOLDER = "certificate-templates"
ARCHIVE_CERTIFICATES_FOLDER = "certificates"

TableReader = Callable[[Session], list[dict[str, Any]]]


@dataclass(frozen=True)
class BackupTable:
    """One entry of the snapshot: document key, source model and its reader."""

    name: str
    model: type[Base]
    group: str
    reader: TableReader


def _reader_for(model: type[Base]) -> TableReader:
    def read(db: Session) -> list[dict[str, Any]]:
        return fetch_all_rows(db, model)

    return read


def _read_users(db: Session) -> list[dict[str, Any]]:
    return [{**row, "password": REDACTED_PASSWORD} for row in fetch_all_rows(db, UserORM)]


def _table(name: str, model: type[Base], group: str, reader: TableReader | None = None) -> BackupTable:
    return BackupTable(name=name, model=model, group=group, reader=reader or _reader_for(model))


# Single source of truth for the snapshot: document keys, metadata.tables_included
# and validation all follow this order.
BACKUP_TABLES: tuple[BackupTable, ...] = (
    _table("students", StudentORM, "core"),
    _table("teachers", TeacherORM, "core"),
    _table("classes", ClassORM, "core"),
    _table("courses", CourseORM, "core"),
    _table("coursePricing", CoursePricingORM, "core"),
    _table("meetings", ClassMeetingORM, "core"),
    _table("payments", PaymentORM, "core"),
    _table("paymentTransactions", PaymentTransactionORM, "core"),
    _table("certificates", CertificateORM, "core"),
    _table("certificateTemplates", CertificateTemplateORM, "core"),
    _table("users", UserORM, "core", _read_users),
    _table("rooms", RoomORM, "core"),
    _table("classStudents", ClassStudentORM, "relation"),
    _table("teacherAttendances", TeacherAttendanceORM, "relation"),
    _table("attendances", AttendanceORM, "relation"),
    _table("teacherCourses", TeacherCourseORM, "relation"),
    _table("announcements", AnnouncementORM, "system"),
    _table("employeeAttendances", EmployeeAttendanceORM, "system"),
    _table("heroSections", HeroSectionORM, "content"),
    _table("facilities", FacilityORM, "content"),
    _table("testimonials", TestimonialORM, "content"),
    _table("galleryImages", GalleryImageORM, "content"),
    _table("locationInfo", LocationInfoORM, "content"),
    _table("landingCourses", LandingCourseORM, "content"),
    _table("blogPosts", BlogPostORM, "content"),
)

REQUIRED_TABLES: tuple[str, ...] = ("students", "teachers", "classes", "courses")

# Parents before children; deletes run in reverse.
RESTORE_ORDER: tuple[str, ...] = (
    "users",
    "courses",
    "coursePricing",
    "rooms",
    "teachers",
    "teacherCourses",
    "students",
    "classes",
    "classStudents",
    "meetings",
    "attendances",
    "teacherAttendances",
    "payments",
    "paymentTransactions",
    "certificateTemplates",
    "certificates",
    "announcements",
    "employeeAttendances",
    "heroSections",
    "facilities",
    "testimonials",
    "galleryImages",
    "locationInfo",
    "landingCourses",
    "blogPosts",
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class BackupService:
    """Builds, packages, validates and restores full-data backups."""

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        *,
        tables: tuple[BackupTable, ...] = BACKUP_TABLES,
        max_concurrent_reads: int | None = None,
        templates_dir: str | Path | None = None,
        certificates_dir: str | Path | None = None,
        remote_asset_host: str | None = None,
    ) -> None:
        self.session_factory = session_factory or SessionLocal
        self.tables = tables
        self.max_concurrent_reads = max(1, max_concurrent_reads or settings.BACKUP_MAX_CONCURRENT_READS)
        self.templates_dir = Path(templates_dir or settings.CERTIFICATE_TEMPLATES_DIR)
        self.certificates_dir = Path(certificates_dir or settings.GENERATED_CERTIFICATES_DIR)
        self.remote_asset_host = remote_asset_host if remote_asset_host is not None else settings.REMOTE_ASSET_HOST

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def _read_table(self, table: BackupTable) -> list[dict[str, Any]]:
        with self.session_factory() as db:
            rows = table.reader(db)
        logger.debug(
            "Backup table read",
            extra=sanitize_log_extra({"table": table.name, "group": table.group, "rows": len(rows)}),
        )
        return rows

    async def _read_all_tables(self) -> list[list[dict[str, Any]]]:
        semaphore = asyncio.Semaphore(self.max_concurrent_reads)

        async def read(table: BackupTable) -> list[dict[str, Any]]:
            async with semaphore:
                return await asyncio.to_thread(self._read_table, table)

        # gather keeps argument order, whatever order the reads finish in
        return await asyncio.gather(*(read(table) for table in self.tables))

    async def create_data_backup(self, backup_type: BackupType = "data") -> BackupDocument:
        """Read every registered table and return a fresh snapshot document."""
        start_time = time.time()
        try:
            results = await self._read_all_tables()
        except Exception as exc:
            if backup_type == "data":
                record_backup("data", time.time() - start_time, False)
            logger.error(f"Data backup failed: {exc}", exc_info=True)
            raise BackupError(f"Data backup failed: {exc}", backup_type=backup_type) from exc

        data = {table.name: rows for table, rows in zip(self.tables, results)}
        total_records = sum(len(rows) for rows in data.values())
        metadata = BackupMetadata(
            version=settings.BACKUP_VERSION,
            created_at=_utc_now_iso(),
            backup_type=backup_type,
            total_records=total_records,
            description=FULL_BACKUP_DESCRIPTION if backup_type == "full" else DATA_BACKUP_DESCRIPTION,
            tables_included=list(data.keys()),
        )
        document = BackupDocument(metadata=metadata, data=data)

        if backup_type == "data":
            record_backup("data", time.time() - start_time, True, records=total_records)
        logger.info(
            f"Data backup completed: {total_records} records from {len(data)} tables",
            extra={"total_records": total_records, "table_count": len(data), "backup_type": backup_type},
        )
        return document

    # ------------------------------------------------------------------
    # Archive
    # ------------------------------------------------------------------

    @staticmethod
    def _list_files(directory: Path, suffix: str) -> list[FileAsset]:
        if not directory.is_dir():
            logger.info(f"Asset directory not found, skipping: {directory}")
            return []
        return [
            FileAsset(name=path.name, path=path)
            for path in sorted(directory.iterdir())
            if path.is_file() and path.suffix.lower() == suffix
        ]

    def collect_file_assets(self, document: BackupDocument) -> AssetManifest:
        """Find local certificate files and remotely hosted photo URLs referenced by ``document``."""
        manifest = AssetManifest(
            certificate_templates=self._list_files(self.templates_dir, ".docx"),
            certificates=self._list_files(self.certificates_dir, ".pdf"),
        )
        if self.remote_asset_host:
            for table in ("students", "teachers"):
                for row in document.data.get(table, []):
                    photo = row.get("photo")
                    if photo and self.remote_asset_host in photo:
                        manifest.cloudinary_urls.append(photo)
        logger.info(
            "Collected backup assets",
            extra={
                "certificate_templates": len(manifest.certificate_templates),
                "certificates": len(manifest.certificates),
                "cloudinary_urls": len(manifest.cloudinary_urls),
            },
        )
        return manifest

    @staticmethod
    def _build_archive(document: BackupDocument, assets: AssetManifest, compression_level: int) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=compression_level) as zf:
            zf.writestr(ARCHIVE_DATABASE_ENTRY, document.to_json(indent=2))
            # A local asset that cannot be read aborts the whole archive.
            for asset in assets.certificate_templates:
                zf.writestr(f"{ARCHIVE_TEMPLATES_FOLDER}/{asset.name}", asset.path.read_bytes())
            for asset in assets.certificates:
                zf.writestr(f"{ARCHIVE_CERTIFICATES_FOLDER}/{asset.name}", asset.path.read_bytes())
            zf.writestr(ARCHIVE_MANIFEST_ENTRY, json.dumps(assets.to_dict(), indent=2))
        return buffer.getvalue()

    async def create_full_backup(self) -> bytes:
        """Snapshot plus certificate files, packaged as an in-memory ZIP archive."""
        start_time = time.time()
        try:
            document = await self.create_data_backup(backup_type="full")
            assets = await asyncio.to_thread(self.collect_file_assets, document)
            archive = await asyncio.to_thread(
                self._build_archive, document, assets, settings.BACKUP_ZIP_COMPRESSION_LEVEL
            )
        except Exception as exc:
            record_backup("full", time.time() - start_time, False)
            logger.error(f"Full backup failed: {exc}", exc_info=True)
            raise BackupError(f"Full backup failed: {exc}", backup_type="full") from exc

        record_backup(
            "full",
            time.time() - start_time,
            True,
            records=document.metadata.total_records,
            size_bytes=len(archive),
        )
        logger.info(f"Full backup completed: {len(archive)} bytes", extra={"size_bytes": len(archive)})
        return archive

    # ------------------------------------------------------------------
    # Validation and restore
    # ------------------------------------------------------------------

    @staticmethod
    def parse_backup_file(content: bytes) -> Any:
        """Decode an uploaded backup: a JSON document, or a full archive containing one."""
        if zipfile.is_zipfile(io.BytesIO(content)):
            with zipfile.ZipFile(io.BytesIO(content)) as zf:
                try:
                    content = zf.read(ARCHIVE_DATABASE_ENTRY)
                except KeyError as exc:
                    raise BackupValidationError([f"Archive has no {ARCHIVE_DATABASE_ENTRY}"]) from exc
        try:
            return json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BackupValidationError(["Invalid backup file format - not valid JSON"]) from exc

    def validate_backup(self, payload: Any) -> BackupValidationResult:
        """Check that ``payload`` looks like a snapshot document before restoring it."""
        if not isinstance(payload, Mapping):
            return BackupValidationResult(is_valid=False, errors=["Invalid backup file format"])

        errors: list[str] = []
        metadata = payload.get("metadata")
        if not isinstance(metadata, Mapping):
            errors.append("Missing backup metadata")
        else:
            if not metadata.get("version"):
                errors.append("Missing backup version")
            if not metadata.get("created_at"):
                errors.append("Missing backup creation date")
            if not metadata.get("backup_type"):
                errors.append("Missing backup type")

        data = payload.get("data")
        if not isinstance(data, Mapping):
            errors.append("Missing backup data")
        else:
            for name in REQUIRED_TABLES:
                if not isinstance(data.get(name), list):
                    errors.append(f"Invalid or missing {name} data")
            for name in self.table_names:
                if name not in data:
                    continue
                rows = data[name]
                if name in REQUIRED_TABLES and not isinstance(rows, list):
                    continue  # already reported above
                if not isinstance(rows, list) or not all(isinstance(row, Mapping) for row in rows):
                    errors.append(f"Invalid {name} data format")

        return BackupValidationResult(is_valid=not errors, errors=errors)

    def _restore(self, data: Mapping[str, list[dict[str, Any]]]) -> int:
        tables = {table.name: table for table in self.tables}
        order = [name for name in RESTORE_ORDER if name in tables]
        restored = 0
        with self.session_factory.begin() as db:
            existing_passwords = dict(db.execute(select(UserORM.id, UserORM.password)).all())

            for name in reversed(order):
                deleted = delete_all_rows(db, tables[name].model)
                logger.debug("Backup table cleared", extra={"table": name, "rows": deleted})

            for name in order:
                rows = list(data.get(name) or [])
                if name == "users":
                    rows = [self._restorable_user(row, existing_passwords) for row in rows]
                restored += insert_rows(db, tables[name].model, rows)
                logger.debug("Backup table restored", extra={"table": name, "rows": len(rows)})
        return restored

    @staticmethod
    def _restorable_user(row: dict[str, Any], existing_passwords: dict[str, str]) -> dict[str, Any]:
        if row.get("password") != REDACTED_PASSWORD:
            return row
        password = existing_passwords.get(row.get("id"), UNUSABLE_PASSWORD)
        if password == UNUSABLE_PASSWORD:
            logger.warning(f"Restored user {row.get('email')} has no password and must reset it")
        return {**row, "password": password}

    async def restore_from_backup(self, payload: Any) -> int:
        """
        Replace every registered table with the rows of ``payload``.

        Runs in a single transaction: either all tables are replaced or none.
        Redacted user passwords keep the current hash of the same user id when
        one exists. Returns the number of rows inserted.
        """
        validation = self.validate_backup(payload)
        if not validation.is_valid:
            raise BackupValidationError(validation.errors)

        start_time = time.time()
        try:
            restored = await asyncio.to_thread(self._restore, payload["data"])
        except Exception as exc:
            record_backup("restore", time.time() - start_time, False)
            logger.error(f"Data restore failed: {exc}", exc_info=True)
            raise BackupError(f"Data restore failed: {exc}", backup_type="restore") from exc

        record_backup("restore", time.time() - start_time, True, records=restored)
        logger.info(
            f"Data restore completed: {restored} records",
            extra={"restored_records": restored, "backup_date": payload["metadata"].get("created_at")},
        )
        return restored
