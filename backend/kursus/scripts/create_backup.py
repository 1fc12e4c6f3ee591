"""Write a data snapshot or full archive to disk from the command line.

Usage:
    python -m kursus.scripts.create_backup --type data --output backups/
    python -m kursus.scripts.create_backup --type full --output backup.zip
"""
import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from kursus.core.config import settings
from kursus.core.exceptions import BackupError
from kursus.core.logging import logger, setup_logging
from kursus.services.backup_service import BackupService
from kursus.utils.sizes import format_size_mb


def _default_filename(backup_type: str) -> str:
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    if backup_type == "full":
        return f"{settings.BACKUP_FILENAME_PREFIX}-{today}.zip"
    return f"backup-data-{today}.json"


def resolve_output_path(output: str | None, backup_type: str) -> Path:
    """A directory (existing, or given with a trailing slash) receives the default filename."""
    if not output:
        return Path(_default_filename(backup_type))
    path = Path(output)
    if path.is_dir() or output.endswith(("/", "\\")):
        return path / _default_filename(backup_type)
    return path


async def run(backup_type: str, output: Path, service: BackupService | None = None) -> int:
    service = service or BackupService()
    if backup_type == "full":
        content = await service.create_full_backup()
        records = None
    else:
        document = await service.create_data_backup()
        content = document.to_json(indent=2).encode("utf-8")
        records = document.metadata.total_records

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(content)
    logger.info(f"Backup written to {output} ({format_size_mb(len(content))})", extra={"records": records})
    return len(content)


def main(argv: list[str] | None = None) -> int:
    setup_logging()

    parser = argparse.ArgumentParser(description="Create a backup of all application data")
    parser.add_argument("--type", choices=("data", "full"), default="data", help="data: JSON snapshot, full: ZIP with files")
    parser.add_argument("--output", type=str, help="Output file or directory (default: current directory)")
    args = parser.parse_args(argv)

    output = resolve_output_path(args.output, args.type)
    try:
        asyncio.run(run(args.type, output))
    except BackupError as exc:
        logger.error(f"❌ {exc.reason}")
        return 1

    print(f"Backup saved to: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
