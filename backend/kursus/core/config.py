"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite:///./data/kursus.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Auth (tokens are issued by the login service, only verified here)
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_HOURS: int = 24
    AUTH_COOKIE_NAME: str = "auth-token"
    ADMIN_ROLES: str = "admin,super_admin"

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 100

    # Backup
    BACKUP_VERSION: str = "2.0"
    BACKUP_FILENAME_PREFIX: str = "backup-full"
    BACKUP_MAX_CONCURRENT_READS: int = 4  # 1 reads tables one after another
    BACKUP_ZIP_COMPRESSION_LEVEL: int = 6

    # File assets bundled into full backups
    CERTIFICATE_TEMPLATES_DIR: str = "./public/uploads/certificates"
    GENERATED_CERTIFICATES_DIR: str = "./public/certificates"
    REMOTE_ASSET_HOST: str = "cloudinary"  # Photos hosted here are referenced, not downloaded

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def admin_roles(self) -> set[str]:
        return {role.strip() for role in self.ADMIN_ROLES.split(",") if role.strip()}


settings = Settings()
