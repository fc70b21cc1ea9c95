"""Application settings loaded from environment variables and .env files."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Catalog database connection settings."""

    url: str = "sqlite+aiosqlite:///./data/musicflow.db"
    echo: bool = False
    pool_pre_ping: bool = True

    @field_validator("url")
    @classmethod
    def ensure_async_driver(cls, value: str) -> str:
        """Accept plain sqlite: URLs and upgrade them to the aiosqlite driver."""
        if value.startswith("sqlite:///"):
            return value.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        if value.startswith("sqlite:") and not value.startswith("sqlite+"):
            # sqlite:data/music.db style (relative path without slashes)
            return "sqlite+aiosqlite:///" + value[len("sqlite:") :]
        return value

    @property
    def sqlite_path(self) -> Path | None:
        """Filesystem path of the SQLite database, or None for other backends."""
        if "sqlite" not in self.url:
            return None
        _, _, path = self.url.partition(":///")
        if not path or path.startswith(":memory:"):
            return None
        return Path(path)


class StorageSettings(BaseModel):
    """Filesystem locations."""

    music_path: Path = Path("./music")
    cover_art_path: Path = Path("./coverArt")

    @property
    def cover_originals_path(self) -> Path:
        return self.cover_art_path / "originals"

    @property
    def cover_cache_path(self) -> Path:
        return self.cover_art_path / "webp"


class APISettings(BaseModel):
    """HTTP server binding."""

    host: str = "0.0.0.0"  # nosec B104
    port: int = 4040


class ScannerSettings(BaseModel):
    """Library scanner tuning."""

    # K: concurrently in-flight extractions
    extract_workers: int = Field(default=8, ge=1)
    # B: files per catalog transaction
    batch_size: int = Field(default=100, ge=1)
    # C: concurrent cover writes
    cover_concurrency: int = Field(default=4, ge=1)
    prewarm_size: int = Field(default=300, ge=50, le=2000)


class ObservabilitySettings(BaseModel):
    """Logging configuration."""

    log_json_format: bool = False


class AuthSettings(BaseModel):
    """Bootstrap credentials for the first admin account."""

    default_admin_username: str = "admin"
    default_admin_password: str = "admin"


class Settings(BaseSettings):
    """Root settings object.

    Flat environment variables (DATABASE_URL, MUSIC_LIBRARY_PATH, PORT, ...)
    are mapped onto the nested sections in ``_apply_flat_env``; the nested
    form (``DATABASE__URL``) works as well.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "MusicFlowServer"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)

    # Flat aliases, folded into the sections above after validation
    database_url: str | None = None
    database_echo: bool | None = None
    music_library_path: Path | None = None
    cover_art_path: Path | None = None
    host: str | None = None
    port: int | None = None
    log_json_format: bool | None = None
    scanner_extract_workers: int | None = None
    scanner_batch_size: int | None = None
    scanner_cover_concurrency: int | None = None
    scanner_prewarm_size: int | None = None
    default_admin_username: str | None = None
    default_admin_password: str | None = None

    def model_post_init(self, __context: object) -> None:
        self._apply_flat_env()

    def _apply_flat_env(self) -> None:
        # Sections are rebuilt through model_validate so field bounds still apply
        flat = {
            "database": {"url": self.database_url or None, "echo": self.database_echo},
            "storage": {
                "music_path": self.music_library_path,
                "cover_art_path": self.cover_art_path,
            },
            "api": {"host": self.host or None, "port": self.port},
            "observability": {"log_json_format": self.log_json_format},
            "scanner": {
                "extract_workers": self.scanner_extract_workers,
                "batch_size": self.scanner_batch_size,
                "cover_concurrency": self.scanner_cover_concurrency,
                "prewarm_size": self.scanner_prewarm_size,
            },
            "auth": {
                "default_admin_username": self.default_admin_username or None,
                "default_admin_password": self.default_admin_password or None,
            },
        }
        for section, values in flat.items():
            overrides = {key: value for key, value in values.items() if value is not None}
            if not overrides:
                continue
            current: BaseModel = getattr(self, section)
            merged = {**current.model_dump(), **overrides}
            setattr(self, section, type(current).model_validate(merged))

    def ensure_directories(self) -> None:
        """Create the database parent directory and cover art directories."""
        sqlite_path = self.database.sqlite_path
        if sqlite_path is not None:
            sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage.cover_originals_path.mkdir(parents=True, exist_ok=True)
        self.storage.cover_cache_path.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
