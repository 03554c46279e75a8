from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the case-sheet importer.

These are the typed settings objects produced by the loader in
``orphan_import.config.loader``. Every field has a default so that the importer
can run without a config file.
"""

DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_PHOTO_TIMEOUT_SECONDS = 15.0
DEFAULT_PHOTO_CONCURRENCY = 4


@dataclass(frozen=True)
class PhotoFetchConfig:
    """Settings for downloading photos referenced from the sheet."""
    enabled: bool = True
    timeout_seconds: float = DEFAULT_PHOTO_TIMEOUT_SECONDS  # 1 リクエスト当たり
    max_concurrency: int = DEFAULT_PHOTO_CONCURRENCY  # 同時取得数上限
    proxy_url: str | None = None  # Google Drive 用プロキシ (未設定なら直接取得)


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    photo_fetch: PhotoFetchConfig = field(default_factory=PhotoFetchConfig)
    header_synonyms: dict[str, list[str]] = field(default_factory=dict)  # 追加の同義語
    logs_directory: str = "logs"

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024
