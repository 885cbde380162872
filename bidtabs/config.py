"""Runtime settings read from the environment (and an optional .env file)."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from bidtabs.models.schemas import SortDirection, SortKey


@dataclass
class Settings:
    """Settings shared by the pipeline script and CLI."""

    source_dir: Optional[str] = None
    file_pattern: str = "**/*"
    encoding: str = "utf-8"
    export_path: Optional[str] = None
    sort_key: SortKey = SortKey.DATE
    sort_direction: SortDirection = SortDirection.DESC
    log_format: str = "console"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from ``BIDTABS_*`` and ``LOG_*`` variables.

        Raises:
            ValueError: if a sort key or direction is not recognized
        """
        if load_env_file:
            load_dotenv()

        return cls(
            source_dir=os.getenv("BIDTABS_SOURCE_DIR") or None,
            file_pattern=os.getenv("BIDTABS_FILE_PATTERN", "**/*"),
            encoding=os.getenv("BIDTABS_ENCODING", "utf-8"),
            export_path=os.getenv("BIDTABS_EXPORT_PATH") or None,
            sort_key=SortKey(os.getenv("BIDTABS_SORT_KEY", SortKey.DATE.value)),
            sort_direction=SortDirection(os.getenv("BIDTABS_SORT_DIRECTION", SortDirection.DESC.value)),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
