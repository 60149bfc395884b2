"""
Environment file operations — the stack's ``.env`` config resource.

Creates the documented default file, reads key/value pairs from it,
fills generated secrets into placeholder slots, and materialises the
host directories it names. Values are otherwise opaque: they are
handed to compose untouched via ``--env-file``.
"""

from __future__ import annotations

import logging
import re
import secrets
import shutil
import string
from datetime import datetime
from pathlib import Path

from sullivan.core.models.result import PhaseResult

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the .env resource cannot be read or written."""


# ═══════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════

# Values that count as "not configured yet" and may be overwritten.
_PLACEHOLDER_PREFIXES = ("your_", "changeme_", "COPY_FROM_", "PLACEHOLDER_")

INJECTED_PLACEHOLDER = "PLACEHOLDER_SET_IN_GITHUB_SECRETS"

# Generated locally by `secrets`.
GENERATED_KEYS = (
    "WIKI_DB_PASSWORD",
    "MEALIE_DB_PASSWORD",
    "FILEBOT_PASSWORD",
    "DUPLICATI_ENCRYPTION_KEY",
)

# Injected by the deployment pipeline; only a placeholder is written here.
INJECTED_KEYS = (
    "SONARR_API_KEY",
    "RADARR_API_KEY",
    "LIDARR_API_KEY",
    "DISCORD_TOKEN",
)

# Host directories the stack mounts, with their defaults.
MEDIA_DIRECTORY_KEYS: tuple[tuple[str, str], ...] = (
    ("MEDIA_PATH", "/mnt/media"),
    ("MEDIA_PATH_MOVIES", "/mnt/media/movies"),
    ("MEDIA_PATH_SHOWS", "/mnt/media/shows"),
    ("MEDIA_PATH_MUSIC", "/mnt/media/music"),
    ("MEDIA_PATH_BOOKS", "/mnt/media/books"),
    ("DOWNLOAD_PATH_COMPLETE", "/media/qbittorrent/complete"),
    ("DOWNLOAD_PATH_INCOMPLETE", "/media/qbittorrent/incomplete"),
    ("YOUTUBE_AUDIO_PATH", "/mnt/media/youtube/audio"),
    ("YOUTUBE_VIDEO_PATH", "/mnt/media/youtube/video"),
)

DEFAULT_ENV_TEMPLATE = """\
# =============================================================================
# SULLIVAN - Environment Configuration
# =============================================================================
# Generated by sullivan - Update values as needed

# Core Settings
TZ=America/Toronto
PUID=1000
PGID=100
LIBVA_DRIVER_NAME=iHD

# =============================================================================
# Media Paths (Update to match your storage)
# =============================================================================
MEDIA_PATH=/mnt/media
MEDIA_PATH_MOVIES=/mnt/media/movies
MEDIA_PATH_SHOWS=/mnt/media/shows
MEDIA_PATH_MUSIC=/mnt/media/music
MEDIA_PATH_MUSIC_VIDEOS=/mnt/media/music_videos
MEDIA_PATH_EDU=/mnt/media/edu
MEDIA_PATH_BOOKS=/mnt/media/books
MEDIA_PATH_AUDIOBOOKS=/mnt/media/books/audiobooks
MEDIA_PATH_EBOOKS=/mnt/media/ebooks

# Download Paths (OS drive for fast I/O, *arr apps move to /mnt/media after processing)
DOWNLOAD_PATH_COMPLETE=/media/qbittorrent/complete
DOWNLOAD_PATH_INCOMPLETE=/media/qbittorrent/incomplete

# YouTube Paths
YOUTUBE_AUDIO_PATH=/mnt/media/youtube/audio
YOUTUBE_VIDEO_PATH=/mnt/media/youtube/video

# Backup
BACKUP_DESTINATION=/mnt/media/backup

# =============================================================================
# API Keys (Injected from GitHub Secrets during deployment)
# =============================================================================
SONARR_API_KEY=PLACEHOLDER_SET_IN_GITHUB_SECRETS
RADARR_API_KEY=PLACEHOLDER_SET_IN_GITHUB_SECRETS
LIDARR_API_KEY=PLACEHOLDER_SET_IN_GITHUB_SECRETS

# =============================================================================
# Discord (for Doplarr - Injected from GitHub Secrets)
# =============================================================================
DISCORD_TOKEN=PLACEHOLDER_SET_IN_GITHUB_SECRETS
DISCORD_MAX_RESULTS=25
DISCORD_MSG_STYLE=:plain

# =============================================================================
# Service Credentials (Auto-generated by sullivan secrets)
# =============================================================================
FILEBOT_USER=admin
FILEBOT_PASSWORD=changeme_filebot_password

# =============================================================================
# Database Passwords (Auto-generated by sullivan secrets)
# =============================================================================
WIKI_DB_USER=wikijs
WIKI_DB_NAME=wiki
WIKI_DB_PASSWORD=changeme_wiki_password
MEALIE_DB_PASSWORD=changeme_mealie_password

# =============================================================================
# Backup Encryption (Auto-generated by sullivan secrets)
# =============================================================================
DUPLICATI_ENCRYPTION_KEY=changeme_duplicati_key

# =============================================================================
# Watchtower
# =============================================================================
WATCHTOWER_SCHEDULE="0 2 * * *"
WATCHTOWER_NOTIFICATION_URL=
"""

_PASSWORD_ALPHABET = string.ascii_letters + string.digits


# ═══════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════


def generate_password(length: int = 16) -> str:
    """Random alphanumeric password."""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def is_placeholder(value: str) -> bool:
    """Whether a value is unset or one of the template placeholders."""
    return not value or value.startswith(_PLACEHOLDER_PREFIXES)


def parse_env_text(text: str) -> dict[str, str]:
    """Parse KEY=value lines. Comments and blank lines are skipped."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if (
            len(value) >= 2
            and value[0] == value[-1]
            and value[0] in ('"', "'")
        ):
            value = value[1:-1]
        values[key] = value
    return values


# ═══════════════════════════════════════════════════════════════════
#  Env file service
# ═══════════════════════════════════════════════════════════════════


class EnvConfig:
    """The ``.env`` resource of one stack."""

    def __init__(self, env_path: Path):
        self.path = env_path

    def exists(self) -> bool:
        return self.path.is_file()

    def read_values(self) -> dict[str, str]:
        """Raw key/value pairs; empty when the file does not exist."""
        if not self.exists():
            return {}
        try:
            return parse_env_text(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read {self.path}: {e}") from e

    def ensure(self, *, generate: bool = True) -> bool:
        """Create the default file when absent.

        Returns:
            True if the file was created by this call.
        """
        if self.exists():
            logger.debug("%s exists", self.path)
            return False

        logger.info("Creating %s", self.path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(DEFAULT_ENV_TEMPLATE, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot write {self.path}: {e}") from e
        logger.warning("Created %s with defaults, review and update the configuration", self.path)

        if generate:
            self.generate_secrets()
        return True

    def generate_secrets(self) -> list[str]:
        """Fill placeholder credentials. Real values are never overwritten.

        The current file is backed up first as ``.env.bak.<timestamp>``.

        Returns:
            Names of the keys that were written.
        """
        if not self.exists():
            self.ensure(generate=False)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup = self.path.with_name(f"{self.path.name}.bak.{stamp}")
        try:
            shutil.copy2(self.path, backup)
        except OSError as e:
            raise ConfigError(f"Cannot back up {self.path}: {e}") from e
        logger.debug("Backed up %s to %s", self.path.name, backup.name)

        updates: dict[str, str] = {key: generate_password() for key in GENERATED_KEYS}
        updates.update({key: INJECTED_PLACEHOLDER for key in INJECTED_KEYS})

        written = self._update_values(updates)
        for key in written:
            logger.info("Updated %s", key)
        return written

    def media_directories(self) -> list[Path]:
        """Host paths to materialise before bring-up, defaults filled in."""
        values = self.read_values()
        return [Path(values.get(key) or default) for key, default in MEDIA_DIRECTORY_KEYS]

    def _update_values(self, updates: dict[str, str]) -> list[str]:
        """Write values whose current entry is missing or a placeholder."""
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise ConfigError(f"Cannot read {self.path}: {e}") from e

        current = parse_env_text("\n".join(lines))
        written: list[str] = []

        for key, value in updates.items():
            if key in current and (current[key] == value or not is_placeholder(current[key])):
                logger.debug("%s already configured, skipping", key)
                continue
            pattern = re.compile(rf"^\s*{re.escape(key)}\s*=")
            for i, line in enumerate(lines):
                if pattern.match(line):
                    lines[i] = f"{key}={value}"
                    break
            else:
                lines.append(f"{key}={value}")
            written.append(key)

        if written:
            try:
                self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")
            except OSError as e:
                raise ConfigError(f"Cannot write {self.path}: {e}") from e
        return written


# ═══════════════════════════════════════════════════════════════════
#  Host directories
# ═══════════════════════════════════════════════════════════════════


def ensure_directories(paths: list[Path]) -> PhaseResult:
    """Create missing host directories.

    A directory that cannot be created is a warning, never an error:
    the host may mount it later or it may already exist behind a
    mount point this process cannot see into.
    """
    created: list[str] = []
    errors: list[str] = []

    for path in paths:
        try:
            if path.is_dir():
                continue
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create: %s (%s)", path, e.strerror or e)
            errors.append(f"{path}: {e.strerror or e}")
            continue
        logger.info("Created: %s", path)
        created.append(str(path))

    if errors:
        logger.warning(
            "%d directories could not be created; ensure they exist on the host",
            len(errors),
        )
    return PhaseResult.from_errors("directories", errors, created=created)
