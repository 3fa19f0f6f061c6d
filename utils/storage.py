"""Settings document storage with auto-repair and guarded read-modify-write"""

import hashlib
import json
import logging
import os
import platform
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from json_repair import repair_json

from settings import SETTINGS_FILE, SETTINGS_MUTATE_ATTEMPTS

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

# Sub-records checked, in order, when models.provider is not set
PROVIDER_DETECTION_ORDER = ("openai", "opencode", "anthropic")

# One writer lock per settings file, shared by every store instance in the process
_PATH_LOCKS: Dict[str, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _PATH_LOCKS_GUARD:
        lock = _PATH_LOCKS.get(key)
        if lock is None:
            lock = _PATH_LOCKS[key] = threading.RLock()
        return lock


def _fingerprint(raw: Optional[bytes]) -> Optional[str]:
    if raw is None:
        return None
    return hashlib.sha256(raw).hexdigest()


def detect_provider(document: Document) -> None:
    """Fill in models.provider from whichever provider sub-record exists

    Older documents carry no explicit provider, so the first match in
    PROVIDER_DETECTION_ORDER wins. Documents that already name a provider
    are left alone.
    """
    models = document.get("models")
    if not isinstance(models, dict) or models.get("provider"):
        return

    for name in PROVIDER_DETECTION_ORDER:
        if models.get(name):
            models["provider"] = name
            return


class SettingsStore:
    """JSON settings document shared with other writers (dashboard, CLI)

    Nothing is cached between calls: every read goes to disk and every
    mutation re-reads, transforms and writes back the whole document.
    """

    def __init__(self, settings_file: Optional[str] = None):
        self.settings_path = Path(settings_file if settings_file else SETTINGS_FILE)
        self._lock = _lock_for(self.settings_path)
        self._ensure_secure_directory()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.settings_path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def _read_raw(self) -> Optional[bytes]:
        try:
            return self.settings_path.read_bytes()
        except FileNotFoundError:
            return None

    def _backup(self, raw: bytes) -> Path:
        """Write the original bytes next to the settings file before a repair"""
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        backup_path = self.settings_path.with_name(f"{self.settings_path.name}.{stamp}.bak")
        suffix = 0
        while backup_path.exists():
            suffix += 1
            backup_path = self.settings_path.with_name(f"{self.settings_path.name}.{stamp}-{suffix}.bak")
        backup_path.write_bytes(raw)
        return backup_path

    def _repair(self, raw: bytes, error: ValueError) -> Tuple[Optional[Document], bytes]:
        """Best-effort repair of near-valid JSON

        Returns the repaired document and the bytes now on disk, or None and
        the untouched bytes if the text cannot be salvaged.
        """
        logger.warning(f"{self.settings_path} contains invalid JSON: {error}")

        try:
            repaired = repair_json(raw.decode("utf-8", errors="replace"), return_objects=True)
        except Exception as e:
            logger.error(f"Could not auto-fix {self.settings_path} ({e}), using empty settings")
            return None, raw

        if not isinstance(repaired, dict):
            logger.error(f"Could not auto-fix {self.settings_path}, using empty settings")
            return None, raw

        backup_path = self._backup(raw)
        written = self.save(repaired)
        logger.warning(f"Auto-fixed {self.settings_path} (backup: {backup_path})")
        return repaired, written

    def _load_with_raw(self) -> Tuple[Document, Optional[bytes], bool]:
        """Load the document along with the bytes it came from

        Returns:
            Tuple of (document, bytes on disk, intact). intact is False when
            the file held something that could not be turned into a document,
            or could not be read at all (bytes is then None).
        """
        try:
            raw = self._read_raw()
        except OSError as e:
            logger.error(f"Failed to read {self.settings_path}: {e}")
            return {}, None, False

        if raw is None:
            logger.debug(f"Settings file not found: {self.settings_path}")
            return {}, None, True

        if not raw.strip():
            return {}, raw, True

        try:
            document = json.loads(raw)
        except ValueError as e:
            document, raw = self._repair(raw, e)
            if document is None:
                return {}, raw, False

        if not isinstance(document, dict):
            logger.error(f"{self.settings_path} does not hold a JSON object, using empty settings")
            return {}, raw, False

        detect_provider(document)
        return document, raw, True

    def load(self) -> Document:
        """Load the settings document, repairing it if needed

        Never raises on malformed content: an unrecoverable file yields {}.
        """
        with self._lock:
            document, _, _ = self._load_with_raw()
        return document

    def save(self, document: Document) -> bytes:
        """Atomically replace the settings file with the given document

        Returns:
            The bytes written
        """
        payload = (json.dumps(document, indent=2) + "\n").encode("utf-8")
        self._ensure_secure_directory()

        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.settings_path.parent),
            prefix=f".{self.settings_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            # Set file permissions to 600 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.settings_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return payload

    def mutate(self, transform: Callable[[Document], None]) -> Document:
        """Read-modify-write the settings document

        Writers inside this process are serialized by a per-file lock. Writers
        outside it (an operator editing the file, another process) are caught
        by comparing a fingerprint of the bytes read against the file just
        before writing: on a mismatch the transform is re-applied to the fresh
        document. After SETTINGS_MUTATE_ATTEMPTS the last writer wins.

        Args:
            transform: Callable that edits the document in place

        Returns:
            The document as written

        Raises:
            OSError: If the file exists but cannot be read; it is left untouched
        """
        with self._lock:
            for attempt in range(1, SETTINGS_MUTATE_ATTEMPTS + 1):
                document, raw, intact = self._load_with_raw()
                transform(document)

                if _fingerprint(self._read_raw()) == _fingerprint(raw):
                    break
                if attempt < SETTINGS_MUTATE_ATTEMPTS:
                    logger.info(f"{self.settings_path} changed during update, re-applying (attempt {attempt})")
            else:
                logger.warning(
                    f"{self.settings_path} kept changing during update, "
                    f"overwriting after {SETTINGS_MUTATE_ATTEMPTS} attempts"
                )

            if not intact:
                if raw is None:
                    raise OSError(f"Cannot read {self.settings_path}, refusing to overwrite it")
                backup_path = self._backup(raw)
                logger.warning(f"Replacing unreadable {self.settings_path} (backup: {backup_path})")

            self.save(document)
        return document

    def update(self, partial: Document) -> Document:
        """Shallow-merge a partial document into the stored one

        Top-level keys in partial replace the stored values wholesale.
        """
        return self.mutate(lambda document: document.update(partial))

    @property
    def settings_file(self) -> Path:
        """Get the settings file path"""
        return self.settings_path
