from pathlib import Path
import logging
import time

logger = logging.getLogger(__name__)


class LocalObjectStorage:
    """Binary object store on the local file system.

    Keys are ``<user>/<folder>/<timestamp>_<filename>`` relative to the base path.
    """

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path).resolve()
        if not self.base_path.exists():
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _validate_path_within_base(self, path: Path) -> Path:
        """Validate that a path is within the base path to prevent traversal attacks."""
        resolved = path.resolve()
        if not str(resolved).startswith(str(self.base_path)):
            raise ValueError("Path traversal detected")
        return resolved

    def build_key(self, user_id: str, folder_id: str, filename: str) -> str:
        timestamp = int(time.time() * 1000)
        safe_name = Path(filename).name
        return f"{user_id}/{folder_id}/{timestamp}_{safe_name}"

    def upload(self, key: str, content: bytes) -> str:
        """Store bytes under key. Returns the key."""
        path = self._validate_path_within_base(self.base_path / key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return key

    def download(self, key: str) -> bytes:
        path = self._validate_path_within_base(self.base_path / key)
        return path.read_bytes()

    def remove(self, keys: list[str]) -> None:
        """Remove stored objects, ignoring keys that no longer exist."""
        for key in keys:
            path = self._validate_path_within_base(self.base_path / key)
            if path.exists():
                path.unlink()
            else:
                logger.debug("Object %s already removed", key)
