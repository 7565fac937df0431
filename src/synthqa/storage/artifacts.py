"""
Local Artifact Store - Screenshots and videos on the local filesystem.

Layout under the root directory::

    videos/                         raw recordings written by the browser
    execution-<id>/step-1.png
    execution-<id>/step-3-error.png
    execution-<id>/recording.webm
"""

from pathlib import Path
import asyncio
import logging
import shutil

from synthqa.exceptions import StorageError
from synthqa.storage.base import ArtifactStore

logger = logging.getLogger(__name__)

VIDEO_NAME = "recording.webm"


class LocalArtifactStore(ArtifactStore):
    """
    Store artifacts under a root directory.

    Example:
        >>> artifacts = LocalArtifactStore("./output/artifacts")
        >>> url = await artifacts.save_screenshot("abc", "step-1.png", png_bytes)
    """

    def __init__(self, root: str | Path, public_base_url: str | None = None):
        """
        Initialize the store.

        Args:
            root: Base directory for artifacts
            public_base_url: URL prefix the root is served under; file URIs
                are returned when unset
        """
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._video_dir = self.root / "videos"
        self._video_dir.mkdir(parents=True, exist_ok=True)

    @property
    def video_dir(self) -> Path:
        return self._video_dir

    def _target(self, execution_id: str, name: str) -> Path:
        folder = self.root / f"execution-{execution_id}"
        folder.mkdir(parents=True, exist_ok=True)
        return folder / name

    def url_for(self, path: Path) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{path.relative_to(self.root).as_posix()}"
        return path.as_uri()

    def _write(self, execution_id: str, name: str, data: bytes) -> Path:
        target = self._target(execution_id, name)
        try:
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to save screenshot {name}: {e}") from e
        return target

    def _move(self, execution_id: str, source: Path) -> Path:
        if not source.exists():
            raise StorageError(f"Video file does not exist: {source}")
        target = self._target(execution_id, VIDEO_NAME)
        try:
            shutil.move(str(source), target)
        except OSError as e:
            raise StorageError(f"Failed to store video: {e}") from e
        return target

    async def save_screenshot(self, execution_id: str, name: str, data: bytes) -> str:
        target = await asyncio.to_thread(self._write, execution_id, name, data)
        return self.url_for(target)

    async def upload_video(self, execution_id: str, source: Path) -> str:
        target = await asyncio.to_thread(self._move, execution_id, Path(source))
        logger.debug(f"Stored video for execution {execution_id} at {target}")
        return self.url_for(target)
