"""Capture sources: USB cameras and image files."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from .models import SourceImage

logger = logging.getLogger(__name__)


def _load_cv2():
    try:
        import cv2
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python"
        ) from None
    return cv2


def load_image_file(path: str | Path) -> SourceImage:
    """Read a stored photo. Its EXIF tag decides the rotation later on."""
    p = Path(path)
    return SourceImage(data=p.read_bytes(), rotation_degrees=None, origin=str(p))


class FridgeCamera:
    """Grab JPEG frames from USB cameras pointed at the fridge."""

    def __init__(
        self,
        camera_indices: list[int] | None = None,
        rotation_degrees: int = 0,
        save_dir: str | None = None,
    ) -> None:
        self._camera_indices = camera_indices or [0]
        self._rotation = rotation_degrees
        self._save_dir = Path(save_dir).expanduser() if save_dir else None
        if self._save_dir is not None:
            self._save_dir.mkdir(parents=True, exist_ok=True)

    def capture_all(self) -> list[SourceImage]:
        """Capture one frame from every configured camera."""
        return [self.capture(idx) for idx in self._camera_indices]

    def capture(self, camera_index: int) -> SourceImage:
        """Capture a single frame from the specified camera."""
        cv2 = _load_cv2()

        cap = cv2.VideoCapture(camera_index)
        if not cap.isOpened():
            raise RuntimeError(
                f"Could not open camera {camera_index}. Check the connection."
            )

        try:
            ret, frame = cap.read()
            if not ret or frame is None:
                raise RuntimeError(f"Could not read a frame from camera {camera_index}.")

            ok, buf = cv2.imencode(".jpg", frame)
            if not ok:
                raise RuntimeError(f"Could not encode frame from camera {camera_index}.")
            data = buf.tobytes()
        finally:
            cap.release()

        origin = f"camera:{camera_index}"
        if self._save_dir is not None:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            filepath = self._save_dir / f"cam{camera_index}_{timestamp}.jpg"
            filepath.write_bytes(data)
            origin = str(filepath)
            logger.info("Saved capture to %s", filepath)

        return SourceImage(
            data=data, rotation_degrees=self._rotation, origin=origin
        )

    @staticmethod
    def list_cameras(max_check: int = 10) -> list[int]:
        """Return the indices below ``max_check`` that open as cameras."""
        cv2 = _load_cv2()

        def _opens(index: int) -> bool:
            cap = cv2.VideoCapture(index)
            try:
                return cap.isOpened()
            finally:
                cap.release()

        return [i for i in range(max_check) if _opens(i)]
