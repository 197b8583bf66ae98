"""Tests for capture sources (mocked OpenCV capture)."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from pantryscan.camera import FridgeCamera, load_image_file
from pantryscan.models import SourceImage

FAKE_JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture
def mock_cv2():
    """Inject a mock cv2 module into sys.modules."""
    mock = MagicMock()
    mock.imencode.return_value = (True, np.frombuffer(FAKE_JPEG, dtype=np.uint8))
    with patch.dict(sys.modules, {"cv2": mock}):
        yield mock


@pytest.fixture
def open_camera(mock_cv2):
    mock_cap = MagicMock()
    mock_cap.isOpened.return_value = True
    mock_cap.read.return_value = (True, np.zeros((480, 640, 3), dtype=np.uint8))
    mock_cv2.VideoCapture.return_value = mock_cap
    return mock_cap


def test_load_image_file(tmp_path):
    img = tmp_path / "shelf.jpg"
    img.write_bytes(FAKE_JPEG)

    source = load_image_file(img)
    assert source == SourceImage(data=FAKE_JPEG, rotation_degrees=None, origin=str(img))


def test_load_image_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image_file(tmp_path / "missing.jpg")


class TestFridgeCamera:
    def test_init_creates_save_dir(self, tmp_path):
        save_dir = tmp_path / "sub" / "dir"
        FridgeCamera(camera_indices=[0], save_dir=str(save_dir))
        assert save_dir.exists()

    def test_capture_success(self, open_camera):
        """Successful capture returns JPEG bytes tagged with the mount rotation."""
        cam = FridgeCamera(camera_indices=[0], rotation_degrees=90)
        result = cam.capture(0)

        assert isinstance(result, SourceImage)
        assert result.data == FAKE_JPEG
        assert result.rotation_degrees == 90
        assert result.origin == "camera:0"
        open_camera.release.assert_called_once()

    def test_capture_saves_copy(self, open_camera, tmp_path):
        cam = FridgeCamera(camera_indices=[1], save_dir=str(tmp_path))
        result = cam.capture(1)

        saved = Path(result.origin)
        assert saved.parent == tmp_path
        assert saved.name.startswith("cam1_")
        assert saved.read_bytes() == FAKE_JPEG

    def test_capture_camera_not_found(self, mock_cv2):
        """RuntimeError when camera cannot be opened."""
        mock_cap = MagicMock()
        mock_cap.isOpened.return_value = False
        mock_cv2.VideoCapture.return_value = mock_cap

        cam = FridgeCamera(camera_indices=[0])
        with pytest.raises(RuntimeError, match="camera 0"):
            cam.capture(0)

    def test_capture_read_failure(self, mock_cv2):
        """RuntimeError when frame read fails."""
        mock_cap = MagicMock()
        mock_cap.isOpened.return_value = True
        mock_cap.read.return_value = (False, None)
        mock_cv2.VideoCapture.return_value = mock_cap

        cam = FridgeCamera(camera_indices=[0])
        with pytest.raises(RuntimeError, match="Could not read a frame"):
            cam.capture(0)
        mock_cap.release.assert_called_once()

    def test_capture_all(self, open_camera):
        """capture_all captures from all configured cameras."""
        cam = FridgeCamera(camera_indices=[0, 1])
        results = cam.capture_all()

        assert [r.origin for r in results] == ["camera:0", "camera:1"]

    def test_list_cameras(self, mock_cv2):
        """list_cameras probes indices and returns available ones."""
        caps = {}
        for i in range(10):
            m = MagicMock()
            m.isOpened.return_value = i in (0, 2)
            caps[i] = m

        mock_cv2.VideoCapture.side_effect = lambda i: caps[i]

        assert FridgeCamera.list_cameras() == [0, 2]
        assert all(m.release.call_count == 1 for m in caps.values())
