"""Fridge photo scanning into a normalized food inventory."""

from .camera import FridgeCamera, load_image_file
from .config import (
    CameraConfig,
    DatabaseConfig,
    ImagingConfig,
    PantryConfig,
    VisionConfig,
    load_config,
)
from .db import InventoryDB, InventoryStore
from .errors import (
    BackendError,
    DecodeError,
    EmptyResponseError,
    InvalidFormatError,
    PantryScanError,
    ParseError,
    StoreError,
)
from .imaging import prepare_batch, prepare_image
from .models import (
    CanonicalItem,
    CategoryTag,
    PreparedImage,
    RawDetection,
    ScanResult,
    SourceImage,
)
from .normalizer import normalize_detections, normalize_name
from .pipeline import InventoryPipeline
from .vision import DETECTION_PROMPT, VisionBackend, create_backend, parse_response

__all__ = [
    "FridgeCamera",
    "load_image_file",
    "InventoryPipeline",
    "VisionBackend",
    "DETECTION_PROMPT",
    "create_backend",
    "parse_response",
    "normalize_detections",
    "normalize_name",
    "prepare_image",
    "prepare_batch",
    "InventoryDB",
    "InventoryStore",
    "CanonicalItem",
    "CategoryTag",
    "PreparedImage",
    "RawDetection",
    "ScanResult",
    "SourceImage",
    "PantryScanError",
    "DecodeError",
    "ParseError",
    "EmptyResponseError",
    "InvalidFormatError",
    "BackendError",
    "StoreError",
    "PantryConfig",
    "CameraConfig",
    "ImagingConfig",
    "VisionConfig",
    "DatabaseConfig",
    "load_config",
]
