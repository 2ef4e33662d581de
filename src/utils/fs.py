"""Filesystem helpers: YAML loading and tile image output.

Provides:
    - ensure_dir(): directory creation with exist_ok semantics
    - atomic_write_bytes(): unique tmp file → fsync → rename (no partial reads)
    - load_yaml(): safe YAML loading with path-aware errors
    - bitmap_to_image(): RGBA bytes / array → PIL image
    - encode_png(): RGBA bitmap → PNG bytes
    - atomic_save_image(): write a tile PNG atomically

Tile servers serving from a directory must never see half-written PNGs,
so every write goes through a temporary file and an atomic rename.

Usage:
    from src.utils import fs
    fs.atomic_save_image(bitmap, "tiles/12/2048/1361.png")
    cfg = fs.load_yaml("configs/rendering.v1.yaml")
"""

import io
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml
from PIL import Image

TILE_SIZE = 256


def ensure_dir(p: Union[str, Path]) -> Path:
    """mkdir -p; returns the directory as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: Union[str, Path], data: bytes) -> None:
    """Write ``data`` to ``path`` so readers see the old file or the new one.

    Parameters
    ----------
    path : Union[str, Path]
        Target file; parent directories are created
    data : bytes
        Full file content

    Raises
    ------
    RuntimeError
        If the write or the rename fails (the temporary file is removed)

    Notes
    -----
    The temporary file gets a unique name in the target directory, so
    several workers rendering the same tile never clobber each other's
    temporary files and the final rename stays on one filesystem.
    """
    path = Path(path)
    directory = ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def load_yaml(path: Union[str, Path]) -> Any:
    """Parse a YAML file with yaml.safe_load.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    yaml.YAMLError
        On malformed YAML; the message names the file
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")

    text = path.read_text(encoding='utf-8')
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"{path}: {e}") from e



def bitmap_to_image(bitmap: Union[bytes, bytearray, np.ndarray]) -> Image.Image:
    """Wrap an RGBA tile bitmap in a PIL image.

    Parameters
    ----------
    bitmap : bytes or np.ndarray
        256·256·4 bytes (row-major RGBA) or a (256, 256, 4) uint8 array

    Returns
    -------
    PIL.Image.Image
        RGBA image
    """
    if isinstance(bitmap, (bytes, bytearray)):
        expected = TILE_SIZE * TILE_SIZE * 4
        if len(bitmap) != expected:
            raise ValueError(f"Tile bitmap must be {expected} bytes, got {len(bitmap)}")
        array = np.frombuffer(bytes(bitmap), dtype=np.uint8).reshape(TILE_SIZE, TILE_SIZE, 4)
    else:
        array = np.asarray(bitmap)
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError(f"Tile bitmap must be (H, W, 4), got {array.shape}")
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)
    return Image.fromarray(array)


def encode_png(
    bitmap: Union[bytes, bytearray, np.ndarray],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> bytes:
    """Encode an RGBA tile bitmap as PNG bytes."""
    buffer = io.BytesIO()
    bitmap_to_image(bitmap).save(buffer, format="PNG", **(pil_kwargs or {}))
    return buffer.getvalue()


def atomic_save_image(
    bitmap: Union[bytes, bytearray, np.ndarray],
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save a tile bitmap as PNG atomically (prevents partial reads).

    Parameters
    ----------
    bitmap : bytes or np.ndarray
        RGBA tile bitmap
    path : Union[str, Path]
        Target file path
    pil_kwargs : Optional[Dict[str, Any]]
        Additional kwargs for PIL.Image.save (e.g., optimize=True)
    """
    atomic_write_bytes(path, encode_png(bitmap, pil_kwargs))
