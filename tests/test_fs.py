"""Test YAML loading and atomic tile output.

Tests for src.utils.fs:
    - ensure_dir creates parents, idempotent
    - atomic_write_bytes leaves no temp file, overwrites
    - load_yaml: missing file, parse errors
    - bitmap_to_image / encode_png from bytes and arrays
    - atomic_save_image writes a readable RGBA PNG

Test cases:
    - test_ensure_dir()
    - test_atomic_write_bytes()
    - test_load_yaml()
    - test_load_yaml_errors()
    - test_bitmap_to_image_from_bytes()
    - test_bitmap_to_image_rejects_bad_shapes()
    - test_atomic_save_image()

Run:
    pytest tests/test_fs.py -v
"""

import io

import numpy as np
import pytest
import yaml
from PIL import Image

from src.utils import fs


@pytest.fixture
def bitmap():
    array = np.zeros((fs.TILE_SIZE, fs.TILE_SIZE, 4), dtype=np.uint8)
    array[10, 20] = (255, 69, 0, 205)
    return array


def test_ensure_dir(tmp_path):
    target = tmp_path / "tiles" / "12" / "2048"
    assert fs.ensure_dir(target) == target
    assert target.is_dir()
    fs.ensure_dir(target)
    assert target.is_dir()


def test_atomic_write_bytes(tmp_path):
    path = tmp_path / "nested" / "tile.bin"
    fs.atomic_write_bytes(path, b"first")
    fs.atomic_write_bytes(path, b"second")
    assert path.read_bytes() == b"second"
    assert list(path.parent.iterdir()) == [path]


def test_load_yaml(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("schema: rendering.v1\nline_width: 3\ngradient_colors: ['#000000', '#FFFFFF']\n")
    assert fs.load_yaml(path) == {
        'schema': 'rendering.v1',
        'line_width': 3,
        'gradient_colors': ['#000000', '#FFFFFF'],
    }


def test_load_yaml_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("key: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        fs.load_yaml(bad)


def test_bitmap_to_image_from_bytes(bitmap):
    image = fs.bitmap_to_image(bitmap.tobytes())
    assert image.mode == "RGBA"
    assert image.size == (fs.TILE_SIZE, fs.TILE_SIZE)
    assert image.getpixel((20, 10)) == (255, 69, 0, 205)
    assert image.getpixel((0, 0)) == (0, 0, 0, 0)


def test_bitmap_to_image_rejects_bad_shapes():
    with pytest.raises(ValueError):
        fs.bitmap_to_image(b"\x00" * 100)
    with pytest.raises(ValueError):
        fs.bitmap_to_image(np.zeros((4, 4, 3), dtype=np.uint8))


def test_atomic_save_image(tmp_path, bitmap):
    path = tmp_path / "5" / "16" / "10.png"
    fs.atomic_save_image(bitmap, path)
    assert path.exists()
    assert list(path.parent.iterdir()) == [path]

    with Image.open(path) as image:
        assert image.mode == "RGBA"
        assert np.array_equal(np.asarray(image), bitmap)

    png = fs.encode_png(bitmap)
    assert np.array_equal(np.asarray(Image.open(io.BytesIO(png))), bitmap)
