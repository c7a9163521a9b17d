import io
from pathlib import Path
from typing import Tuple

import numpy as np
import pytest
from PIL import Image


def noise_image(size: Tuple[int, int] = (32, 24), channels: int = 3, seed: int = 0) -> Image.Image:
    """Random noise image. channels 1 -> L, 3 -> RGB, 4 -> RGBA."""
    rng = np.random.default_rng(seed)
    width, height = size
    shape = (height, width) if channels == 1 else (height, width, channels)
    pixels = (rng.random(shape, dtype=np.float32) * 255).astype(np.uint8)
    return Image.fromarray(pixels)


def encode(img: Image.Image, fmt: str) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return encode(noise_image(seed=1), "JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return encode(noise_image(channels=4, seed=2), "PNG")


@pytest.fixture
def write_file():
    def _write(path: Path, data: bytes) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    return _write


def open_image(path: Path) -> Image.Image:
    img = Image.open(path)
    img.load()
    return img
