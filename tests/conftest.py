import io

import numpy as np
import pytest
from PIL import Image

from cubetiles import LevelSpec, SourceImage

FLAT_RGB = (128, 64, 32)


def png_bytes(arr) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(np.asarray(arr, dtype=np.uint8)).save(buf, 'PNG')
    return buf.getvalue()


@pytest.fixture
def flat_source():
    """4×2 panorama, every pixel (128, 64, 32)."""
    arr = np.empty((2, 4, 3), dtype=np.uint8)
    arr[:] = FLAT_RGB
    return SourceImage.from_array(arr)


@pytest.fixture
def gradient_source():
    rng = np.random.default_rng(7)
    return SourceImage.from_array(rng.integers(0, 256, size=(16, 32, 3), dtype=np.uint8))


@pytest.fixture
def small_levels():
    # level 2 has a short trailing row/column (20 = 8 + 8 + 4)
    return (
        LevelSpec(0, 8, 8, fallback_only=True),
        LevelSpec(1, 16, 8),
        LevelSpec(2, 20, 8),
    )
