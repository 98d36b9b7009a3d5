"""
codec.py — Source image container and the Pillow decode/encode capability.

The projection core only ever sees numpy RGBA8 arrays; everything that knows
about file formats lives here so another codec can be swapped in by passing
any object with the same ``decode`` / ``encode`` methods.
"""

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image

from .errors import SourceLoadError

# Disable PIL's decompression bomb guard so large panoramas can be opened
Image.MAX_IMAGE_PIXELS = None


@dataclass(frozen=True)
class SourceImage:
    """Read-only (H, W, 4) uint8 equirectangular panorama."""
    pixels: np.ndarray

    def __post_init__(self):
        px = self.pixels
        if px.ndim != 3 or px.shape[2] != 4 or px.dtype != np.uint8:
            raise SourceLoadError(
                f"expected an (H, W, 4) uint8 array, got {px.shape} {px.dtype}")
        if px.shape[0] == 0 or px.shape[1] == 0:
            raise SourceLoadError(f"source image is empty ({px.shape[1]} × {px.shape[0]})")
        # freeze a view so the caller keeps a writable array
        view = px.view()
        view.setflags(write=False)
        object.__setattr__(self, 'pixels', view)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @classmethod
    def from_array(cls, arr) -> 'SourceImage':
        """Accept (H, W), (H, W, 3) or (H, W, 4) uint8 data; copy into RGBA."""
        arr = np.asarray(arr)
        if arr.dtype != np.uint8:
            raise SourceLoadError(f"source pixels must be uint8, got {arr.dtype}")
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise SourceLoadError(f"unsupported source array shape {arr.shape}")
        rgba = np.empty(arr.shape[:2] + (4,), dtype=np.uint8)
        rgba[:, :, :3] = arr[:, :, :3]
        rgba[:, :, 3] = arr[:, :, 3] if arr.shape[2] == 4 else 255
        return cls(rgba)


class PillowCodec:
    """Decode arbitrary image bytes and encode RGBA tiles as baseline JPEG."""

    def decode(self, data: bytes) -> SourceImage:
        if not data:
            raise SourceLoadError("source image data is empty")
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                rgba = np.array(img.convert('RGBA'))
        except (OSError, ValueError) as exc:
            raise SourceLoadError(f"cannot decode source image: {exc}") from exc
        return SourceImage(rgba)

    def encode(self, pixels: np.ndarray, quality: int) -> bytes:
        # JPEG has no alpha channel; tiles are opaque anyway
        img = Image.fromarray(np.ascontiguousarray(pixels[:, :, :3]))
        buf = io.BytesIO()
        img.save(buf, 'JPEG', quality=quality)
        return buf.getvalue()
