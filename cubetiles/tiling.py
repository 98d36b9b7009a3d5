"""
tiling.py — Level table and the cube-face → tile slicer.

A face of ``face_size`` px is cut into a ``ceil(face_size / tile_size)`` square
grid.  The last row and column may be short; by default those tiles are padded
to the full tile size with opaque black and keep their real content bounds in
``Tile.width`` / ``Tile.height``.
"""

import math
from dataclasses import dataclass

import numpy as np

from .projection import FACES

PAD_COLOR = (0, 0, 0, 255)


@dataclass(frozen=True)
class LevelSpec:
    level: int
    face_size: int
    tile_size: int
    fallback_only: bool = False

    @property
    def tiles_per_side(self) -> int:
        return math.ceil(self.face_size / self.tile_size)


DEFAULT_LEVELS = (
    LevelSpec(0, 256, 256, fallback_only=True),
    LevelSpec(1, 512, 512),
    LevelSpec(2, 1024, 512),
    LevelSpec(3, 2048, 512),
)


def validate_levels(levels) -> tuple:
    """Return levels as a tuple, raising ValueError if the table is malformed."""
    levels = tuple(levels)
    if not levels:
        raise ValueError("level table is empty")
    for index, spec in enumerate(levels):
        if spec.level != index:
            raise ValueError(f"level {spec.level} found at position {index}")
        if spec.face_size <= 0 or spec.tile_size <= 0:
            raise ValueError(f"level {index}: sizes must be positive "
                             f"(face_size={spec.face_size}, tile_size={spec.tile_size})")
    return levels


@dataclass(frozen=True)
class Tile:
    level: int
    face: int
    row: int
    col: int
    pixels: np.ndarray
    width: int
    height: int

    @property
    def face_letter(self) -> str:
        return FACES[self.face]

    @property
    def key(self) -> tuple:
        return (self.level, self.face_letter, self.row, self.col)

    @property
    def path(self) -> str:
        return f"{self.level}/{self.face_letter}/{self.row}/{self.col}.jpg"


def tile_extent(spec: LevelSpec, index: int) -> tuple[int, int]:
    """(offset, length) of tile ``index`` along one axis of a face."""
    offset = index * spec.tile_size
    return offset, min(spec.tile_size, spec.face_size - offset)


def slice_face(face_pixels: np.ndarray, spec: LevelSpec, face: int,
               pad: bool = True) -> list[Tile]:
    """
    Cut a rasterised face into row-major tiles.  Pure copy, no resampling.

    Args:
        face_pixels: (face_size, face_size, 4) uint8 array
        spec:        level the face was rendered for
        face:        face index 0..5
        pad:         pad short trailing tiles to tile_size with PAD_COLOR

    Returns:
        list of Tile, ordered by (row, col)
    """
    if face_pixels.shape[:2] != (spec.face_size, spec.face_size):
        raise ValueError(f"face buffer is {face_pixels.shape[1]}×{face_pixels.shape[0]}, "
                         f"level {spec.level} expects {spec.face_size}")

    n = spec.tiles_per_side
    ts = spec.tile_size
    tiles = []
    for row in range(n):
        top, height = tile_extent(spec, row)
        for col in range(n):
            left, width = tile_extent(spec, col)
            region = face_pixels[top:top + height, left:left + width]
            if pad:
                buf = np.empty((ts, ts, face_pixels.shape[2]), dtype=np.uint8)
                buf[:] = PAD_COLOR[:face_pixels.shape[2]]
                buf[:height, :width] = region
            else:
                buf = region.copy()
            buf.setflags(write=False)
            tiles.append(Tile(spec.level, face, row, col, buf, width, height))
    return tiles
