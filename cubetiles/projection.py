"""
projection.py — Equirectangular → cube-face projection with bilinear sampling.

Coordinate system (right-handed, Marzipano convention):
    +X = right   +Y = up   +Z = front

Every function here is vectorised: scalars or equally-shaped numpy arrays go
in, and the per-pixel formula is applied elementwise.  Nothing is normalised
before the inverse projection; the division by |d| takes care of scale.
"""

import math

import numpy as np

from .codec import SourceImage
from .errors import GeometryError

# ── Constants ────────────────────────────────────────────────────────────────
FACES = ['r', 'l', 'u', 'd', 'f', 'b']      # index order used everywhere
FACE_NAMES = {
    'r': 'right (+X)',
    'l': 'left (-X)',
    'u': 'up (+Y)',
    'd': 'down (-Y)',
    'f': 'front (+Z)',
    'b': 'back (-Z)',
}
CHUNK_ROWS = 256                             # face rows rasterised per band


# ── Direction mapper ─────────────────────────────────────────────────────────

def face_direction(face: int, u, v):
    """
    Map face-local UV to an (unnormalised) 3-D direction.

    Args:
        face: 0..5 (right, left, up, down, front, back)
        u, v: face-local coordinates in [0, 1); u grows right, v grows down

    Returns:
        (x, y, z) float64 arrays broadcast to the shape of u and v
    """
    uc = np.float64(2.0) * np.asarray(u, dtype=np.float64) - 1.0
    vc = np.float64(2.0) * np.asarray(v, dtype=np.float64) - 1.0
    uc, vc = np.broadcast_arrays(uc, vc)
    one = np.ones(uc.shape, dtype=np.float64)

    if face == 0:    # Right  +X: screen-right → -Z
        return one, -vc, -uc
    elif face == 1:  # Left   -X: screen-right → +Z
        return -one, -vc, uc.copy()
    elif face == 2:  # Up     +Y: screen-down → +Z
        return uc.copy(), one, vc.copy()
    elif face == 3:  # Down   -Y: screen-down → -Z
        return uc.copy(), -one, -vc
    elif face == 4:  # Front  +Z
        return uc.copy(), -vc, one
    elif face == 5:  # Back   -Z: screen-right → -X
        return -uc, -vc, -one
    raise ValueError(f"Unknown face identifier: {face!r}")


# ── Sphere ↔ equirectangular ─────────────────────────────────────────────────

def direction_to_equirect(x, y, z):
    """
    Project a direction onto normalised equirectangular coordinates.

    u = 0..1 spans longitude -π..π (atan2(z, x)), v = 0 is the north pole (+Y)
    and v = 1 the south pole (-Y).
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)

    norm = np.sqrt(x * x + y * y + z * z)
    if np.any(norm == 0.0):
        raise GeometryError("zero-length direction vector")

    theta = np.arctan2(z, x)                          # [-π, π]
    phi = np.arccos(np.clip(y / norm, -1.0, 1.0))     # [0, π]
    del norm

    return (theta + math.pi) / (2.0 * math.pi), phi / math.pi


def equirect_to_direction(u, v):
    """Unit direction for normalised equirectangular (u, v); inverse of the above."""
    theta = np.asarray(u, dtype=np.float64) * (2.0 * math.pi) - math.pi
    phi = np.asarray(v, dtype=np.float64) * math.pi
    sin_phi = np.sin(phi)
    return sin_phi * np.cos(theta), np.cos(phi), sin_phi * np.sin(theta)


# ── Bilinear sampler ─────────────────────────────────────────────────────────

def sample_bilinear(pixels: np.ndarray, u, v) -> np.ndarray:
    """
    Sample RGB from an (H, W, C≥3) uint8 array at normalised (u, v).

    u and v are clamped into [0, 1] and neighbours are clamped to the last
    row/column.  The longitude seam is *not* wrapped: a non-seamless panorama
    shows the same seam it has in the source.

    Returns:
        uint8 array of shape u.shape + (3,)
    """
    H, W = pixels.shape[:2]

    u = np.clip(np.asarray(u, dtype=np.float64), 0.0, 1.0)
    v = np.clip(np.asarray(v, dtype=np.float64), 0.0, 1.0)
    px = u * (W - 1)
    py = v * (H - 1)
    del u, v

    x1 = np.floor(px).astype(np.intp)
    y1 = np.floor(py).astype(np.intp)
    x2 = np.minimum(x1 + 1, W - 1)
    y2 = np.minimum(y1 + 1, H - 1)
    fx = np.asarray(px - x1)[..., np.newaxis]
    fy = np.asarray(py - y1)[..., np.newaxis]
    del px, py

    rgb = pixels[..., :3]
    p11 = rgb[y1, x1].astype(np.float64)
    p21 = rgb[y1, x2].astype(np.float64)
    p12 = rgb[y2, x1].astype(np.float64)
    p22 = rgb[y2, x2].astype(np.float64)
    del x1, x2, y1, y2

    top = p11 * (1.0 - fx) + p21 * fx
    bottom = p12 * (1.0 - fx) + p22 * fx
    del p11, p21, p12, p22

    result = top * (1.0 - fy) + bottom * fy
    # round half up, then clamp into the byte range
    return np.clip(np.floor(result + 0.5), 0, 255).astype(np.uint8)


# ── Face rasteriser ──────────────────────────────────────────────────────────

def rasterize_face(source: SourceImage, face: int, face_size: int) -> np.ndarray:
    """
    Render one cube face from the full equirectangular source.

    Pixel (x, y) is sampled at face UV ((x + 0.5) / size, (y + 0.5) / size).
    Rows are processed in bands of CHUNK_ROWS to keep float64 temporaries
    small for 2048 px faces.

    Returns:
        (face_size, face_size, 4) uint8 array, alpha fixed at 255
    """
    if face_size <= 0:
        raise ValueError(f"face_size must be positive, got {face_size}")
    if face not in range(len(FACES)):
        raise ValueError(f"Unknown face identifier: {face!r}")

    pixels = source.pixels
    out = np.empty((face_size, face_size, 4), dtype=np.uint8)
    out[:, :, 3] = 255

    centres = (np.arange(face_size, dtype=np.float64) + 0.5) / face_size
    for top in range(0, face_size, CHUNK_ROWS):
        bottom = min(top + CHUNK_ROWS, face_size)
        uu, vv = np.meshgrid(centres, centres[top:bottom])
        dx, dy, dz = face_direction(face, uu, vv)
        del uu, vv
        eu, ev = direction_to_equirect(dx, dy, dz)
        del dx, dy, dz
        out[top:bottom, :, :3] = sample_bilinear(pixels, eu, ev)
        del eu, ev

    return out
