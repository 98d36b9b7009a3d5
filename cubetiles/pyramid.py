"""
pyramid.py — Drive rasterisation and slicing over every level × face.

One task per (level, face) runs in a thread pool.  Each task owns its face
buffer and tile list; the only shared data is the read-only source image.
Results are joined on the calling thread in traversal order
(level → face → row → col), whatever order the tasks finish in.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from .codec import SourceImage
from .errors import CubemapError
from .projection import FACES, rasterize_face
from .tiling import DEFAULT_LEVELS, slice_face, validate_levels

log = logging.getLogger(__name__)


def default_workers() -> int:
    return min(len(FACES), os.cpu_count() or 1)


def count_tiles(levels) -> int:
    """Total tiles over all levels: Σ 6 · tiles_per_side²."""
    return sum(len(FACES) * spec.tiles_per_side ** 2 for spec in levels)


@dataclass
class Pyramid:
    tiles: dict = field(default_factory=dict)   # (level, letter, row, col) → tile_fn(tile)
    total_tiles: int = 0
    zoom_levels: int = 0
    max_zoom: int = 0


def _render_face(source, spec, face, tile_fn):
    try:
        face_pixels = rasterize_face(source, face, spec.face_size)
        tiles = slice_face(face_pixels, spec, face)
        del face_pixels
        return [(tile.key, tile_fn(tile)) for tile in tiles]
    except CubemapError as exc:
        raise exc.with_context(level=spec.level, face=FACES[face])


def build_pyramid(source: SourceImage, levels=DEFAULT_LEVELS, *,
                  tile_fn=None, workers: int | None = None, progress=None) -> Pyramid:
    """
    Render every tile of the cubemap pyramid.

    Args:
        source:   equirectangular source image
        levels:   level table (default: 256/256, 512/512, 1024/512, 2048/512)
        tile_fn:  applied to each Tile inside its worker (e.g. JPEG encoding);
                  the default keeps the Tile itself
        workers:  thread count; 1 renders inline without a pool
        progress: optional callable(processed, total), advisory only

    Returns:
        Pyramid with the tiles dict and the level/tile counts
    """
    levels = validate_levels(levels)
    if tile_fn is None:
        tile_fn = _identity
    if workers is None:
        workers = default_workers()

    total = count_tiles(levels)
    result = Pyramid(total_tiles=total, zoom_levels=len(levels), max_zoom=len(levels) - 1)
    jobs = [(spec, face) for spec in levels for face in range(len(FACES))]
    log.info("rendering %d tiles over %d levels from %d × %d source (%d workers)",
             total, len(levels), source.width, source.height, workers)

    processed = 0

    def report(spec, face, items):
        nonlocal processed
        processed += len(items)
        log.debug("level %d face %s: %d tiles", spec.level, FACES[face], len(items))
        if progress is not None:
            progress(processed, total)

    if workers <= 1:
        for spec, face in jobs:
            items = _render_face(source, spec, face, tile_fn)
            report(spec, face, items)
            result.tiles.update(items)
        return result

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_render_face, source, spec, face, tile_fn): (spec, face)
                   for spec, face in jobs}
        try:
            for fut in as_completed(futures):
                report(*futures[fut], fut.result())
        except BaseException:
            for fut in futures:
                fut.cancel()
            raise

    # futures dict is in traversal order, completion order does not matter
    for fut in futures:
        result.tiles.update(fut.result())
    return result


def _identity(tile):
    return tile
