"""
convert.py — One-call conversion: source image → Marzipano cubemap zip.
"""

import logging
from dataclasses import dataclass
from functools import partial

from .archive import encode_tile, package_tiles
from .codec import PillowCodec, SourceImage
from .pyramid import build_pyramid
from .sources import load_bytes, load_file, load_url
from .tiling import DEFAULT_LEVELS, validate_levels

log = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    archive: bytes
    total_tiles: int
    zoom_levels: int
    max_zoom: int


def convert_image(source: SourceImage, levels=DEFAULT_LEVELS, *, codec=None,
                  workers: int | None = None, progress=None) -> ConversionResult:
    """
    Render, encode and package every tile of the pyramid.

    Tiles are JPEG-encoded inside the workers; the zip is written once all of
    them have finished.  Any failure propagates and nothing is returned.
    """
    levels = validate_levels(levels)
    codec = codec or PillowCodec()

    pyramid = build_pyramid(source, levels, tile_fn=partial(_encode, codec=codec),
                            workers=workers, progress=progress)
    encoded = dict(pyramid.tiles.values())
    archive = package_tiles(encoded, levels)
    log.info("converted %d × %d source into %d tiles (%d bytes)",
             source.width, source.height, pyramid.total_tiles, len(archive))

    return ConversionResult(archive=archive,
                            total_tiles=pyramid.total_tiles,
                            zoom_levels=pyramid.zoom_levels,
                            max_zoom=pyramid.max_zoom)


def _encode(tile, codec):
    return tile.path, encode_tile(tile, codec)


def convert_bytes(data: bytes, levels=DEFAULT_LEVELS, *, codec=None, **kwargs) -> ConversionResult:
    return convert_image(load_bytes(data, codec), levels, codec=codec, **kwargs)


def convert_file(path: str, levels=DEFAULT_LEVELS, *, codec=None, **kwargs) -> ConversionResult:
    return convert_image(load_file(path, codec), levels, codec=codec, **kwargs)


def convert_url(url: str, levels=DEFAULT_LEVELS, *, codec=None, **kwargs) -> ConversionResult:
    return convert_image(load_url(url, codec), levels, codec=codec, **kwargs)
