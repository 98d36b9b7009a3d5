"""
archive.py — JPEG tile encoding, config.json manifest and zip packaging.

Archive layout (Marzipano cube geometry):
    config.json
    {level}/{face}/{row}/{col}.jpg      face ∈ r, l, u, d, f, b
"""

import io
import json
import logging
import zipfile

from .errors import EncodeError, PackagingError
from .projection import FACE_NAMES
from .tiling import Tile

log = logging.getLogger(__name__)

JPEG_QUALITY = 100
FALLBACK_JPEG_QUALITY = 95

MANIFEST_NAME = 'config.json'
MANIFEST_FORMAT = 'marzipano-cubemap'
TILE_STRUCTURE = '{z}/{f}/{y}/{x}.jpg (where f = r,l,u,d,f,b)'
DESCRIPTION = ('Marzipano cubemap tiles generated from panoramic image '
               'with maximum quality preservation')


def encode_tile(tile: Tile, codec) -> bytes:
    """
    JPEG-encode one tile at JPEG_QUALITY, retrying once at FALLBACK_JPEG_QUALITY.

    Raises EncodeError (with the tile path) if both attempts fail.
    """
    try:
        return codec.encode(tile.pixels, JPEG_QUALITY)
    except Exception as exc:
        log.warning("%s: encoding at quality %d failed (%s), retrying at %d",
                    tile.path, JPEG_QUALITY, exc, FALLBACK_JPEG_QUALITY)
    try:
        return codec.encode(tile.pixels, FALLBACK_JPEG_QUALITY)
    except Exception as exc:
        raise EncodeError(f"cannot encode tile: {exc}", tile=tile.path) from exc


def build_manifest(levels) -> dict:
    tile_configs = []
    for spec in levels:
        entry = {'tileSize': spec.tile_size, 'size': spec.face_size}
        if spec.fallback_only:
            entry['fallbackOnly'] = True
        tile_configs.append(entry)

    return {
        'format': MANIFEST_FORMAT,
        'tileStructure': TILE_STRUCTURE,
        'faceMapping': dict(FACE_NAMES),
        'tileConfigs': tile_configs,
        'description': DESCRIPTION,
    }


def package_tiles(encoded: dict, levels) -> bytes:
    """
    Write every encoded tile plus config.json into an in-memory zip.

    Args:
        encoded: archive path → JPEG bytes, in the order they should appear
        levels:  level table described by the manifest

    Returns:
        zip archive bytes
    """
    buf = io.BytesIO()
    try:
        # JPEG data does not deflate; store tiles, compress only the manifest
        with zipfile.ZipFile(buf, 'w', compression=zipfile.ZIP_STORED) as zf:
            for path, data in encoded.items():
                zf.writestr(path, data)
            zf.writestr(MANIFEST_NAME, json.dumps(build_manifest(levels), indent=2),
                        compress_type=zipfile.ZIP_DEFLATED)
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        raise PackagingError(f"cannot write archive: {exc}") from exc

    log.debug("packaged %d tiles (%d bytes)", len(encoded), buf.tell())
    return buf.getvalue()
