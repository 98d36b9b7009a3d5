import io
import json
import zipfile

import numpy as np
import pytest
from PIL import Image

from cubetiles import DEFAULT_LEVELS, EncodeError, LevelSpec, PackagingError, PillowCodec
from cubetiles import archive
from cubetiles.archive import build_manifest, encode_tile, package_tiles
from cubetiles.tiling import slice_face


class _FlakyCodec:
    """Fails the first ``failures`` encodes, then delegates to Pillow."""

    def __init__(self, failures):
        self.failures = failures
        self.qualities = []

    def encode(self, pixels, quality):
        self.qualities.append(quality)
        if len(self.qualities) <= self.failures:
            raise OSError("encoder exploded")
        return PillowCodec().encode(pixels, quality)


@pytest.fixture
def tile():
    face = np.zeros((8, 8, 4), dtype=np.uint8)
    face[:, :, 0] = 200
    face[:, :, 3] = 255
    return slice_face(face, LevelSpec(1, 8, 8), 4)[0]


def test_manifest_matches_marzipano_layout():
    manifest = build_manifest(DEFAULT_LEVELS)
    assert manifest['format'] == 'marzipano-cubemap'
    assert manifest['tileStructure'] == '{z}/{f}/{y}/{x}.jpg (where f = r,l,u,d,f,b)'
    assert manifest['faceMapping'] == {
        'r': 'right (+X)', 'l': 'left (-X)', 'u': 'up (+Y)',
        'd': 'down (-Y)', 'f': 'front (+Z)', 'b': 'back (-Z)',
    }
    assert manifest['tileConfigs'] == [
        {'tileSize': 256, 'size': 256, 'fallbackOnly': True},
        {'tileSize': 512, 'size': 512},
        {'tileSize': 512, 'size': 1024},
        {'tileSize': 512, 'size': 2048},
    ]
    assert manifest['description']


def test_encode_tile_produces_jpeg(tile):
    data = encode_tile(tile, PillowCodec())
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == 'JPEG'
        assert img.size == (8, 8)
        r, g, b = img.convert('RGB').getpixel((4, 4))
    assert abs(r - 200) <= 3 and g <= 3 and b <= 3


def test_encode_tile_retries_once_at_lower_quality(tile):
    codec = _FlakyCodec(failures=1)
    assert encode_tile(tile, codec)[:2] == b'\xff\xd8'
    assert codec.qualities == [archive.JPEG_QUALITY, archive.FALLBACK_JPEG_QUALITY]


def test_encode_tile_gives_up_after_the_retry(tile):
    codec = _FlakyCodec(failures=2)
    with pytest.raises(EncodeError) as excinfo:
        encode_tile(tile, codec)
    assert codec.qualities == [archive.JPEG_QUALITY, archive.FALLBACK_JPEG_QUALITY]
    assert excinfo.value.context['tile'] == '1/f/0/0.jpg'
    assert '1/f/0/0.jpg' in str(excinfo.value)


def test_package_tiles_writes_tiles_and_config(tile):
    encoded = {tile.path: encode_tile(tile, PillowCodec()), '1/r/0/0.jpg': b'jpeg'}
    data = package_tiles(encoded, DEFAULT_LEVELS[:2])

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == ['1/f/0/0.jpg', '1/r/0/0.jpg', 'config.json']
        assert zf.read('1/r/0/0.jpg') == b'jpeg'
        config = json.loads(zf.read('config.json'))
    assert [c['size'] for c in config['tileConfigs']] == [256, 512]


def test_package_tiles_wraps_zip_failures(monkeypatch):
    def broken_zip(*args, **kwargs):
        raise OSError("disk on fire")

    monkeypatch.setattr(archive.zipfile, 'ZipFile', broken_zip)
    with pytest.raises(PackagingError):
        package_tiles({'0/f/0/0.jpg': b'x'}, DEFAULT_LEVELS)


@pytest.mark.parametrize("error", [TypeError("bad mode"), KeyError('RGBX')])
def test_encode_tile_wraps_any_codec_failure(tile, error):
    class _BrokenCodec:
        def __init__(self):
            self.qualities = []

        def encode(self, pixels, quality):
            self.qualities.append(quality)
            raise error

    codec = _BrokenCodec()
    with pytest.raises(EncodeError) as excinfo:
        encode_tile(tile, codec)
    assert codec.qualities == [archive.JPEG_QUALITY, archive.FALLBACK_JPEG_QUALITY]
    assert excinfo.value.context['tile'] == '1/f/0/0.jpg'
