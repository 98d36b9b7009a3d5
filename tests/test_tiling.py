import numpy as np
import pytest

from cubetiles import DEFAULT_LEVELS, LevelSpec
from cubetiles.tiling import PAD_COLOR, slice_face, tile_extent, validate_levels


def _numbered_face(size):
    """RGBA face where every pixel is unique across (R, G) and alpha is 255."""
    face = np.zeros((size, size, 4), dtype=np.uint8)
    ys, xs = np.mgrid[0:size, 0:size]
    face[:, :, 0] = xs
    face[:, :, 1] = ys
    face[:, :, 3] = 255
    return face


def test_default_level_table():
    assert [s.face_size for s in DEFAULT_LEVELS] == [256, 512, 1024, 2048]
    assert [s.tile_size for s in DEFAULT_LEVELS] == [256, 512, 512, 512]
    assert [s.tiles_per_side for s in DEFAULT_LEVELS] == [1, 1, 2, 4]
    assert [s.fallback_only for s in DEFAULT_LEVELS] == [True, False, False, False]


@pytest.mark.parametrize(
    "face_size, tile_size",
    [(10, 4), (8, 4), (5, 5), (7, 3), (3, 8), (20, 8)],
)
def test_tiles_cover_face_exactly(face_size, tile_size):
    spec = LevelSpec(0, face_size, tile_size)
    face = _numbered_face(face_size)
    tiles = slice_face(face, spec, 0, pad=False)

    n = -(-face_size // tile_size)
    assert len(tiles) == n * n
    assert [(t.row, t.col) for t in tiles] == [(r, c) for r in range(n) for c in range(n)]

    coverage = np.zeros((face_size, face_size), dtype=int)
    for t in tiles:
        top, left = t.row * tile_size, t.col * tile_size
        assert t.pixels.shape == (t.height, t.width, 4)
        np.testing.assert_array_equal(t.pixels, face[top:top + t.height, left:left + t.width])
        coverage[top:top + t.height, left:left + t.width] += 1
    assert np.all(coverage == 1)

    trailing = face_size % tile_size or tile_size
    last = tiles[-1]
    assert (last.width, last.height) == (trailing, trailing)


def test_padded_trailing_tile_records_content_bounds():
    spec = LevelSpec(2, 20, 8)
    face = _numbered_face(20)
    tiles = slice_face(face, spec, 3)

    corner = tiles[-1]
    assert (corner.row, corner.col) == (2, 2)
    assert corner.pixels.shape == (8, 8, 4)
    assert (corner.width, corner.height) == (4, 4)
    np.testing.assert_array_equal(corner.pixels[:4, :4], face[16:20, 16:20])
    assert np.all(corner.pixels[4:, :] == PAD_COLOR)
    assert np.all(corner.pixels[:, 4:] == PAD_COLOR)

    edge = tiles[2]     # row 0, col 2: full height, short width
    assert (edge.width, edge.height) == (4, 8)


def test_tiles_are_read_only():
    spec = LevelSpec(1, 8, 4)
    tile = slice_face(_numbered_face(8), spec, 0)[0]
    with pytest.raises(ValueError):
        tile.pixels[0, 0, 0] = 1


def test_tile_key_and_path():
    spec = LevelSpec(3, 16, 8)
    tiles = slice_face(_numbered_face(16), spec, 5)
    assert tiles[1].key == (3, 'b', 0, 1)
    assert tiles[1].path == '3/b/0/1.jpg'
    assert tiles[2].path == '3/b/1/0.jpg'


def test_tile_extent():
    spec = LevelSpec(0, 10, 4)
    assert [tile_extent(spec, i) for i in range(3)] == [(0, 4), (4, 4), (8, 2)]


def test_slice_rejects_wrong_face_size():
    with pytest.raises(ValueError):
        slice_face(_numbered_face(6), LevelSpec(0, 8, 4), 0)


@pytest.mark.parametrize(
    "levels",
    [
        (),
        (LevelSpec(1, 8, 8),),
        (LevelSpec(0, 8, 8), LevelSpec(2, 16, 8)),
        (LevelSpec(0, 0, 8),),
        (LevelSpec(0, 8, -1),),
    ],
)
def test_validate_levels_rejects_malformed_tables(levels):
    with pytest.raises(ValueError):
        validate_levels(levels)


def test_validate_levels_accepts_lists():
    assert validate_levels(list(DEFAULT_LEVELS)) == DEFAULT_LEVELS
