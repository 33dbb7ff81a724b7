import numpy as np
import pytest

from tileclahe.cpu import (
    ClaheResult,
    clahe,
    equalise_histogram,
    lerp_direction,
    lerp_weight,
    limit_histogram,
    mix_f,
    mix_uc,
    most_common_value,
    tile_histograms,
)
from tileclahe.image import (
    ABSOLUTE_CONTRAST_LIMIT,
    HALF_TILE_SIZE,
    PIXEL_MAX,
    PIXEL_RANGE,
    TILE_PIXELS,
    TILE_SIZE,
    Image,
)


def _random_image(tiles_x, tiles_y, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, PIXEL_RANGE, size=(tiles_y * TILE_SIZE, tiles_x * TILE_SIZE))
    return Image.from_rows(pixels.tolist())


def _uniform_image(width, height, value):
    return Image(bytes([value]) * (width * height), width, height)


def test_mix_uc_endpoints():
    assert mix_uc(40, 200, 1.0) == 40
    assert mix_uc(40, 200, 0.0) == 200


def test_mix_uc_truncates():
    assert mix_uc(0, 255, 0.5) == 127


def test_mix_f_keeps_fraction():
    assert mix_f(0, 255, 0.5) == pytest.approx(127.5)


def test_lerp_direction_splits_at_half_tile():
    assert all(lerp_direction(i) == -1 for i in range(HALF_TILE_SIZE))
    assert all(lerp_direction(i) == 1 for i in range(HALF_TILE_SIZE, TILE_SIZE))


def test_lerp_weight_values():
    assert lerp_weight(0) == 0.5
    assert lerp_weight(HALF_TILE_SIZE) == 1.0
    weights = [lerp_weight(i) for i in range(TILE_SIZE)]
    assert all(0.5 <= w <= 1.0 for w in weights)
    assert max(weights) == lerp_weight(HALF_TILE_SIZE)


def test_tile_histograms_count_every_pixel():
    image = _random_image(3, 2)
    hist = tile_histograms(image)
    assert hist.shape == (2, 3, PIXEL_RANGE)
    assert (hist.sum(axis=-1) == TILE_PIXELS).all()


def test_tile_histograms_match_tile_contents():
    image = _random_image(2, 2, seed=3)
    hist = tile_histograms(image)
    pixels = np.array(image.rows(), dtype=np.uint8)
    tile = pixels[TILE_SIZE:, :TILE_SIZE]
    expected = np.bincount(tile.ravel(), minlength=PIXEL_RANGE)
    assert (hist[1, 0] == expected).all()


def test_most_common_value_uniform():
    assert most_common_value(_uniform_image(TILE_SIZE, TILE_SIZE, 100)) == 100


def test_most_common_value_without_tiles():
    assert most_common_value(_uniform_image(HALF_TILE_SIZE, HALF_TILE_SIZE, 9)) == -1


def test_limit_histogram_keeps_small_bins():
    hist = [TILE_PIXELS // PIXEL_RANGE] * PIXEL_RANGE
    limited, lost = limit_histogram(hist)
    assert list(limited) == hist
    assert lost == 0


def test_limit_histogram_preserves_total():
    hist = tile_histograms(_random_image(2, 2, seed=5))
    uniform = np.zeros(PIXEL_RANGE, dtype=np.int64)
    uniform[77] = TILE_PIXELS
    for h in list(hist.reshape(-1, PIXEL_RANGE)) + [uniform]:
        limited, lost = limit_histogram(h)
        assert limited.sum() + lost == TILE_PIXELS
        assert 0 <= lost < PIXEL_RANGE


def test_limit_histogram_clips_peak():
    hist = np.zeros(PIXEL_RANGE, dtype=np.int64)
    hist[77] = TILE_PIXELS
    limited, lost = limit_histogram(hist)
    assert limited[77] - limited[0] == ABSOLUTE_CONTRAST_LIMIT
    assert len(set(limited.tolist())) == 2


def test_limit_histogram_rejects_wrong_bin_count():
    with pytest.raises(ValueError):
        limit_histogram([1, 2, 3])


def test_equalise_flat_histogram():
    table = equalise_histogram([TILE_PIXELS // PIXEL_RANGE] * PIXEL_RANGE)
    assert table[0] == 1
    assert table[-1] == PIXEL_MAX
    assert (np.diff(table.astype(int)) >= 0).all()


def test_equalise_values_before_first_bin_saturate():
    hist = np.zeros(PIXEL_RANGE, dtype=np.int64)
    hist[200:] = TILE_PIXELS // (PIXEL_RANGE - 200)
    hist[200] += TILE_PIXELS - hist.sum()
    table = equalise_histogram(hist)
    limited, _ = limit_histogram(hist)
    first = int(np.argmax(np.cumsum(limited) > 0))
    assert (table[:first] == PIXEL_MAX).all()
    assert table[-1] == PIXEL_MAX
    assert (table >= 1).all()


def test_equalise_batched_matches_single():
    hist = tile_histograms(_random_image(2, 2, seed=11))
    batched = equalise_histogram(hist)
    for ty in range(2):
        for tx in range(2):
            assert (batched[ty, tx] == equalise_histogram(hist[ty, tx])).all()


def test_clahe_single_tile_is_direct_lookup():
    image = _random_image(1, 1, seed=2)
    result = clahe(image)
    table = equalise_histogram(tile_histograms(image)[0, 0])
    pixels = np.array(image.rows(), dtype=np.uint8)
    assert (np.array(result.image.rows(), dtype=np.uint8) == table[pixels]).all()


def test_clahe_uniform_image_stays_uniform():
    image = _uniform_image(2 * TILE_SIZE, 2 * TILE_SIZE, 100)
    result = clahe(image)
    table = equalise_histogram(tile_histograms(image)[0, 0])
    assert isinstance(result, ClaheResult)
    assert result.most_common == 100
    assert set(result.image.data) == {int(table[100])}


def test_clahe_keeps_dimensions_and_range():
    image = _random_image(3, 2, seed=7)
    result = clahe(image)
    assert (result.image.width, result.image.height) == (image.width, image.height)
    assert min(result.image.data) >= 1
    assert result.most_common == most_common_value(image)


def test_clahe_corner_and_tile_centre_use_home_table():
    image = _random_image(3, 3, seed=13)
    result = clahe(image)
    tables = equalise_histogram(tile_histograms(image))
    src = image.rows()
    out = result.image.rows()
    assert out[0][0] == tables[0, 0][src[0][0]]
    mid = TILE_SIZE + HALF_TILE_SIZE
    assert out[mid][mid] == tables[1, 1][src[mid][mid]]


def test_clahe_is_deterministic():
    image = _random_image(2, 3, seed=21)
    original = image.data
    first = clahe(image)
    second = clahe(image)
    assert first.image.data == second.image.data
    assert first.most_common == second.most_common == most_common_value(image)
    assert image.data == original


def test_clahe_without_tiles():
    image = _uniform_image(HALF_TILE_SIZE, TILE_SIZE, 50)
    result = clahe(image)
    assert result.most_common == -1
    assert result.image.data == bytes(len(image.data))