"""Reference CLAHE: tile histograms, clipped equalisation and interpolation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from tileclahe.image import (
    ABSOLUTE_CONTRAST_LIMIT,
    HALF_TILE_SIZE,
    PIXEL_MAX,
    PIXEL_RANGE,
    TILE_PIXELS,
    TILE_SIZE,
    Image,
)

_ONE = np.float32(1.0)


@dataclass(frozen=True)
class ClaheResult:
    """The contrast-enhanced image and the most common input pixel value."""

    image: Image
    most_common: int


def _mix(x, y, a):
    xf = np.asarray(x, dtype=np.float32)
    yf = np.asarray(y, dtype=np.float32)
    af = np.asarray(a, dtype=np.float32)
    return xf * af + yf * (_ONE - af)


def mix_uc(x, y, a):
    """Blend x*a + y*(1-a) in single precision and truncate to a byte."""
    out = np.trunc(np.asarray(_mix(x, y, a))).astype(np.uint8)
    return int(out) if out.ndim == 0 else out


def mix_f(x, y, a):
    """Blend x*a + y*(1-a) in single precision."""
    out = np.asarray(_mix(x, y, a), dtype=np.float32)
    return float(out) if out.ndim == 0 else out


def lerp_direction(i):
    """Offset of the neighbouring tile to interpolate with along one axis."""
    out = np.where(np.asarray(i) < HALF_TILE_SIZE, -1, 1)
    return int(out) if out.ndim == 0 else out


def lerp_weight(i):
    """Weight of the pixel's own tile along one axis, in [0.5, 1]."""
    pos = np.asarray(i)
    numer = np.where(pos < HALF_TILE_SIZE, TILE_SIZE / 2 + pos, 1.5 * TILE_SIZE - pos)
    out = numer.astype(np.float32) / np.float32(TILE_SIZE)
    return float(out) if out.ndim == 0 else out


def _tile_layout(image: Image) -> tuple[np.ndarray, np.ndarray]:
    """Flat data offsets and pixel values, shaped (tiles_y, tiles_x, p_y, p_x)."""
    tiles_x, tiles_y = image.tiles_x(), image.tiles_y()
    t_y = np.arange(tiles_y)[:, None, None, None]
    t_x = np.arange(tiles_x)[None, :, None, None]
    p_y = np.arange(TILE_SIZE)[None, None, :, None]
    p_x = np.arange(TILE_SIZE)[None, None, None, :]
    offsets = t_y * tiles_x * TILE_PIXELS + t_x * TILE_SIZE + p_y * image.width + p_x
    flat = np.frombuffer(image.data, dtype=np.uint8)
    return offsets, flat[offsets]


def tile_histograms(image: Image) -> np.ndarray:
    """Per-tile pixel histograms, shaped (tiles_y, tiles_x, PIXEL_RANGE)."""
    tiles_x, tiles_y = image.tiles_x(), image.tiles_y()
    _, pixels = _tile_layout(image)
    tile_ids = np.arange(tiles_y * tiles_x, dtype=np.int64).reshape(tiles_y, tiles_x)
    keys = tile_ids[:, :, None, None] * PIXEL_RANGE + pixels.astype(np.int64)
    counts = np.bincount(keys.ravel(), minlength=tiles_y * tiles_x * PIXEL_RANGE)
    return counts.reshape(tiles_y, tiles_x, PIXEL_RANGE).astype(np.int64)


def _most_common(histograms: np.ndarray) -> int:
    totals = histograms.reshape(-1, PIXEL_RANGE).sum(axis=0)
    if not totals.any():
        return -1
    return int(np.argmax(totals))


def most_common_value(image: Image) -> int:
    """Most frequent pixel value over all whole tiles, or -1 if there are none."""
    return _most_common(tile_histograms(image))


def _as_histograms(histogram) -> np.ndarray:
    hist = np.asarray(histogram, dtype=np.int64)
    if hist.ndim == 0 or hist.shape[-1] != PIXEL_RANGE:
        raise ValueError(f"histograms must have {PIXEL_RANGE} bins on the last axis")
    return hist


def limit_histogram(histogram):
    """Clip bins at the contrast limit and spread the excess evenly.

    Returns the limited histogram and the number of counts that could not be
    spread evenly over all bins.
    """
    hist = _as_histograms(histogram)
    extra = np.where(hist > ABSOLUTE_CONTRAST_LIMIT, hist - ABSOLUTE_CONTRAST_LIMIT, 0).sum(axis=-1)
    limited = np.minimum(hist, ABSOLUTE_CONTRAST_LIMIT) + (extra // PIXEL_RANGE)[..., None]
    lost = extra % PIXEL_RANGE
    return limited, (int(lost) if lost.ndim == 0 else lost)


def equalise_histogram(histogram) -> np.ndarray:
    """Lookup table mapping each pixel value to its equalised value."""
    limited, lost = limit_histogram(histogram)
    lost = np.asarray(lost, dtype=np.int64)
    cumulative = np.cumsum(limited, axis=-1)
    first_nonzero = np.argmax(cumulative > 0, axis=-1)
    cdf_min = np.take_along_axis(cumulative, first_nonzero[..., None], axis=-1)
    below = cumulative < cdf_min
    diff = np.where(below, 0, cumulative - cdf_min).astype(np.float32)
    denom = (TILE_PIXELS - lost).astype(np.float32)[..., None]
    scaled = diff / denom * np.float32(PIXEL_RANGE - 2)
    rounded = np.floor(scaled.astype(np.float64) + 0.5) + 1.0
    table = np.where(below, PIXEL_MAX, np.minimum(rounded, PIXEL_MAX))
    return table.astype(np.uint8)


def _interpolate(equalised: np.ndarray, pixels: np.ndarray) -> np.ndarray:
    tiles_y, tiles_x = equalised.shape[:2]
    t_y = np.arange(tiles_y)[:, None, None, None]
    t_x = np.arange(tiles_x)[None, :, None, None]
    p_y = np.arange(TILE_SIZE)[None, None, :, None]
    p_x = np.arange(TILE_SIZE)[None, None, None, :]

    x_border = ((t_x == 0) & (p_x < HALF_TILE_SIZE)) | (
        (t_x == tiles_x - 1) & (p_x >= HALF_TILE_SIZE)
    )
    y_border = ((t_y == 0) & (p_y < HALF_TILE_SIZE)) | (
        (t_y == tiles_y - 1) & (p_y >= HALF_TILE_SIZE)
    )
    near_x = np.clip(t_x + lerp_direction(p_x), 0, tiles_x - 1)
    near_y = np.clip(t_y + lerp_direction(p_y), 0, tiles_y - 1)
    weight_x = lerp_weight(p_x)
    weight_y = lerp_weight(p_y)

    home = equalised[t_y, t_x, pixels]
    beside = equalised[t_y, near_x, pixels]
    below = equalised[near_y, t_x, pixels]
    diagonal = equalised[near_y, near_x, pixels]

    x_edge = mix_uc(home, below, weight_y)
    y_edge = mix_uc(home, beside, weight_x)
    home_row = mix_uc(home, beside, weight_x)
    away_row = mix_uc(below, diagonal, weight_x)
    centre = np.trunc(mix_f(home_row, away_row, weight_y)).astype(np.uint8)

    return np.select(
        [x_border & y_border, x_border, y_border],
        [home, x_edge, y_edge],
        centre,
    ).astype(np.uint8)


def clahe(image: Image) -> ClaheResult:
    """Contrast-limited adaptive histogram equalisation over whole tiles.

    Pixels outside the whole tiles are left as zero in the output.
    """
    histograms = tile_histograms(image)
    most_common = _most_common(histograms)
    output = np.zeros(image.width * image.height, dtype=np.uint8)
    if histograms.shape[0] and histograms.shape[1]:
        offsets, pixels = _tile_layout(image)
        values = _interpolate(equalise_histogram(histograms), pixels)
        # Write in tile-column order so overlapping offsets keep the last write.
        order_offsets = offsets.transpose(1, 0, 3, 2).ravel()[::-1]
        order_values = values.transpose(1, 0, 3, 2).ravel()[::-1]
        unique_offsets, first = np.unique(order_offsets, return_index=True)
        output[unique_offsets] = order_values[first]
    return ClaheResult(Image(output.tobytes(), image.width, image.height), most_common)