# tileclahe

Contrast limited adaptive histogram equalisation (CLAHE) for single-channel
8-bit greyscale images.

The image is divided into square tiles of 32 × 32 pixels, and each tile gets its
own histogram. A bin that holds more than 1.5 % of a tile's pixels is clipped to
that limit. The clipped excess is spread evenly over all 256 bins, and the
histogram is then equalised. Each output pixel is computed by interpolating
between the equalised histograms of the neighbouring tiles. The interpolation is
bilinear in the interior, linear along the borders, and not applied at all in
the corners.

## Installation

```
pip install tileclahe
```

You need Python 3.10 or later and numpy.

## Usage

```python
import numpy as np
from tileclahe.image import Image
from tileclahe.cpu import clahe

pixels = np.random.default_rng(0).integers(0, 256, size=(64, 96), dtype=np.uint8)
image = Image.from_rows(pixels.tolist())

result = clahe(image)
print(result.most_common)      # most frequent grey value over the whole tiles
enhanced = result.image        # an Image with the same width and height
print(enhanced.rows()[0][:8])
```

`Image` is a frozen dataclass with the fields `data` (bytes, row by row),
`width` and `height`. It raises `ValueError` when the byte count does not match
the dimensions, when a dimension is negative, or, in `from_rows`, when the rows
differ in length. `image.tiles_x()` and `image.tiles_y()` give the number of
whole tiles across and down the image.

Only whole tiles are processed, and pixels outside them are left as zero in the
output. Use images whose width and height are multiples of 32 so that every
pixel is covered. If the image has no whole tile, `most_common` is `-1`.

`clahe` returns a `ClaheResult` with two fields: `image` and `most_common`.

### Building blocks

Each step of the algorithm is also available on its own, in `tileclahe.cpu`:

- `tile_histograms(image)` returns the per-tile histograms as a numpy array of
  shape `(tiles_y, tiles_x, 256)`.
- `most_common_value(image)` returns the grey value that occurs most often
  across all whole tiles, or `-1` if there are none.
- `limit_histogram(histogram)` clips the bins at the contrast limit and spreads
  the excess evenly over all bins. It returns the limited histogram and the
  remainder that could not be spread evenly.
- `equalise_histogram(histogram)` turns one or more histograms into `uint8`
  lookup tables that map input values to output values.
- `lerp_direction(i)`, `lerp_weight(i)`, `mix_uc(x, y, a)` and `mix_f(x, y, a)`
  are the interpolation helpers that blend neighbouring tiles. They accept
  scalars or numpy arrays.

## What it does not do

The package works on in-memory greyscale data only. It does not read or write
image files, does not handle colour images, and provides no command-line
program or benchmarking tool.

## Running the tests

```
pip install tileclahe[test]
pytest
```