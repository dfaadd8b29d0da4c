# hpmfind

Building blocks for finding circular markers in camera images. The package
works on numpy arrays and plain Python sequences.

## What is in it

- `hpmfind.nfa`: `NfaTable` gives the number-of-false-alarms value of k
  aligned points out of n (`nfa`) and a lookup-table check of significance
  (`check`). Also `fast_atan2`, a table-based direction in [0, pi],
  `log_gamma` and `double_equal`.
- `hpmfind.segments`: validation of edge segments by the Helmholtz
  principle: `nfa_count`, `count_segment_pieces`, `valid_segments` (split
  chains into runs that are set in an edge image) and
  `draw_filtered_segment` (mark the meaningful parts of a chain in place).
- `hpmfind.color`: `rgb_to_lab` (BGR uint8 image to Lab, each channel
  stretched to 0..255), `gaussian_blur`, `gradient_di_zenzo` (colour
  gradient magnitude and edge directions) and `color_edge_image`.
- `hpmfind.prewitt`: `prewitt_gradient` (gradient and its tail
  distribution) and `filtered_edge_image` for gray images.
- `hpmfind.linefit`: the `LineSegment` dataclass, `fit_line`,
  `fit_line_with_error`, `min_distance`, `closest_point`,
  `split_segment_to_lines`, `update_line_parameters` and
  `min_endpoint_distance`.
- `hpmfind.lines`: `LineDetector`, which splits given edge segments into
  lines, joins collinear ones and validates them against the image
  (`lines`, `invalid_lines`, `line_points()`); plus `min_line_length`,
  `enumerate_rect_points`, `try_join` and `join_collinear_lines`.
- `hpmfind.ellipse`: the frozen `Ellipse` dataclass (center, full major
  and minor axes, rotation) with `from_size`, `from_circle`,
  `from_ed_ellipse` and `keypoint_size`.
- `hpmfind.detect`: `big_ellipses`, `almost_round` and
  `filter_marker_candidates` (at least 1/200 of the image width across,
  major axis under 1.4 times the minor).
- `hpmfind.find`: `FinderConfig`, `extract_sixtuples`,
  `distance_group_indices`, `expected_distances` and `best_sixtuple`, which
  picks the six ellipses whose 3D distance pattern best matches a known
  marker layout.

## Installation

```
pip install .
```

The only runtime dependency is numpy.

## Examples

Filter ellipses down to marker candidates:

```python
from hpmfind.ellipse import Ellipse
from hpmfind.detect import filter_marker_candidates

ellipses = [
    Ellipse.from_circle((100.0, 100.0), 10.0),
    Ellipse.from_size((50.0, 50.0), 2.0),
]
candidates = filter_marker_candidates(ellipses, image_width=1000)
```

Fit a line through a pixel chain:

```python
from hpmfind.linefit import fit_line_with_error

a, b, error, invert = fit_line_with_error([0, 1, 2, 3], [1, 3, 5, 7])
```

Check a count of aligned pixels against the NFA table:

```python
from hpmfind.nfa import NfaTable

table = NfaTable(size=100, prob=0.125, log_nt=6.0)
table.check(40, 20)
```

## What it does not do

- It does not trace edge segments out of an image, nor fit circles or
  ellipses to them: segments and ellipses are supplied by the caller.
- It does not estimate 3D marker positions from ellipses or compute
  camera, bed or effector poses; `hpmfind.find` takes the 3D positions as
  input.
- It has no command-line tool and does not read, write or display images.

## Tests

```
pip install .[test]
pytest
```