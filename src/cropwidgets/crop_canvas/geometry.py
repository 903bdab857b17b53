# cropwidgets/src/cropwidgets/crop_canvas/geometry.py

"""Geometry primitives for the crop canvas: points, affine transforms, rectangles.

All coordinates are floats in pixel units. Nothing here clamps values to a
canvas or image extent; callers may produce negative or out-of-bounds corners
while a gesture is in progress.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, NamedTuple, Sequence, Tuple

import numpy as np


class Point(NamedTuple):
    x: float
    y: float


class AffineTransform:
    """Immutable 2D affine transform stored as a 3x3 homogeneous matrix.

    Layout::

        | a  c  tx |
        | b  d  ty |
        | 0  0  1  |

    ``t.compose(other)`` is the matrix product ``t * other``: ``other`` is
    applied first, then ``t``.
    """

    __slots__ = ("_m",)

    def __init__(
        self,
        a: float = 1.0,
        b: float = 0.0,
        c: float = 0.0,
        d: float = 1.0,
        tx: float = 0.0,
        ty: float = 0.0,
    ) -> None:
        m = np.array(
            [[a, c, tx], [b, d, ty], [0.0, 0.0, 1.0]],
            dtype=float,
        )
        m.setflags(write=False)
        self._m = m

    @classmethod
    def from_matrix(cls, source: Sequence[Sequence[float]] | np.ndarray) -> "AffineTransform":
        """Build a transform from a 3x3 array-like.

        Raises:
            ValueError: if ``source`` is not 3x3 or its bottom row is not [0, 0, 1].
        """
        m = np.asarray(source, dtype=float)
        if m.shape != (3, 3):
            raise ValueError(f"AffineTransform expects a 3x3 matrix, got shape {m.shape}")
        if not np.allclose(m[2], (0.0, 0.0, 1.0)):
            raise ValueError(f"AffineTransform bottom row must be [0, 0, 1], got {m[2].tolist()}")
        return cls(m[0, 0], m[1, 0], m[0, 1], m[1, 1], m[0, 2], m[1, 2])

    # ------------------ factories ------------------

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls(1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

    @classmethod
    def translate(cls, tx: float, ty: float) -> "AffineTransform":
        return cls(1.0, 0.0, 0.0, 1.0, tx, ty)

    @classmethod
    def scale(cls, s: float) -> "AffineTransform":
        return cls(s, 0.0, 0.0, s, 0.0, 0.0)

    @classmethod
    def rotate(cls, degrees: float) -> "AffineTransform":
        """Rotation by ``degrees`` (clockwise on a y-down surface).

        cos/sin are rounded to 5 decimals.
        """
        radians = math.radians(degrees)
        a = round(math.cos(radians), 5)
        b = round(math.sin(radians), 5)
        return cls(a, b, -b, a, 0.0, 0.0)

    # ------------------ accessors ------------------

    @property
    def a(self) -> float:
        return float(self._m[0, 0])

    @property
    def b(self) -> float:
        return float(self._m[1, 0])

    @property
    def c(self) -> float:
        return float(self._m[0, 1])

    @property
    def d(self) -> float:
        return float(self._m[1, 1])

    @property
    def tx(self) -> float:
        return float(self._m[0, 2])

    @property
    def ty(self) -> float:
        return float(self._m[1, 2])

    @property
    def matrix(self) -> np.ndarray:
        """Writable copy of the 3x3 matrix."""
        return self._m.copy()

    # ------------------ operations ------------------

    def compose(self, other: "AffineTransform") -> "AffineTransform":
        """Return ``self * other`` (apply ``other`` first, then ``self``)."""
        return AffineTransform.from_matrix(self._m @ other._m)

    def __matmul__(self, other: "AffineTransform") -> "AffineTransform":
        return self.compose(other)

    def apply(self, x: float, y: float) -> Point:
        """Map the point (x, y) through this transform."""
        vx, vy, _ = self._m @ np.array([x, y, 1.0])
        return Point(float(vx), float(vy))

    def inverse(self) -> "AffineTransform":
        """Inverse transform.

        Raises:
            numpy.linalg.LinAlgError: if the transform is singular (e.g. scale(0)).
        """
        return AffineTransform.from_matrix(np.linalg.inv(self._m))

    def almost_equal(self, other: "AffineTransform", abs_tol: float = 1e-9) -> bool:
        return bool(np.allclose(self._m, other._m, rtol=0.0, atol=abs_tol))

    # ------------------ serialization ------------------

    def to_css(self) -> str:
        """CSS/canvas style ``matrix(a, b, c, d, tx, ty)`` with floored translation."""
        return (
            f"matrix({self.a:g}, {self.b:g}, {self.c:g}, {self.d:g}, "
            f"{math.floor(self.tx)}, {math.floor(self.ty)})"
        )

    def to_pil_affine(self) -> Tuple[float, float, float, float, float, float]:
        """Coefficients in the order ``PIL.Image.transform(..., Image.AFFINE)`` expects.

        PIL maps each *output* pixel through these coefficients to find the
        input pixel, so pass the inverse of the forward transform.
        """
        return (self.a, self.c, self.tx, self.b, self.d, self.ty)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self._m.tobytes())

    def __repr__(self) -> str:
        return (
            f"AffineTransform(a={self.a}, b={self.b}, c={self.c}, d={self.d}, "
            f"tx={self.tx}, ty={self.ty})"
        )


@dataclass
class Rect:
    """Rectangle stored as two corners (x, y) and (x2, y2).

    The corners are kept as given; either may be the smaller one. The derived
    bounds (left/top/right/bottom/width/height) normalize with min/max and are
    computed on every access.
    """

    x: float = 0.0
    y: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    @property
    def width(self) -> float:
        return abs(self.x2 - self.x)

    @property
    def height(self) -> float:
        return abs(self.y2 - self.y)

    @property
    def left(self) -> float:
        return min(self.x, self.x2)

    @property
    def top(self) -> float:
        return min(self.y, self.y2)

    @property
    def right(self) -> float:
        return max(self.x, self.x2)

    @property
    def bottom(self) -> float:
        return max(self.y, self.y2)

    @property
    def center(self) -> Point:
        return Point(0.5 * (self.x + self.x2), 0.5 * (self.y + self.y2))

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, pt: Tuple[float, float]) -> bool:
        """Inclusive containment test against the normalized bounds."""
        px, py = pt
        return self.left <= px <= self.right and self.top <= py <= self.bottom

    # ------------------ mutators ------------------

    def move(self, dx: float, dy: float) -> None:
        """Translate both corners by (dx, dy)."""
        self.x += dx
        self.x2 += dx
        self.y += dy
        self.y2 += dy

    def scale(self, factor: float) -> None:
        """Scale both corners about the origin with a uniform scale transform."""
        t = AffineTransform.scale(factor)
        self.x, self.y = t.apply(self.x, self.y)
        self.x2, self.y2 = t.apply(self.x2, self.y2)

    def set_corners(self, x: float, y: float, x2: float, y2: float) -> None:
        self.x, self.y, self.x2, self.y2 = float(x), float(y), float(x2), float(y2)

    # ------------------ copies / conversion ------------------

    def clone(self) -> "Rect":
        return Rect(self.x, self.y, self.x2, self.y2)

    def as_box(self) -> Tuple[int, int, int, int]:
        """Return (left, top, right, bottom) rounded to ints."""
        return (
            int(round(self.left)),
            int(round(self.top)),
            int(round(self.right)),
            int(round(self.bottom)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rect":
        return cls(**data)

    def __str__(self) -> str:
        return f"{self.x},{self.y},{self.x2},{self.y2}"
