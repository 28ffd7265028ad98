"""
Point module - coordinates and weighted resource nodes.

A Point is a position in the metric space the problem lives in. Most
problems are planar, but nothing here assumes two dimensions.

A ResourceNode is a Point with a demand weight. The weight scales the
node's contribution to the total cost, so a node of weight 2 counts the
same as two nodes of weight 1 at the same position.

Design Notes:
------------
- Both classes are frozen dataclasses: hashable and safe to share
- Identity is positional; two Points with equal coordinates are equal
- Non-finite values are rejected at construction so NaN never reaches
  the distance computations
"""

import math
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

from stationplan.core.errors import InvalidInputError


@dataclass(frozen=True)
class Point:
    """
    Immutable coordinate.

    Attributes:
        coords: Tuple of float coordinates (at least one)

    Example:
        >>> p = Point.of(3, 4)
        >>> p.x, p.y
        (3.0, 4.0)
        >>> p == Point((3.0, 4.0))
        True
    """
    coords: Tuple[float, ...]

    def __post_init__(self):
        try:
            values = tuple(float(c) for c in self.coords)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Invalid coordinates: {self.coords!r}") from exc

        if not values:
            raise InvalidInputError("A point needs at least one coordinate")
        if not all(math.isfinite(v) for v in values):
            raise InvalidInputError(f"Non-finite coordinate in {values!r}")

        object.__setattr__(self, 'coords', values)

    @classmethod
    def of(cls, *values: float) -> 'Point':
        """Create a point from positional coordinates."""
        return cls(tuple(values))

    @property
    def x(self) -> float:
        return self.coords[0]

    @property
    def y(self) -> float:
        if len(self.coords) < 2:
            raise AttributeError("Point has no y coordinate")
        return self.coords[1]

    @property
    def dim(self) -> int:
        """Number of coordinates."""
        return len(self.coords)

    def __iter__(self) -> Iterator[float]:
        return iter(self.coords)

    def __len__(self) -> int:
        return len(self.coords)

    def __getitem__(self, i: int) -> float:
        return self.coords[i]

    def __repr__(self) -> str:
        return "Point(" + ", ".join(f"{c:g}" for c in self.coords) + ")"


PointLike = Union[Point, Sequence[float]]


def as_point(obj: PointLike) -> Point:
    """Convert a Point or a sequence of numbers into a Point."""
    if isinstance(obj, Point):
        return obj
    return Point(tuple(obj))


@dataclass(frozen=True)
class ResourceNode:
    """
    A weighted demand location.

    Attributes:
        point: Location of the node
        weight: Non-negative demand (volume, purity, ...)
        name: Optional label carried through to reports

    Example:
        >>> node = ResourceNode(Point.of(10, 20), weight=2.0, name="iron_07")
        >>> node.weight
        2.0
    """
    point: Point
    weight: float = 1.0
    name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.point, Point):
            object.__setattr__(self, 'point', as_point(self.point))

        try:
            weight = float(self.weight)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Invalid weight: {self.weight!r}") from exc

        if not math.isfinite(weight) or weight < 0:
            raise InvalidInputError(
                f"Weight must be finite and non-negative, got {weight}"
            )
        object.__setattr__(self, 'weight', weight)

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"ResourceNode({label}{self.point!r}, w={self.weight:g})"
