"""Chain coordinates: points, vectors and value-keyed maps over them."""

from typing import Callable, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChainPoint(BaseModel):
    """A contract instance on one chain.

    Immutable value type: two points are equal when chain id and address are
    equal, and points can be used as dict keys.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    chain_id: int = Field(..., ge=0)
    address: str

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Reject empty addresses."""
        if not v or not v.strip():
            raise ValueError("Address must not be empty")
        return v


class Vector(BaseModel):
    """A directed pathway between two chain points.

    Direction matters for equality; use ``vectors_equal_as_set`` to compare
    two vectors regardless of direction.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    from_: ChainPoint = Field(..., alias="from")
    to: ChainPoint

    def reverse(self) -> "Vector":
        """Return the vector pointing the other way."""
        return Vector(from_=self.to, to=self.from_)


def vectors_equal_as_set(a: Vector, b: Vector) -> bool:
    """Compare two vectors ignoring their direction."""
    return a == b or a == b.reverse()


def format_point(point: ChainPoint) -> str:
    """Human readable label for a point, e.g. ``[30101] 0xabc``."""
    return f"[{point.chain_id}] {point.address}"


def format_vector(vector: Vector) -> str:
    """Human readable label for a vector, e.g. ``[30101] 0xabc → [30110] 0xdef``."""
    return f"{format_point(vector.from_)} → {format_point(vector.to)}"


K = TypeVar("K", ChainPoint, Vector)
V = TypeVar("V")


class _ValueKeyedMap(Generic[K, V]):
    """Insertion-ordered mapping keyed by a frozen coordinate model."""

    def __init__(self, entries: Optional[Dict[K, V]] = None):
        self._data: Dict[K, V] = dict(entries or {})

    def get(self, key: K) -> Optional[V]:
        return self._data.get(key)

    def get_or_else(self, key: K, factory: Callable[[], V]) -> V:
        """Return the value at key, or a fresh value from factory (not stored)."""
        if key in self._data:
            return self._data[key]
        return factory()

    def set(self, key: K, value: V) -> None:
        self._data[key] = value

    def delete(self, key: K) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Tuple[K, V]]:
        return iter(list(self._data.items()))

    def keys(self):
        return list(self._data.keys())

    def values(self):
        return list(self._data.values())


class PointMap(_ValueKeyedMap[ChainPoint, V]):
    """Mapping keyed by ChainPoint value."""


class VectorMap(_ValueKeyedMap[Vector, V]):
    """Mapping keyed by Vector value (direction-sensitive)."""
