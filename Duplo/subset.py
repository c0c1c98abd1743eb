# =============================================================================
# module: subset.py
# Purpose: Enumerate non-empty subsets of an ordered collection
# Key Types/Classes: Subset
# Key Functions: generate_subsets, generate_subsets_with_size
# Dependencies: typing, .errors
# =============================================================================

from typing import Any, Iterator, List, Sequence, Tuple

from .errors import InvalidArgumentError


class Subset:
    """
    Ordered selection from a collection.

    Parameters
    ----------
    indices : tuple of int
        Positions of the selected items in the original collection, ascending.
    items : tuple
        The selected items, in the same order as ``indices``.
    """

    def __init__(self, indices: Sequence[int], items: Sequence[Any]):
        if len(indices) != len(items):
            raise InvalidArgumentError("Subset indices and items must have the same length.")
        self.indices: Tuple[int, ...] = tuple(indices)
        self.items: Tuple[Any, ...] = tuple(items)

    @classmethod
    def from_vector(cls, vector: Sequence[bool], data: Sequence[Any]) -> 'Subset':
        """Build the subset selected by a boolean mask over ``data``."""
        indices = [i for i, flag in enumerate(vector) if flag]
        return cls(indices, [data[i] for i in indices])

    def count(self) -> int:
        return len(self.indices)

    def to_list(self) -> List[Any]:
        return list(self.items)

    def mask(self, n: int) -> List[bool]:
        """Boolean vector of length ``n`` with True at the selected positions."""
        selected = set(self.indices)
        return [i in selected for i in range(n)]

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Subset):
            return NotImplemented
        return self.indices == other.indices and self.items == other.items

    def __hash__(self) -> int:
        return hash(self.indices)

    def __repr__(self) -> str:
        return f"Subset({list(self.indices)})"


def _validate_items(items: Any) -> Sequence[Any]:
    if isinstance(items, (str, bytes, dict)) or not hasattr(items, '__len__') or not hasattr(items, '__getitem__'):
        raise InvalidArgumentError(
            f"Subsets require an ordered collection, got {type(items).__name__}."
        )
    return items


def _iter_masks(n: int) -> Iterator[List[bool]]:
    """
    Yield boolean vectors of length ``n`` counting up in binary.

    The last index is the least-significant bit. The all-false start vector
    is not yielded; the all-true vector is the final one.
    """
    vector = [False] * n
    while not all(vector):
        for i in range(n - 1, -1, -1):
            flipped = vector[i]
            vector[i] = not flipped
            if not flipped:
                break
        yield list(vector)


def generate_subsets(items: Sequence[Any]) -> List[Subset]:
    """
    Return all 2^n - 1 non-empty subsets of ``items`` in binary-counting order.

    >>> [s.to_list() for s in generate_subsets(['a', 'b'])]
    [['b'], ['a'], ['a', 'b']]

    Raises
    ------
    InvalidArgumentError
        If ``items`` is not an ordered, indexable collection.
    """
    items = _validate_items(items)
    n = len(items)
    if n == 0:
        return []
    return [Subset.from_vector(vector, items) for vector in _iter_masks(n)]


def generate_subsets_with_size(items: Sequence[Any], size: int) -> List[Subset]:
    """Return the subsets from :func:`generate_subsets` with exactly ``size`` members."""
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise InvalidArgumentError(f"size must be a non-negative integer, got {size!r}.")
    return [subset for subset in generate_subsets(items) if subset.count() == size]
