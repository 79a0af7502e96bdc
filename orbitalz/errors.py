"""Exceptions raised by the layer engine."""

from typing import Tuple


class NftGenError(Exception):
    """Base class for layer engine errors."""


class CatalogError(NftGenError):
    """The layer directory tree cannot be turned into a catalog."""


class OrderingError(NftGenError):
    """Layer groups and the configured render order disagree."""


class DimensionMismatchError(NftGenError):
    """A layer image does not match the canvas size."""

    def __init__(
        self, group: str, trait: str, expected: Tuple[int, int], actual: Tuple[int, int]
    ):
        self.group = group
        self.trait = trait
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Layer {group}/{trait} is {actual[0]}x{actual[1]}, "
            f"expected {expected[0]}x{expected[1]}"
        )
