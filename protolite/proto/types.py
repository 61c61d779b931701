"""Runtime value types used by generated code."""

from typing import ClassVar, Self

_SIGNED_RANGE = (-(1 << 63), (1 << 63) - 1)
_UNSIGNED_RANGE = (0, (1 << 64) - 1)


class Long(int):
    """A 64-bit integer that remembers its signedness.

    Generated code uses this type for 64-bit fields when ``forceLong=long``.
    It behaves like ``int`` in arithmetic and comparisons, but construction
    rejects values outside the signed or unsigned 64-bit range.
    """

    unsigned: bool

    ZERO: ClassVar["Long"]
    UZERO: ClassVar["Long"]

    def __new__(cls, value: int | str = 0, unsigned: bool = False) -> Self:
        number = int(value)
        low, high = _UNSIGNED_RANGE if unsigned else _SIGNED_RANGE
        if not low <= number <= high:
            kind = "unsigned" if unsigned else "signed"
            raise OverflowError(f"{number} does not fit in a {kind} 64-bit integer")
        instance = super().__new__(cls, number)
        instance.unsigned = unsigned
        return instance

    @classmethod
    def from_string(cls, value: str, unsigned: bool = False) -> Self:
        return cls(int(value, 10), unsigned)

    def __repr__(self) -> str:
        if self.unsigned:
            return f"Long({int(self)}, unsigned=True)"
        return f"Long({int(self)})"

    def __str__(self) -> str:
        return str(int(self))


Long.ZERO = Long(0)
Long.UZERO = Long(0, unsigned=True)
