"""Source comment lookup by descriptor path.

protoc records comments in ``SourceCodeInfo`` keyed by the path of field
numbers and indices leading from the file descriptor to an element. A
``SourceInfo`` is a cursor at one such path.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Self

from .types import FileDescriptor


class Fields:
    """Descriptor field numbers used in source paths."""

    FILE_MESSAGE_TYPE = 4
    FILE_ENUM_TYPE = 5
    FILE_SERVICE = 6
    FILE_SYNTAX = 12
    MESSAGE_FIELD = 2
    MESSAGE_NESTED_TYPE = 3
    MESSAGE_ENUM_TYPE = 4
    ENUM_VALUE = 2
    SERVICE_METHOD = 2


@dataclass(frozen=True)
class Description:
    """Leading and trailing comments of one element."""

    leading: str | None = None
    trailing: str | None = None

    @property
    def text(self) -> str | None:
        """The sanitized comment text, preferring the leading comment."""
        for raw in (self.leading, self.trailing):
            if raw and raw.strip():
                return sanitize(raw)
        return None


_EMPTY = Description()


def sanitize(text: str) -> str:
    """Make comment text safe to place inside a triple-quoted docstring."""
    lines = [line.rstrip() for line in text.strip("\n").splitlines()]
    # protoc keeps the space that follows "//"
    if all(not line or line.startswith(" ") for line in lines):
        lines = [line[1:] for line in lines]
    text = "\n".join(lines).strip()
    text = text.replace("\\", "\\\\")
    if text.endswith('"'):
        text = text[:-1] + '\\"'
    return text.replace('"""', '\\"\\"\\"')


class SourceInfo:
    """Cursor over the comments of a file, positioned at one path."""

    def __init__(
        self, descriptions: Mapping[tuple[int, ...], Description], path: tuple[int, ...] = ()
    ) -> None:
        self._descriptions = descriptions
        self._path = path

    @classmethod
    def from_descriptor(cls, file: FileDescriptor) -> Self:
        return cls(
            {
                tuple(loc.path): Description(loc.leading_comments, loc.trailing_comments)
                for loc in file.locations
            }
        )

    @classmethod
    def empty(cls) -> Self:
        return cls({})

    @property
    def path(self) -> tuple[int, ...]:
        return self._path

    @property
    def description(self) -> Description:
        """Comments of the element this cursor points at."""
        return self._descriptions.get(self._path, _EMPTY)

    def open(self, field: int, index: int) -> Self:
        """Cursor for the ``index``-th element of repeated ``field``."""
        return type(self)(self._descriptions, self._path + (field, index))

    def lookup(self, field: int, index: int | None = None) -> Description:
        """Comments of a child element; ``index`` is None for singular fields."""
        path = self._path + ((field,) if index is None else (field, index))
        return self._descriptions.get(path, _EMPTY)
