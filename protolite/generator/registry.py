"""Cross-file registry of schema types."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from .errors import TypeNotFoundError, ValidationError
from .options import GenerationOptions
from .sourceinfo import SourceInfo
from .types import EnumDescriptor, FieldType, FileDescriptor, MessageDescriptor, TypeDescriptor
from .walker import walk

_LOG = logging.getLogger(__name__)

TIMESTAMP = ".google.protobuf.Timestamp"

# Boxed scalars, keyed by schema name, with the type of their single `value` field
WRAPPER_TYPES = {
    ".google.protobuf.DoubleValue": FieldType.DOUBLE,
    ".google.protobuf.FloatValue": FieldType.FLOAT,
    ".google.protobuf.Int64Value": FieldType.INT64,
    ".google.protobuf.UInt64Value": FieldType.UINT64,
    ".google.protobuf.Int32Value": FieldType.INT32,
    ".google.protobuf.UInt32Value": FieldType.UINT32,
    ".google.protobuf.BoolValue": FieldType.BOOL,
    ".google.protobuf.StringValue": FieldType.STRING,
    ".google.protobuf.BytesValue": FieldType.BYTES,
}


@dataclass(frozen=True)
class TypeEntry:
    """Where a schema type lives in the generated code."""

    schema_name: str
    module: str
    name: str
    descriptor: TypeDescriptor

    @property
    def is_enum(self) -> bool:
        return isinstance(self.descriptor, EnumDescriptor)

    @property
    def import_path(self) -> str:
        """Dotted module name generated code imports the type from."""
        return self.module.replace("/", ".")


class TypeRegistry:
    """Maps fully-qualified schema names (``.pkg.Outer.Inner``) to ``TypeEntry``.

    Built in one pass over every file of the request before any code is
    generated, so references resolve regardless of file order.
    """

    def __init__(self, entries: dict[str, TypeEntry]) -> None:
        self._entries = entries

    @classmethod
    def build(cls, files: list[FileDescriptor], options: GenerationOptions) -> "TypeRegistry":
        entries: dict[str, TypeEntry] = {}

        for file in files:
            prefix = f".{file.package}." if file.package else "."
            targets: set[str] = set()

            def register(
                target_name: str,
                descriptor: TypeDescriptor,
                _source: SourceInfo,
                schema_name: str,
                file: FileDescriptor = file,
                prefix: str = prefix,
                targets: set[str] = targets,
            ) -> None:
                full_name = prefix + schema_name
                if full_name in entries:
                    raise ValidationError(
                        f"{full_name} is defined in both {entries[full_name].module} "
                        f"and {file.module_path}"
                    )
                if target_name in targets:
                    raise ValidationError(f"Type name {target_name} is not unique in {file.name}")
                targets.add(target_name)
                entries[full_name] = TypeEntry(full_name, file.module_path, target_name, descriptor)

            walk(file, SourceInfo.empty(), register, register, options=options)
            _LOG.debug("Registered %d type(s) from %s", len(targets), file.name)

        return cls(entries)

    def lookup(self, schema_name: str) -> TypeEntry:
        try:
            return self._entries[schema_name]
        except KeyError:
            raise TypeNotFoundError(f"No type found for {schema_name}") from None

    def message(self, schema_name: str) -> MessageDescriptor:
        """Look up a type that must be a message."""
        entry = self.lookup(schema_name)
        if not isinstance(entry.descriptor, MessageDescriptor):
            raise ValidationError(f"{schema_name} is an enum, expected a message")
        return entry.descriptor

    def __contains__(self, schema_name: object) -> bool:
        return schema_name in self._entries

    def __iter__(self) -> Iterator[TypeEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
