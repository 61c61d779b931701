"""Descriptor types consumed by the code generator.

These mirror the parts of ``google.protobuf.descriptor_pb2`` the generator
needs. They are built once per run (see ``request.py``) and never mutated.
"""

from dataclasses import dataclass, field
from enum import IntEnum

from dataclasses_json import DataClassJsonMixin


class FieldType(IntEnum):
    """Scalar type tag of a field, numbered as in descriptor.proto."""

    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    GROUP = 10
    MESSAGE = 11
    BYTES = 12
    UINT32 = 13
    ENUM = 14
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18


class Label(IntEnum):
    """Field cardinality."""

    OPTIONAL = 1
    REQUIRED = 2
    REPEATED = 3


@dataclass(frozen=True)
class FieldDescriptor(DataClassJsonMixin):
    """Represents a message field.

    ``type_name`` is the fully-qualified, dot-prefixed name of the referenced
    message or enum (``.pkg.Outer.Inner``) and is None for scalars.
    ``oneof_index`` is None when the field is not part of a oneof.
    """

    name: str
    number: int
    label: Label
    type: FieldType
    type_name: str | None = None
    oneof_index: int | None = None
    json_name: str | None = None
    proto3_optional: bool = False

    @property
    def is_repeated(self) -> bool:
        return self.label == Label.REPEATED

    @property
    def in_oneof(self) -> bool:
        return self.oneof_index is not None


@dataclass(frozen=True)
class EnumValueDescriptor(DataClassJsonMixin):
    """Represents a single enum value."""

    name: str
    number: int


@dataclass(frozen=True)
class EnumDescriptor(DataClassJsonMixin):
    """Represents an enum type definition."""

    name: str
    values: list[EnumValueDescriptor] = field(default_factory=list)


@dataclass(frozen=True)
class MessageDescriptor(DataClassJsonMixin):
    """Represents a message type definition.

    Field order is declaration order, which is also binary encode order.
    ``map_entry`` marks the synthetic key/value message protoc creates for a
    ``map<K, V>`` field.
    """

    name: str
    fields: list[FieldDescriptor] = field(default_factory=list)
    nested_types: list["MessageDescriptor"] = field(default_factory=list)
    enum_types: list[EnumDescriptor] = field(default_factory=list)
    oneof_decls: list[str] = field(default_factory=list)
    map_entry: bool = False


@dataclass(frozen=True)
class MethodDescriptor(DataClassJsonMixin):
    """Represents an RPC method."""

    name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False


@dataclass(frozen=True)
class ServiceDescriptor(DataClassJsonMixin):
    """Represents an RPC service."""

    name: str
    methods: list[MethodDescriptor] = field(default_factory=list)


@dataclass(frozen=True)
class SourceLocation(DataClassJsonMixin):
    """Comments attached to the element at a structural path."""

    path: list[int]
    leading_comments: str | None = None
    trailing_comments: str | None = None


@dataclass(frozen=True)
class FileDescriptor(DataClassJsonMixin):
    """Represents one .proto file."""

    name: str
    package: str = ""
    syntax: str = "proto2"
    dependencies: list[str] = field(default_factory=list)
    message_types: list[MessageDescriptor] = field(default_factory=list)
    enum_types: list[EnumDescriptor] = field(default_factory=list)
    services: list[ServiceDescriptor] = field(default_factory=list)
    locations: list[SourceLocation] = field(default_factory=list)

    @property
    def module_path(self) -> str:
        """``foo/bar.proto`` -> ``foo/bar``."""
        return self.name.removesuffix(".proto")

    @property
    def output_name(self) -> str:
        return f"{self.module_path}.py"


TypeDescriptor = MessageDescriptor | EnumDescriptor
