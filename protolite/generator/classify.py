"""Per-field classification.

Every generator consults the ``Classification`` of a field instead of the raw
descriptor, so map detection, wire shape and defaults are decided once.
"""

import keyword
from dataclasses import dataclass
from enum import Enum

from protolite.proto.serialization import WireType

from .context import FileContext
from .errors import UnsupportedError, ValidationError
from .options import GenerationOptions, LongOption
from .registry import TIMESTAMP, WRAPPER_TYPES, TypeEntry, TypeRegistry
from .types import EnumDescriptor, FieldDescriptor, FieldType, MessageDescriptor
from .walker import maybe_snake_to_camel

# Method names of generated messages plus names the class body relies on
RESERVED_NAMES = frozenset(
    ["encode", "decode", "from_json", "to_json", "from_partial", "field", "list", "dict"]
)

LONG_TYPES = frozenset(
    [FieldType.INT64, FieldType.UINT64, FieldType.SINT64, FieldType.FIXED64, FieldType.SFIXED64]
)
UNSIGNED_TYPES = frozenset([FieldType.UINT64, FieldType.FIXED64])

WIRE_TYPES = {
    FieldType.DOUBLE: WireType.FIXED64,
    FieldType.FLOAT: WireType.FIXED32,
    FieldType.INT64: WireType.VARINT,
    FieldType.UINT64: WireType.VARINT,
    FieldType.INT32: WireType.VARINT,
    FieldType.FIXED64: WireType.FIXED64,
    FieldType.FIXED32: WireType.FIXED32,
    FieldType.BOOL: WireType.VARINT,
    FieldType.STRING: WireType.LENGTH_DELIMITED,
    FieldType.MESSAGE: WireType.LENGTH_DELIMITED,
    FieldType.BYTES: WireType.LENGTH_DELIMITED,
    FieldType.UINT32: WireType.VARINT,
    FieldType.ENUM: WireType.VARINT,
    FieldType.SFIXED32: WireType.FIXED32,
    FieldType.SFIXED64: WireType.FIXED64,
    FieldType.SINT32: WireType.VARINT,
    FieldType.SINT64: WireType.VARINT,
}

PYTHON_TYPES = {
    FieldType.DOUBLE: "float",
    FieldType.FLOAT: "float",
    FieldType.INT32: "int",
    FieldType.UINT32: "int",
    FieldType.SINT32: "int",
    FieldType.FIXED32: "int",
    FieldType.SFIXED32: "int",
    FieldType.BOOL: "bool",
    FieldType.STRING: "str",
    FieldType.BYTES: "bytes",
}

DEFAULTS = {
    FieldType.DOUBLE: "0.0",
    FieldType.FLOAT: "0.0",
    FieldType.INT32: "0",
    FieldType.UINT32: "0",
    FieldType.SINT32: "0",
    FieldType.FIXED32: "0",
    FieldType.SFIXED32: "0",
    FieldType.BOOL: "False",
    FieldType.STRING: '""',
    FieldType.BYTES: 'b""',
}


class Kind(Enum):
    PRIMITIVE = "primitive"
    ENUM = "enum"
    MESSAGE = "message"
    WRAPPER = "wrapper"
    TIMESTAMP = "timestamp"
    MAP = "map"


def safe_name(name: str) -> str:
    """Python identifier for a schema name: keywords and reserved names get a ``_``."""
    if keyword.iskeyword(name) or name in RESERVED_NAMES:
        return f"{name}_"
    return name


@dataclass(frozen=True)
class Classification:
    """What one field is and how it travels.

    ``scalar`` is the scalar type of a single value: the field type for
    primitives and enums, the boxed type for wrappers. ``ref`` is the registry
    entry of the referenced enum or message (the wrapper or Timestamp message
    for well-known types, the entry message for maps).
    """

    field: FieldDescriptor
    kind: Kind
    attr: str
    json_name: str
    scalar: FieldType
    long_mode: LongOption
    ref: TypeEntry | None = None
    key: "Classification | None" = None
    value: "Classification | None" = None

    @property
    def number(self) -> int:
        return self.field.number

    @property
    def repeated(self) -> bool:
        """True for list fields; maps are repeated on the wire but not here."""
        return self.field.is_repeated and self.kind != Kind.MAP

    @property
    def is_map(self) -> bool:
        return self.kind == Kind.MAP

    @property
    def optional(self) -> bool:
        """Presence is tracked by None: oneof members and proto3 ``optional``."""
        return self.field.in_oneof

    @property
    def is_long(self) -> bool:
        return self.scalar in LONG_TYPES

    @property
    def unsigned(self) -> bool:
        return self.scalar in UNSIGNED_TYPES

    @property
    def nullable(self) -> bool:
        """Singular fields whose absence is None rather than a zero value."""
        if self.repeated or self.is_map:
            return False
        return self.optional or self.kind in (Kind.MESSAGE, Kind.WRAPPER, Kind.TIMESTAMP)

    @property
    def wire_type(self) -> WireType:
        if self.kind in (Kind.MESSAGE, Kind.WRAPPER, Kind.TIMESTAMP, Kind.MAP):
            return WireType.LENGTH_DELIMITED
        return WIRE_TYPES[self.scalar]

    @property
    def tag(self) -> int:
        return (self.number << 3) | self.wire_type

    @property
    def packed_tag(self) -> int:
        return (self.number << 3) | WireType.LENGTH_DELIMITED

    @property
    def packable(self) -> bool:
        """Only varint and fixed width scalars can share one length-delimited run."""
        return self.kind in (Kind.PRIMITIVE, Kind.ENUM) and self.wire_type != (
            WireType.LENGTH_DELIMITED
        )

    @property
    def write_method(self) -> str:
        return f"write_{self._wire_name}"

    @property
    def read_method(self) -> str:
        return f"read_{self._wire_name}"

    @property
    def _wire_name(self) -> str:
        # enums travel as int32
        scalar = FieldType.INT32 if self.scalar == FieldType.ENUM else self.scalar
        return scalar.name.lower()

    def value_type(self, ctx: FileContext) -> str:
        """Annotation of a single value, ignoring repetition and presence."""
        if self.kind in (Kind.PRIMITIVE, Kind.WRAPPER):
            if self.is_long:
                return _long_type(ctx, self.long_mode)
            return PYTHON_TYPES[self.scalar]
        if self.kind == Kind.TIMESTAMP:
            return ctx.stdlib("datetime", "datetime")
        if self.kind == Kind.MAP:
            assert self.key is not None and self.value is not None
            return f"dict[{self.key.value_type(ctx)}, {self.value.value_type(ctx)}]"
        assert self.ref is not None
        return ctx.type_name(self.ref)

    def annotation(self, ctx: FileContext) -> str:
        if self.repeated:
            return f"list[{self.value_type(ctx)}]"
        if self.nullable:
            return f"{self.value_type(ctx)} | None"
        return self.value_type(ctx)

    def zero_value(self, ctx: FileContext) -> str:
        """Expression for the zero value of a single element."""
        if self.kind == Kind.ENUM:
            assert self.ref is not None and isinstance(self.ref.descriptor, EnumDescriptor)
            enum = ctx.type_name(self.ref)
            values = self.ref.descriptor.values
            return f"{enum}.{safe_name(values[0].name)}" if values else f"{enum}.UNRECOGNIZED"
        if self.kind == Kind.MESSAGE:
            assert self.ref is not None
            return f"{ctx.type_name(self.ref)}()"
        if self.is_long:
            return _long_zero(ctx, self.long_mode, self.unsigned)
        return DEFAULTS[self.scalar]

    def default(self, ctx: FileContext) -> str:
        """Expression for the field default; None where absence is tracked."""
        if self.nullable:
            return "None"
        return self.zero_value(ctx)

    def field_default(self, ctx: FileContext) -> str:
        """Right hand side of the dataclass field declaration."""
        if self.repeated:
            return f"{ctx.stdlib('dataclasses', 'field')}(default_factory=list)"
        if self.is_map:
            return f"{ctx.stdlib('dataclasses', 'field')}(default_factory=dict)"
        return self.default(ctx)


def _long_type(ctx: FileContext, mode: LongOption) -> str:
    if mode == LongOption.LONG:
        return ctx.runtime("Long")
    if mode == LongOption.STRING:
        return "str"
    return "int"


def _long_zero(ctx: FileContext, mode: LongOption, unsigned: bool) -> str:
    if mode == LongOption.LONG:
        return f"{ctx.runtime('Long')}.{'UZERO' if unsigned else 'ZERO'}"
    if mode == LongOption.STRING:
        return '"0"'
    return "0"


def map_entry_fields(entry: MessageDescriptor) -> tuple[FieldDescriptor, FieldDescriptor]:
    """Return the (key, value) fields of a map entry message."""
    by_number = {f.number: f for f in entry.fields}
    if set(by_number) != {1, 2}:
        raise ValidationError(f"Map entry {entry.name} must have exactly fields 1 and 2")
    return by_number[1], by_number[2]


def classify(
    field: FieldDescriptor, registry: TypeRegistry, options: GenerationOptions
) -> Classification:
    """Classify ``field``; references are resolved through ``registry``."""
    attr = safe_name(maybe_snake_to_camel(field.name, options))
    json_name = maybe_snake_to_camel(field.name, options)
    common = dict(field=field, attr=attr, json_name=json_name, long_mode=options.long_mode)

    if field.type == FieldType.GROUP:
        raise UnsupportedError(f"Group field {field.name} is not supported")
    if field.type not in WIRE_TYPES:
        raise UnsupportedError(f"Field {field.name} has unsupported type {field.type}")

    if field.type == FieldType.ENUM:
        entry = registry.lookup(_type_name(field))
        if not entry.is_enum:
            raise ValidationError(f"{entry.schema_name} is a message, expected an enum")
        return Classification(kind=Kind.ENUM, scalar=FieldType.ENUM, ref=entry, **common)

    if field.type != FieldType.MESSAGE:
        return Classification(kind=Kind.PRIMITIVE, scalar=field.type, **common)

    type_name = _type_name(field)
    entry = registry.lookup(type_name)
    if entry.is_enum:
        raise ValidationError(f"{type_name} is an enum, expected a message")
    assert isinstance(entry.descriptor, MessageDescriptor)

    if field.is_repeated and entry.descriptor.map_entry:
        key_field, value_field = map_entry_fields(entry.descriptor)
        return Classification(
            kind=Kind.MAP,
            scalar=FieldType.MESSAGE,
            ref=entry,
            key=classify(key_field, registry, options),
            value=classify(value_field, registry, options),
            **common,
        )
    if type_name in WRAPPER_TYPES:
        return Classification(kind=Kind.WRAPPER, scalar=WRAPPER_TYPES[type_name], ref=entry, **common)
    if type_name == TIMESTAMP:
        return Classification(kind=Kind.TIMESTAMP, scalar=FieldType.MESSAGE, ref=entry, **common)
    return Classification(kind=Kind.MESSAGE, scalar=FieldType.MESSAGE, ref=entry, **common)


def _type_name(field: FieldDescriptor) -> str:
    if not field.type_name:
        raise ValidationError(f"Field {field.name} has no type reference")
    return field.type_name
