"""Codec method generators for messages.

Each generator returns a ``CodeBlock`` holding one method of the generated
dataclass. Values are produced by small per-kind expression builders so the
five generators agree on how each kind of field is represented.
"""

from .classify import Classification, Kind
from .codeblock import CodeBlock
from .context import FileContext
from .options import LongOption
from .types import FieldType


def _ref(c: Classification, ctx: FileContext) -> str:
    assert c.ref is not None
    return ctx.type_name(c.ref)


def _long_from_int(c: Classification, ctx: FileContext, expr: str) -> str:
    """Convert an ``int`` expression into the configured 64-bit representation."""
    if c.long_mode == LongOption.LONG:
        long = ctx.runtime("Long")
        return f"{long}({expr}, True)" if c.unsigned else f"{long}({expr})"
    if c.long_mode == LongOption.STRING:
        return f"{ctx.helper('long_to_string')}({expr})"
    return f"{ctx.helper('long_to_number')}({expr})"


# Binary


def _read(c: Classification, ctx: FileContext) -> str:
    """Expression decoding one value of ``c`` from ``reader``."""
    if c.kind == Kind.ENUM:
        return f"{_ref(c, ctx)}(reader.{c.read_method}())"
    if c.kind == Kind.MESSAGE:
        return f"{_ref(c, ctx)}.decode(reader, reader.read_uint32())"
    if c.kind == Kind.WRAPPER:
        return f"{_ref(c, ctx)}.decode(reader, reader.read_uint32()).value"
    if c.kind == Kind.TIMESTAMP:
        return f"{ctx.helper('from_timestamp')}({_ref(c, ctx)}.decode(reader, reader.read_uint32()))"
    if c.is_long:
        return _long_from_int(c, ctx, f"reader.{c.read_method}()")
    return f"reader.{c.read_method}()"


def _write_arg(c: Classification, value: str) -> str:
    if c.is_long and c.long_mode == LongOption.STRING:
        return f"int({value})"
    return value


def _write(c: Classification, ctx: FileContext, value: str) -> str:
    """Statement writing ``value`` with its tag."""
    tagged = f"writer.write_uint32({c.tag})"
    if c.kind == Kind.MESSAGE:
        return f"{value}.encode({tagged}.fork()).ldelim()"
    if c.kind == Kind.WRAPPER:
        return f"{_ref(c, ctx)}(value={value}).encode({tagged}.fork()).ldelim()"
    if c.kind == Kind.TIMESTAMP:
        return f"{ctx.helper('to_timestamp')}({value}).encode({tagged}.fork()).ldelim()"
    return f"{tagged}.{c.write_method}({_write_arg(c, value)})"


def generate_encode(fields: list[Classification], ctx: FileContext) -> CodeBlock:
    """``encode()`` writes fields in declaration order, skipping default values."""
    writer = ctx.runtime("Writer")
    block = CodeBlock()
    block.begin_control_flow(f"def encode(self, writer: {writer} | None = None) -> {writer}")
    block.add(f"writer = writer if writer is not None else {writer}()")

    for c in fields:
        value = f"self.{c.attr}"
        if c.is_map:
            block.begin_control_flow(f"for key, value in {value}.items()")
            block.add(
                f"{_ref(c, ctx)}(key=key, value=value).encode("
                f"writer.write_uint32({c.tag}).fork()).ldelim()"
            )
            block.end_control_flow()
        elif c.repeated and c.packable:
            block.begin_control_flow(f"if {value}")
            block.add(f"writer.write_uint32({c.packed_tag}).fork()")
            block.begin_control_flow(f"for v in {value}")
            block.add(f"writer.{c.write_method}({_write_arg(c, 'v')})")
            block.end_control_flow()
            block.add("writer.ldelim()")
            block.end_control_flow()
        elif c.repeated:
            block.begin_control_flow(f"for v in {value}")
            block.add(_write(c, ctx, "v"))
            block.end_control_flow()
        elif c.nullable:
            # messages and oneof members are written whenever present
            block.begin_control_flow(f"if {value} is not None")
            block.add(_write(c, ctx, value))
            block.end_control_flow()
        else:
            block.begin_control_flow(f"if {value} != {c.default(ctx)}")
            block.add(_write(c, ctx, value))
            block.end_control_flow()

    block.add("return writer")
    block.end_control_flow()
    return block


def _decode_field(c: Classification, ctx: FileContext) -> CodeBlock:
    target = f"message.{c.attr}"
    block = CodeBlock()
    if c.is_map:
        assert c.value is not None
        block.add(f"entry = {_ref(c, ctx)}.decode(reader, reader.read_uint32())")
        if c.value.kind == Kind.MESSAGE:
            default = c.value.zero_value(ctx)
            block.add(
                f"{target}[entry.key] = entry.value if entry.value is not None else {default}"
            )
        else:
            block.add(f"{target}[entry.key] = entry.value")
    elif c.repeated and c.packable:
        block.begin_control_flow("if tag & 7 == 2")
        block.add("end2 = reader.read_uint32() + reader.pos")
        block.begin_control_flow("while reader.pos < end2")
        block.add(f"{target}.append({_read(c, ctx)})")
        block.end_control_flow()
        block.next_control_flow("else")
        block.add(f"{target}.append({_read(c, ctx)})")
        block.end_control_flow()
    elif c.repeated:
        block.add(f"{target}.append({_read(c, ctx)})")
    else:
        block.add(f"{target} = {_read(c, ctx)}")
    return block


def generate_decode(name: str, fields: list[Classification], ctx: FileContext) -> CodeBlock:
    """``decode()`` reads tags until the end offset, skipping unknown fields."""
    reader = ctx.runtime("Reader")
    block = CodeBlock()
    block.add("@classmethod")
    block.begin_control_flow(
        f"def decode(cls, input: {reader} | bytes, length: int | None = None) -> {name}"
    )
    block.add(f"reader = input if isinstance(input, {reader}) else {reader}(input)")
    block.add("end = reader.len if length is None else reader.pos + length")
    block.add("message = cls()")
    block.begin_control_flow("while reader.pos < end")
    block.add("tag = reader.read_uint32()")
    if fields:
        keyword = "if"
        for c in fields:
            block.begin_control_flow(f"{keyword} tag >> 3 == {c.number}")
            block.add_block(_decode_field(c, ctx))
            block.end_control_flow()
            keyword = "elif"
        block.begin_control_flow("else")
        block.add("reader.skip_type(tag & 7)")
        block.end_control_flow()
    else:
        block.add("reader.skip_type(tag & 7)")
    block.end_control_flow()
    block.add("return message")
    block.end_control_flow()
    return block


# JSON


def _from_json_scalar(c: Classification, ctx: FileContext, expr: str) -> str:
    if c.is_long:
        if c.long_mode == LongOption.LONG:
            long = ctx.runtime("Long")
            return f"{long}(int({expr}), True)" if c.unsigned else f"{long}(int({expr}))"
        if c.long_mode == LongOption.STRING:
            return f"str({expr})"
        return f"int({expr})"
    if c.scalar == FieldType.BYTES:
        return f"{ctx.runtime('bytes_from_base64')}({expr})"
    if c.scalar in (FieldType.DOUBLE, FieldType.FLOAT):
        return f"float({expr})"
    if c.scalar == FieldType.BOOL:
        return f"bool({expr})"
    if c.scalar == FieldType.STRING:
        return f"str({expr})"
    return f"int({expr})"


def _from_json(c: Classification, ctx: FileContext, expr: str) -> str:
    if c.kind == Kind.ENUM:
        return f"{_ref(c, ctx)}.from_json({expr})"
    if c.kind == Kind.MESSAGE:
        return f"{_ref(c, ctx)}.from_json({expr})"
    if c.kind == Kind.TIMESTAMP:
        return f"{ctx.helper('from_json_timestamp')}({expr})"
    return _from_json_scalar(c, ctx, expr)


def _map_key(c: Classification, ctx: FileContext, expr: str) -> str:
    """Coerce a JSON object key (always a string on the wire) to the key type."""
    if c.scalar == FieldType.STRING:
        return expr
    if c.scalar == FieldType.BOOL:
        return f'{expr} == "true" or {expr} is True'
    return _from_json_scalar(c, ctx, expr)


def _map_key_to_json(c: Classification, expr: str) -> str:
    if c.scalar == FieldType.BOOL:
        return f'"true" if {expr} else "false"'
    if c.scalar == FieldType.STRING:
        return expr
    return f"str({expr})"


def generate_from_json(name: str, fields: list[Classification], ctx: FileContext) -> CodeBlock:
    """``from_json()`` converts present, non-null properties; others keep their default."""
    block = CodeBlock()
    block.add("@classmethod")
    block.begin_control_flow(f"def from_json(cls, obj: {ctx.stdlib('typing', 'Any')}) -> {name}")
    block.add("message = cls()")
    for c in fields:
        prop = f'obj["{c.json_name}"]'
        block.begin_control_flow(f'if obj.get("{c.json_name}") is not None')
        if c.is_map:
            assert c.key is not None and c.value is not None
            block.add(
                f"message.{c.attr} = {{{_map_key(c.key, ctx, 'k')}: "
                f"{_from_json(c.value, ctx, 'v')} for k, v in {prop}.items()}}"
            )
        elif c.repeated:
            block.add(f"message.{c.attr} = [{_from_json(c, ctx, 'e')} for e in {prop}]")
        else:
            block.add(f"message.{c.attr} = {_from_json(c, ctx, prop)}")
        block.end_control_flow()
    block.add("return message")
    block.end_control_flow()
    return block


def _to_json(c: Classification, ctx: FileContext, expr: str) -> str:
    if c.kind == Kind.ENUM:
        return f"{_ref(c, ctx)}.to_json({expr})"
    if c.kind == Kind.MESSAGE:
        return f"{expr}.to_json()"
    if c.kind == Kind.TIMESTAMP:
        return f"{expr}.isoformat()"
    if c.scalar == FieldType.BYTES:
        return f"{ctx.runtime('base64_from_bytes')}({expr})"
    if c.is_long and c.long_mode == LongOption.LONG:
        return f"str({expr})"
    return expr


def generate_to_json(fields: list[Classification], ctx: FileContext) -> CodeBlock:
    """``to_json()`` renders every field; absent messages become null."""
    any_ = ctx.stdlib("typing", "Any")
    block = CodeBlock()
    block.begin_control_flow(f"def to_json(self) -> dict[str, {any_}]")
    block.add(f"obj: dict[str, {any_}] = {{}}")
    for c in fields:
        value = f"self.{c.attr}"
        prop = f'obj["{c.json_name}"]'
        if c.is_map:
            assert c.key is not None and c.value is not None
            block.add(
                f"{prop} = {{{_map_key_to_json(c.key, 'k')}: {_to_json(c.value, ctx, 'v')} "
                f"for k, v in {value}.items()}}"
            )
        elif c.repeated:
            converted = _to_json(c, ctx, "e")
            if converted == "e":
                block.add(f"{prop} = list({value})")
            else:
                block.add(f"{prop} = [{converted} for e in {value}]")
        elif c.optional:
            block.begin_control_flow(f"if {value} is not None")
            block.add(f"{prop} = {_to_json(c, ctx, value)}")
            block.end_control_flow()
        elif c.nullable:
            converted = _to_json(c, ctx, value)
            if converted == value:
                block.add(f"{prop} = {value}")
            else:
                block.add(f"{prop} = {converted} if {value} is not None else None")
        else:
            block.add(f"{prop} = {_to_json(c, ctx, value)}")
    block.add("return obj")
    block.end_control_flow()
    return block


# Partial


def _from_partial(c: Classification, ctx: FileContext, expr: str) -> str:
    if c.kind == Kind.MESSAGE:
        return f"{_ref(c, ctx)}.from_partial({expr})"
    if c.kind == Kind.ENUM:
        return f"{_ref(c, ctx)}({expr})"
    if c.kind == Kind.PRIMITIVE and c.is_long and c.long_mode == LongOption.LONG:
        long = ctx.runtime("Long")
        return f"{long}({expr}, True)" if c.unsigned else f"{long}({expr})"
    return expr


def generate_from_partial(name: str, fields: list[Classification], ctx: FileContext) -> CodeBlock:
    """``from_partial()`` builds a message from a mapping keyed by attribute name."""
    block = CodeBlock()
    block.add("@classmethod")
    block.begin_control_flow(
        f"def from_partial(cls, obj: {ctx.helper('DeepPartial')}) -> {name}"
    )
    block.add("message = cls()")
    for c in fields:
        prop = f'obj["{c.attr}"]'
        block.begin_control_flow(f'if obj.get("{c.attr}") is not None')
        if c.is_map:
            assert c.key is not None and c.value is not None
            block.add(
                f"message.{c.attr} = {{{_map_key(c.key, ctx, 'k')}: "
                f"{_from_partial(c.value, ctx, 'v')} for k, v in {prop}.items()}}"
            )
        elif c.repeated:
            converted = _from_partial(c, ctx, "e")
            if converted == "e":
                block.add(f"message.{c.attr} = list({prop})")
            else:
                block.add(f"message.{c.attr} = [{converted} for e in {prop}]")
        else:
            block.add(f"message.{c.attr} = {_from_partial(c, ctx, prop)}")
        block.end_control_flow()
    block.add("return message")
    block.end_control_flow()
    return block
