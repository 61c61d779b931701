"""Dataclass and enum declarations."""

import logging

from .classify import Classification, classify, safe_name
from .codeblock import CodeBlock
from .codecs import (
    generate_decode,
    generate_encode,
    generate_from_json,
    generate_from_partial,
    generate_to_json,
)
from .context import FileContext
from .sourceinfo import Fields, SourceInfo
from .types import EnumDescriptor, MessageDescriptor

_LOG = logging.getLogger(__name__)

UNRECOGNIZED = "UNRECOGNIZED"


def generate_enum(
    name: str, enum: EnumDescriptor, source: SourceInfo, ctx: FileContext
) -> CodeBlock:
    """Declared members in order, then ``UNRECOGNIZED = -1`` as the fallback member."""
    block = CodeBlock()
    block.begin_control_flow(f"class {name}({ctx.runtime('ProtoEnum')})")
    if source.description.text:
        block.add_docstring(source.description.text)
        block.add()

    for index, value in enumerate(enum.values):
        block.add(f"{safe_name(value.name)} = {value.number}")
        block.add_docstring(source.lookup(Fields.ENUM_VALUE, index).text)
    if not any(v.name == UNRECOGNIZED for v in enum.values):
        block.add(f"{UNRECOGNIZED} = -1")

    if ctx.options.emit_json_codec:
        any_ = ctx.stdlib("typing", "Any")
        block.add()
        block.add("@classmethod")
        block.begin_control_flow(f"def from_json(cls, obj: {any_}) -> {name}")
        for value in enum.values:
            block.begin_control_flow(f'if obj in ({value.number}, "{value.name}")')
            block.add(f"return cls.{safe_name(value.name)}")
            block.end_control_flow()
        block.add(f"return cls.{UNRECOGNIZED}")
        block.end_control_flow()

        block.add()
        block.add("@classmethod")
        block.begin_control_flow("def to_json(cls, value: int) -> str")
        for value in enum.values:
            if value.name == UNRECOGNIZED:
                continue
            block.begin_control_flow(f"if value == cls.{safe_name(value.name)}")
            block.add(f'return "{value.name}"')
            block.end_control_flow()
        block.add('return "UNKNOWN"')
        block.end_control_flow()

    block.end_control_flow()
    return block


def classify_fields(message: MessageDescriptor, ctx: FileContext) -> list[Classification]:
    return [classify(f, ctx.registry, ctx.options) for f in message.fields]


def generate_message(
    name: str, message: MessageDescriptor, source: SourceInfo, ctx: FileContext
) -> CodeBlock:
    """A dataclass whose defaults make ``Name()`` the all-defaults instance."""
    fields = classify_fields(message, ctx)
    options = ctx.options

    block = CodeBlock()
    block.add(f"@{ctx.stdlib('dataclasses', 'dataclass')}")
    block.begin_control_flow(f"class {name}({ctx.runtime('Message')})")
    if source.description.text:
        block.add_docstring(source.description.text)
        if fields:
            block.add()

    for index, c in enumerate(fields):
        block.add(f"{c.attr}: {c.annotation(ctx)} = {c.field_default(ctx)}")
        block.add_docstring(source.lookup(Fields.MESSAGE_FIELD, index).text)

    methods: list[CodeBlock] = []
    if options.emit_binary_codec:
        methods.append(generate_encode(fields, ctx))
        methods.append(generate_decode(name, fields, ctx))
    if options.emit_json_codec:
        methods.append(generate_from_json(name, fields, ctx))
        methods.append(generate_to_json(fields, ctx))
        methods.append(generate_from_partial(name, fields, ctx))

    for index, method in enumerate(methods):
        if index or fields or source.description.text:
            block.add()
        block.add_block(method)

    if not (fields or methods or source.description.text):
        block.add("pass")

    block.end_control_flow()
    _LOG.debug("Generated message %s with %d field(s)", name, len(fields))
    return block
