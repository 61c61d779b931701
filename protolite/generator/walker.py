"""Recursive traversal of a file's type tree.

Prefixes are passed down as arguments, so a walk holds no state of its own
and the same tree always yields the same sequence of visits.
"""

import re
from collections.abc import Callable

from .options import GenerationOptions
from .sourceinfo import Fields, SourceInfo
from .types import EnumDescriptor, FileDescriptor, MessageDescriptor, ServiceDescriptor

MessageFn = Callable[[str, MessageDescriptor, SourceInfo, str], None]
EnumFn = Callable[[str, EnumDescriptor, SourceInfo, str], None]
ServiceFn = Callable[[ServiceDescriptor, SourceInfo], None]

_SNAKE = re.compile(r"_\w")


def maybe_snake_to_camel(name: str, options: GenerationOptions) -> str:
    """``foo_bar`` -> ``fooBar`` when ``snake_to_camel`` is enabled."""
    if not options.snake_to_camel:
        return name
    return _SNAKE.sub(lambda m: m.group(0)[1].upper(), name)


def walk(
    node: FileDescriptor | MessageDescriptor,
    source: SourceInfo,
    on_message: MessageFn,
    on_enum: EnumFn | None = None,
    *,
    options: GenerationOptions,
    target_prefix: str = "",
    schema_prefix: str = "",
) -> None:
    """Visit every enum and message below ``node``.

    At each scope the enums come first, then each message followed by its own
    nested types. Callbacks receive the target name (``Outer_Inner``), the
    descriptor, a source cursor for the element and the schema name relative
    to the package (``Outer.Inner``).
    """
    if isinstance(node, FileDescriptor):
        enum_field, message_field = Fields.FILE_ENUM_TYPE, Fields.FILE_MESSAGE_TYPE
        messages = node.message_types
    else:
        enum_field, message_field = Fields.MESSAGE_ENUM_TYPE, Fields.MESSAGE_NESTED_TYPE
        messages = node.nested_types

    if on_enum is not None:
        for index, enum in enumerate(node.enum_types):
            on_enum(
                target_prefix + maybe_snake_to_camel(enum.name, options),
                enum,
                source.open(enum_field, index),
                schema_prefix + enum.name,
            )

    for index, message in enumerate(messages):
        target_name = target_prefix + maybe_snake_to_camel(message.name, options)
        schema_name = schema_prefix + message.name
        nested_source = source.open(message_field, index)
        on_message(target_name, message, nested_source, schema_name)
        walk(
            message,
            nested_source,
            on_message,
            on_enum,
            options=options,
            target_prefix=target_name + "_",
            schema_prefix=schema_name + ".",
        )


def walk_services(file: FileDescriptor, source: SourceInfo, on_service: ServiceFn) -> None:
    """Visit the services of ``file`` in declaration order."""
    for index, service in enumerate(file.services):
        on_service(service, source.open(Fields.FILE_SERVICE, index))
