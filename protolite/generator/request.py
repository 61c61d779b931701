"""Conversion of protoc descriptor messages into generator types."""

import logging

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from .types import (
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldType,
    FileDescriptor,
    Label,
    MessageDescriptor,
    MethodDescriptor,
    ServiceDescriptor,
    SourceLocation,
)

_LOG = logging.getLogger(__name__)


def _field(proto: descriptor_pb2.FieldDescriptorProto) -> FieldDescriptor:
    return FieldDescriptor(
        name=proto.name,
        number=proto.number,
        label=Label(proto.label),
        type=FieldType(proto.type),
        type_name=proto.type_name or None,
        oneof_index=proto.oneof_index if proto.HasField("oneof_index") else None,
        json_name=proto.json_name or None,
        proto3_optional=proto.proto3_optional,
    )


def _enum(proto: descriptor_pb2.EnumDescriptorProto) -> EnumDescriptor:
    return EnumDescriptor(
        name=proto.name,
        values=[EnumValueDescriptor(name=v.name, number=v.number) for v in proto.value],
    )


def _message(proto: descriptor_pb2.DescriptorProto) -> MessageDescriptor:
    return MessageDescriptor(
        name=proto.name,
        fields=[_field(f) for f in proto.field],
        nested_types=[_message(m) for m in proto.nested_type],
        enum_types=[_enum(e) for e in proto.enum_type],
        oneof_decls=[o.name for o in proto.oneof_decl],
        map_entry=proto.options.map_entry,
    )


def _service(proto: descriptor_pb2.ServiceDescriptorProto) -> ServiceDescriptor:
    return ServiceDescriptor(
        name=proto.name,
        methods=[
            MethodDescriptor(
                name=m.name,
                input_type=m.input_type,
                output_type=m.output_type,
                client_streaming=m.client_streaming,
                server_streaming=m.server_streaming,
            )
            for m in proto.method
        ],
    )


def file_from_proto(proto: descriptor_pb2.FileDescriptorProto) -> FileDescriptor:
    """Convert a ``FileDescriptorProto`` into a ``FileDescriptor``."""
    return FileDescriptor(
        name=proto.name,
        package=proto.package,
        # protoc leaves syntax empty for proto2 files
        syntax=proto.syntax or "proto2",
        dependencies=list(proto.dependency),
        message_types=[_message(m) for m in proto.message_type],
        enum_types=[_enum(e) for e in proto.enum_type],
        services=[_service(s) for s in proto.service],
        locations=[
            SourceLocation(
                path=list(loc.path),
                leading_comments=loc.leading_comments if loc.HasField("leading_comments") else None,
                trailing_comments=(
                    loc.trailing_comments if loc.HasField("trailing_comments") else None
                ),
            )
            for loc in proto.source_code_info.location
            if loc.HasField("leading_comments") or loc.HasField("trailing_comments")
        ],
    )


def files_from_request(request: plugin_pb2.CodeGeneratorRequest) -> list[FileDescriptor]:
    """Return every file of a plugin request, in request order."""
    files = [file_from_proto(proto) for proto in request.proto_file]
    _LOG.debug("Loaded %d file(s) from request", len(files))
    return files


def files_from_descriptor_set(data: bytes) -> list[FileDescriptor]:
    """Parse a serialized ``FileDescriptorSet`` as written by ``protoc -o``."""
    descriptor_set = descriptor_pb2.FileDescriptorSet.FromString(data)
    files = [file_from_proto(proto) for proto in descriptor_set.file]
    _LOG.debug("Loaded %d file(s) from descriptor set", len(files))
    return files
