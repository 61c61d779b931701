"""Tests for field classification"""

from pytest import raises

from protolite.generator import GenerationOptions, TypeRegistry, UnsupportedError
from protolite.generator.classify import Kind, classify, safe_name
from protolite.generator.context import FileContext
from protolite.generator.options import LongOption

FIELDS = """
name: "acme/fields.proto"
package: "acme"
syntax: "proto3"
dependency: "google/protobuf/wrappers.proto"
enum_type { name: "Mode" value { name: "OFF" number: 0 } }
message_type {
  name: "Holder"
  field { name: "count" number: 1 label: LABEL_OPTIONAL type: TYPE_UINT32 }
  field { name: "ids" number: 2 label: LABEL_REPEATED type: TYPE_UINT64 }
  field { name: "mode" number: 3 label: LABEL_OPTIONAL type: TYPE_ENUM type_name: ".acme.Mode" }
  field { name: "child" number: 4 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".acme.Holder" }
  field {
    name: "by_name" number: 5 label: LABEL_REPEATED type: TYPE_MESSAGE
    type_name: ".acme.Holder.ByNameEntry"
  }
  field {
    name: "note" number: 6 label: LABEL_OPTIONAL type: TYPE_MESSAGE
    type_name: ".google.protobuf.UInt64Value"
  }
  field { name: "names" number: 7 label: LABEL_REPEATED type: TYPE_STRING }
  field { name: "pick" number: 8 label: LABEL_OPTIONAL type: TYPE_BOOL oneof_index: 0 }
  field { name: "class" number: 9 label: LABEL_OPTIONAL type: TYPE_STRING }
  field { name: "legacy" number: 10 label: LABEL_OPTIONAL type: TYPE_GROUP }
  nested_type {
    name: "ByNameEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_SINT64 }
    options { map_entry: true }
  }
  oneof_decl { name: "choice" }
}
"""

WRAPPERS = """
name: "google/protobuf/wrappers.proto"
package: "google.protobuf"
message_type {
  name: "UInt64Value"
  field { name: "value" number: 1 label: LABEL_OPTIONAL type: TYPE_UINT64 }
}
"""


def setup(parse_file, options=None):
    options = options or GenerationOptions()
    files = [parse_file(WRAPPERS), parse_file(FIELDS)]
    registry = TypeRegistry.build(files, options)
    holder = registry.message(".acme.Holder")
    fields = {f.name: f for f in holder.fields}
    ctx = FileContext(files[1], registry, options)
    return fields, registry, ctx, options


def describe_classify():
    def classifies_scalars(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["count"], registry, options)

        expect(c.kind) == Kind.PRIMITIVE
        expect(c.tag) == 8
        expect(c.annotation(ctx)) == "int"
        expect(c.field_default(ctx)) == "0"
        expect(c.write_method) == "write_uint32"

    def classifies_repeated_scalars_as_packable(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        ids = classify(fields["ids"], registry, options)
        names = classify(fields["names"], registry, options)

        expect(ids.repeated) == True
        expect(ids.packable) == True
        expect(ids.packed_tag) == 18
        expect(ids.is_long) == True
        expect(ids.unsigned) == True
        expect(names.packable) == False
        expect(names.field_default(ctx)) == "field(default_factory=list)"

    def classifies_enums(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["mode"], registry, options)

        expect(c.kind) == Kind.ENUM
        expect(c.read_method) == "read_int32"
        expect(c.field_default(ctx)) == "Mode.OFF"

    def classifies_messages_as_nullable(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["child"], registry, options)

        expect(c.kind) == Kind.MESSAGE
        expect(c.nullable) == True
        expect(c.annotation(ctx)) == "Holder | None"
        expect(c.zero_value(ctx)) == "Holder()"

    def classifies_maps_by_their_entry(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["by_name"], registry, options)

        expect(c.kind) == Kind.MAP
        expect(c.is_map) == True
        expect(c.repeated) == False
        expect(c.attr) == "byName"
        expect(c.key.scalar.name) == "STRING"
        expect(c.value.write_method) == "write_sint64"
        expect(c.annotation(ctx)) == "dict[str, int]"

    def unboxes_wrappers(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["note"], registry, options)

        expect(c.kind) == Kind.WRAPPER
        expect(c.annotation(ctx)) == "int | None"
        expect(c.tag) == (6 << 3) | 2

    def applies_the_long_mode_to_wrappers(expect, parse_file):
        fields, registry, ctx, options = setup(
            parse_file, GenerationOptions(long_mode=LongOption.STRING)
        )
        c = classify(fields["note"], registry, options)

        expect(c.annotation(ctx)) == "str | None"

    def tracks_oneof_presence(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["pick"], registry, options)

        expect(c.optional) == True
        expect(c.default(ctx)) == "None"
        expect(c.annotation(ctx)) == "bool | None"

    def renames_keywords(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)
        c = classify(fields["class"], registry, options)

        expect(c.attr) == "class_"
        expect(c.json_name) == "class"

    def refuses_groups(expect, parse_file):
        fields, registry, ctx, options = setup(parse_file)

        with raises(UnsupportedError):
            classify(fields["legacy"], registry, options)

    def uses_long_types_per_mode(expect, parse_file):
        fields, registry, ctx, options = setup(
            parse_file, GenerationOptions(long_mode=LongOption.LONG)
        )
        c = classify(fields["ids"], registry, options)

        expect(c.annotation(ctx)) == "list[Long]"
        expect(c.zero_value(ctx)) == "Long.UZERO"


def describe_safe_name():
    def suffixes_reserved_names(expect):
        expect(safe_name("from")) == "from_"
        expect(safe_name("encode")) == "encode_"
        expect(safe_name("field")) == "field_"
        expect(safe_name("list")) == "list_"
        expect(safe_name("dict")) == "dict_"
        expect(safe_name("name")) == "name"
