"""Tests for type tree traversal and source comments"""

from protolite.generator import GenerationOptions
from protolite.generator.sourceinfo import Description, Fields, SourceInfo, sanitize
from protolite.generator.walker import maybe_snake_to_camel, walk, walk_services

TREE = """
name: "tree.proto"
package: "pkg"
syntax: "proto3"
enum_type { name: "Top" value { name: "A" number: 0 } }
message_type {
  name: "Outer"
  enum_type { name: "Mode" value { name: "M" number: 0 } }
  nested_type {
    name: "Inner"
    nested_type { name: "Deepest" }
  }
  nested_type { name: "other_inner" }
}
message_type { name: "Second" }
service { name: "Api" }
service { name: "Admin" }
source_code_info {
  location { path: [4, 0] leading_comments: " The outer message.\\n" }
  location { path: [4, 0, 3, 0] trailing_comments: " Inner one " }
  location { path: [6, 1] leading_comments: " Admin only.\\n" }
}
"""


def visits(parse_file, options=None):
    seen = []

    def on_message(name, message, source, schema_name):
        seen.append(("message", name, schema_name, source.path))

    def on_enum(name, enum, source, schema_name):
        seen.append(("enum", name, schema_name, source.path))

    file = parse_file(TREE)
    walk(
        file,
        SourceInfo.from_descriptor(file),
        on_message,
        on_enum,
        options=options or GenerationOptions(),
    )
    return seen


def describe_walk():
    def visits_enums_before_messages_at_each_scope(expect, parse_file):
        expect(visits(parse_file)) == [
            ("enum", "Top", "Top", (5, 0)),
            ("message", "Outer", "Outer", (4, 0)),
            ("enum", "Outer_Mode", "Outer.Mode", (4, 0, 4, 0)),
            ("message", "Outer_Inner", "Outer.Inner", (4, 0, 3, 0)),
            ("message", "Outer_Inner_Deepest", "Outer.Inner.Deepest", (4, 0, 3, 0, 3, 0)),
            ("message", "Outer_otherInner", "Outer.other_inner", (4, 0, 3, 1)),
            ("message", "Second", "Second", (4, 1)),
        ]

    def keeps_snake_case_when_disabled(expect, parse_file):
        names = [v[1] for v in visits(parse_file, GenerationOptions(snake_to_camel=False))]
        expect("Outer_other_inner" in names) == True

    def yields_the_same_sequence_every_time(expect, parse_file):
        expect(visits(parse_file)) == visits(parse_file)

    def passes_comment_cursors(expect, parse_file):
        descriptions = {}

        def on_message(name, message, source, schema_name):
            descriptions[name] = source.description.text

        file = parse_file(TREE)
        walk(file, SourceInfo.from_descriptor(file), on_message, options=GenerationOptions())
        expect(descriptions["Outer"]) == "The outer message."
        expect(descriptions["Outer_Inner"]) == "Inner one"
        expect(descriptions["Second"]) == None


def describe_walk_services():
    def visits_services_in_order(expect, parse_file):
        seen = []
        file = parse_file(TREE)
        walk_services(
            file,
            SourceInfo.from_descriptor(file),
            lambda service, source: seen.append((service.name, source.description.text)),
        )
        expect(seen) == [("Api", None), ("Admin", "Admin only.")]


def describe_maybe_snake_to_camel():
    def converts_underscored_letters(expect):
        options = GenerationOptions()
        expect(maybe_snake_to_camel("foo_bar_baz", options)) == "fooBarBaz"
        expect(maybe_snake_to_camel("plain", options)) == "plain"
        expect(maybe_snake_to_camel("v_1", options)) == "v1"


def describe_source_info():
    def looks_up_children(expect):
        source = SourceInfo({(4, 0, 2, 1): Description(leading=" second field")})
        message = source.open(Fields.FILE_MESSAGE_TYPE, 0)
        expect(message.lookup(Fields.MESSAGE_FIELD, 1).text) == "second field"
        expect(message.lookup(Fields.MESSAGE_FIELD, 0).text) == None

    def prefers_leading_comments(expect):
        expect(Description(leading=" lead", trailing=" trail").text) == "lead"
        expect(Description(leading="  \n", trailing=" trail").text) == "trail"


def describe_sanitize():
    def strips_the_comment_marker_space(expect):
        expect(sanitize(" line one\n   indented\n")) == "line one\n  indented"

    def escapes_docstring_terminators(expect):
        expect(sanitize(' say """hi""" now')) == 'say \\"\\"\\"hi\\"\\"\\" now'
        expect(sanitize(' ends with "quote"')) == 'ends with "quote\\"'
        expect(sanitize(" back\\slash")) == "back\\\\slash"
