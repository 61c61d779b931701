"""Assembles one Python unit per input file."""

import logging
from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .codeblock import CodeBlock
from .context import FileContext
from .declarations import generate_enum, generate_message
from .options import GenerationOptions, LongOption
from .registry import TIMESTAMP, TypeRegistry
from .services import generate_client, generate_service, generate_support
from .sourceinfo import Fields, SourceInfo
from .types import EnumDescriptor, FileDescriptor, MessageDescriptor, ServiceDescriptor
from .walker import walk, walk_services

_LOG = logging.getLogger(__name__)

env = Environment(
    loader=PackageLoader("protolite.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("python.py.j2")

MAX_SAFE_INTEGER = 2**53 - 1

# Emission order of helper functions; a helper may pull in the ones it calls
HELPERS = [
    "DeepPartial",
    "long_to_number",
    "long_to_string",
    "to_timestamp",
    "from_timestamp",
    "from_json_timestamp",
]
_HELPER_DEPENDENCIES = {"from_json_timestamp": ["from_timestamp"]}


@dataclass(frozen=True)
class GeneratedFile:
    name: str
    content: str


def _epoch(ctx: FileContext) -> str:
    datetime = ctx.stdlib("datetime", "datetime")
    return f"{datetime}(1970, 1, 1, tzinfo={ctx.stdlib('datetime', 'timezone')}.utc)"


def _gen_helper(name: str, ctx: FileContext) -> CodeBlock:
    block = CodeBlock()
    if name == "DeepPartial":
        mapping = ctx.stdlib("collections.abc", "Mapping")
        return block.add(f"DeepPartial = {mapping}[str, {ctx.stdlib('typing', 'Any')}]")

    if name == "long_to_number":
        block.begin_control_flow("def long_to_number(value: int) -> int")
        block.begin_control_flow(f"if abs(value) > {MAX_SAFE_INTEGER}")
        block.add('raise ValueError("Value is larger than 2**53 - 1")')
        block.end_control_flow()
        block.add("return value")
        return block.end_control_flow()

    if name == "long_to_string":
        block.begin_control_flow("def long_to_string(value: int) -> str")
        block.add("return str(value)")
        return block.end_control_flow()

    datetime = ctx.stdlib("datetime", "datetime")
    timestamp = ctx.lookup(TIMESTAMP)

    if name == "to_timestamp":
        seconds = "seconds"
        if ctx.options.long_mode == LongOption.LONG:
            seconds = f"{ctx.runtime('Long')}(seconds)"
        elif ctx.options.long_mode == LongOption.STRING:
            seconds = "str(seconds)"
        block.begin_control_flow(f"def to_timestamp(date: {datetime}) -> {timestamp}")
        block.begin_control_flow("if date.tzinfo is None")
        block.add(f"date = date.replace(tzinfo={ctx.stdlib('datetime', 'timezone')}.utc)")
        block.end_control_flow()
        block.add(f"delta = date - {_epoch(ctx)}")
        block.add("seconds = delta.days * 86400 + delta.seconds")
        block.add(f"return {timestamp}(seconds={seconds}, nanos=delta.microseconds * 1000)")
        return block.end_control_flow()

    if name == "from_timestamp":
        timedelta = ctx.stdlib("datetime", "timedelta")
        block.begin_control_flow(f"def from_timestamp(t: {timestamp}) -> {datetime}")
        block.add(
            f"return {_epoch(ctx)} + {timedelta}(seconds=int(t.seconds), "
            "microseconds=t.nanos // 1000)"
        )
        return block.end_control_flow()

    if name == "from_json_timestamp":
        block.begin_control_flow(
            f"def from_json_timestamp(o: {ctx.stdlib('typing', 'Any')}) -> {datetime}"
        )
        block.begin_control_flow(f"if isinstance(o, {datetime})")
        block.add("return o")
        block.end_control_flow()
        block.begin_control_flow("if isinstance(o, str)")
        block.add(f"return {datetime}.fromisoformat(o)")
        block.end_control_flow()
        block.add(f"return from_timestamp({timestamp}.from_json(o))")
        return block.end_control_flow()

    raise ValueError(f"Unknown helper {name}")


def generate_helpers(ctx: FileContext) -> list[CodeBlock]:
    """Helpers the unit's code referenced, in a fixed order."""
    for name, dependencies in _HELPER_DEPENDENCIES.items():
        if name in ctx.used_helpers:
            ctx.used_helpers.update(dependencies)
    return [_gen_helper(name, ctx) for name in HELPERS if name in ctx.used_helpers]


def generate_file(
    file: FileDescriptor, registry: TypeRegistry, options: GenerationOptions
) -> GeneratedFile:
    """Generate the unit for ``file``; ``registry`` must cover the whole request."""
    ctx = FileContext(file, registry, options)
    source = SourceInfo.from_descriptor(file)
    enums: list[CodeBlock] = []
    messages: list[CodeBlock] = []
    services: list[CodeBlock] = []

    def on_message(name: str, message: MessageDescriptor, info: SourceInfo, _: str) -> None:
        messages.append(generate_message(name, message, info, ctx))

    def on_enum(name: str, enum: EnumDescriptor, info: SourceInfo, _: str) -> None:
        enums.append(generate_enum(name, enum, info, ctx))

    def on_service(service: ServiceDescriptor, info: SourceInfo) -> None:
        services.append(generate_service(service, info, ctx))
        if options.emit_client:
            services.append(generate_client(service, ctx))

    walk(file, source, on_message, on_enum, options=options)
    walk_services(file, source, on_service)
    support = generate_support(ctx) if file.services else []
    helpers = generate_helpers(ctx)

    header = CodeBlock().add_docstring(source.lookup(Fields.FILE_SYNTAX).text)
    # enums first so dataclass defaults can name their members
    blocks = enums + messages + support + services + helpers
    content = render(header.render(), ctx.import_groups(), blocks)
    _LOG.debug("Rendered %s", file.output_name)
    return GeneratedFile(file.output_name, content)


def generate_files(files: list[FileDescriptor], options: GenerationOptions) -> list[GeneratedFile]:
    """Generate one unit per file, in input order."""
    registry = TypeRegistry.build(files, options)
    _LOG.debug("Registry holds %d type(s)", len(registry))
    return [generate_file(file, registry, options) for file in files]


def render(header: str, imports: list[list[str]], blocks: list[CodeBlock]) -> str:
    """Render a unit from its header docstring, import groups and top-level blocks."""
    return template.render(
        header=header,
        imports=imports,
        blocks=[block.render() for block in blocks],
    )
