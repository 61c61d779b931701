"""Service interfaces and RPC client implementations.

With ``context=true`` clients coalesce calls through ``DataLoader``:

* ``BatchGetFoos(ctx, request)`` whose request and response each hold one
  repeated field gets a companion ``GetFoo(ctx, id)`` that batches.
* ``GetFoo(ctx, request)`` methods dedupe identical concurrent requests.
"""

import re
from dataclasses import dataclass

from .classify import Classification, classify, safe_name
from .codeblock import CodeBlock
from .context import FileContext
from .errors import UnsupportedError
from .registry import TypeRegistry
from .options import GenerationOptions
from .sourceinfo import Fields, SourceInfo
from .types import FieldDescriptor, MessageDescriptor, MethodDescriptor, ServiceDescriptor

_CACHEABLE = re.compile(r"^Get[A-Z]")

# Names bound inside a generated batch accessor
_ACCESSOR_LOCALS = frozenset(["self", "ctx", "load", "loader"])


@dataclass(frozen=True)
class BatchMethod:
    """A batch RPC and the singular accessor synthesized for it."""

    method: MethodDescriptor
    unique_identifier: str
    single_method_name: str
    input_field: Classification
    output_field: Classification

    @property
    def key_name(self) -> str:
        name = safe_name(singular(self.input_field.attr))
        return f"{name}_" if name in _ACCESSOR_LOCALS else name

    @property
    def map_response(self) -> bool:
        return self.output_field.is_map


def singular(name: str) -> str:
    """``ids`` -> ``id``; names without a trailing ``s`` are returned unchanged."""
    return name[:-1] if name.endswith("s") and len(name) > 1 else name


def companion_name(batch_name: str) -> str:
    """``BatchGetWidgets`` -> ``GetWidget``; ``BatchWidgets`` -> ``GetWidget``."""
    rest = batch_name.removeprefix("Batch")
    return "Get" + singular(rest.removeprefix("Get"))


def _single_repeated_field(message: MessageDescriptor) -> FieldDescriptor | None:
    if len(message.fields) == 1 and message.fields[0].is_repeated:
        return message.fields[0]
    return None


def service_name(package: str, service: ServiceDescriptor) -> str:
    return f"{package}.{service.name}" if package else service.name


def detect_batch_method(
    package: str,
    service: ServiceDescriptor,
    method: MethodDescriptor,
    registry: TypeRegistry,
    options: GenerationOptions,
) -> BatchMethod | None:
    """Return the batch shape of ``method``, or None when it is a plain RPC."""
    if not method.name.startswith("Batch"):
        return None
    input_field = _single_repeated_field(registry.message(method.input_type))
    output_field = _single_repeated_field(registry.message(method.output_type))
    if input_field is None or output_field is None:
        return None

    single_method_name = companion_name(method.name)
    if any(m.name == single_method_name for m in service.methods):
        return None
    return BatchMethod(
        method=method,
        unique_identifier=f"{service_name(package, service)}.{method.name}",
        single_method_name=single_method_name,
        input_field=classify(input_field, registry, options),
        output_field=classify(output_field, registry, options),
    )


def is_cacheable(method: MethodDescriptor) -> bool:
    return bool(_CACHEABLE.match(method.name))


def _check_unary(service: ServiceDescriptor, method: MethodDescriptor) -> None:
    if method.client_streaming or method.server_streaming:
        raise UnsupportedError(f"Streaming method {service.name}.{method.name} is not supported")


def _ctx_param(ctx: FileContext) -> str:
    return "ctx: Context, " if ctx.options.use_context else ""


def _batch_types(batch: BatchMethod, ctx: FileContext) -> tuple[str, str]:
    """(key type, result type) of the companion accessor."""
    output = batch.output_field
    if batch.map_response:
        assert output.value is not None
        output = output.value
    return batch.input_field.value_type(ctx), output.value_type(ctx)


def generate_service(
    service: ServiceDescriptor, source: SourceInfo, ctx: FileContext
) -> CodeBlock:
    """Abstract interface with one method per RPC, plus batch companions."""
    awaitable = ctx.stdlib("collections.abc", "Awaitable")
    bases = [ctx.stdlib("abc", "ABC")]
    if ctx.options.use_context:
        bases.append(f"{ctx.stdlib('typing', 'Generic')}[Context]")
    abstract = ctx.stdlib("abc", "abstractmethod")

    block = CodeBlock()
    block.begin_control_flow(f"class {service.name}({', '.join(bases)})")
    block.add_docstring(source.description.text)

    for index, method in enumerate(service.methods):
        _check_unary(service, method)
        request = ctx.lookup(method.input_type)
        response = ctx.lookup(method.output_type)
        if index or source.description.text:
            block.add()
        block.add(f"@{abstract}")
        block.begin_control_flow(
            f"def {method.name}(self, {_ctx_param(ctx)}request: {request}) "
            f"-> {awaitable}[{response}]"
        )
        block.add_docstring(source.lookup(Fields.SERVICE_METHOD, index).text)
        block.add("...")
        block.end_control_flow()

        if ctx.options.use_context:
            batch = detect_batch_method(ctx.package, service, method, ctx.registry, ctx.options)
            if batch is not None:
                key_type, result_type = _batch_types(batch, ctx)
                block.add()
                block.add(f"@{abstract}")
                block.begin_control_flow(
                    f"def {batch.single_method_name}(self, ctx: Context, "
                    f"{batch.key_name}: {key_type}) -> {awaitable}[{result_type}]"
                )
                block.add("...")
                block.end_control_flow()

    if not (service.methods or source.description.text):
        block.add("pass")
    block.end_control_flow()
    return block


def _regular_method(
    service: ServiceDescriptor, method: MethodDescriptor, ctx: FileContext
) -> CodeBlock:
    request = ctx.lookup(method.input_type)
    response = ctx.lookup(method.output_type)
    ctx_arg = "ctx, " if ctx.options.use_context else ""

    block = CodeBlock()
    block.begin_control_flow(
        f"async def {method.name}(self, {_ctx_param(ctx)}request: {request}) -> {response}"
    )
    block.add("data = request.encode().finish()")
    block.add(
        f'response = await self.rpc.request({ctx_arg}"{service_name(ctx.package, service)}", '
        f'"{method.name}", data)'
    )
    block.add(f"return {response}.decode({ctx.runtime('Reader')}(response))")
    block.end_control_flow()
    return block


def _data_loader(identifier: str, key: str, ctx: FileContext) -> str:
    data_loader = ctx.runtime("DataLoader")
    return (
        f'loader = ctx.get_data_loader(\n    "{identifier}",\n'
        f"    lambda: {data_loader}(load, get_cache_key={ctx.runtime('cache_key')}, "
        f"**ctx.rpc_data_loader_options),\n)\n"
        f"return loader.load({key})"
    )


def _batching_method(batch: BatchMethod, ctx: FileContext) -> CodeBlock:
    key_type, result_type = _batch_types(batch, ctx)
    ids = batch.input_field.attr
    output = batch.output_field.attr
    request = ctx.lookup(batch.method.input_type)
    future = f"{ctx.stdlib_module('asyncio')}.Future"

    block = CodeBlock()
    block.begin_control_flow(
        f"def {batch.single_method_name}(self, ctx: Context, {batch.key_name}: {key_type}) "
        f"-> {future}[{result_type}]"
    )
    block.begin_control_flow(f"async def load(keys: list[{key_type}]) -> list[{result_type}]")
    block.add(f"response = await self.{batch.method.name}(ctx, {request}({ids}=keys))")
    if batch.map_response:
        block.add(f"return [response.{output}.get(key) for key in keys]")
    else:
        # assumes the response lists results in request order
        block.add(f"return response.{output}")
    block.end_control_flow()
    block.add()
    block.add(_data_loader(batch.unique_identifier, batch.key_name, ctx))
    block.end_control_flow()
    return block


def _caching_method(
    service: ServiceDescriptor, method: MethodDescriptor, ctx: FileContext
) -> CodeBlock:
    request = ctx.lookup(method.input_type)
    response = ctx.lookup(method.output_type)
    future = f"{ctx.stdlib_module('asyncio')}.Future"
    name = service_name(ctx.package, service)

    block = CodeBlock()
    block.begin_control_flow(
        f"def {method.name}(self, ctx: Context, request: {request}) -> {future}[{response}]"
    )
    block.begin_control_flow(f"async def load(requests: list[{request}]) -> list[{response}]")
    block.begin_control_flow(f"async def call(request: {request}) -> {response}")
    block.add("data = request.encode().finish()")
    block.add(f'response = await self.rpc.request(ctx, "{name}", "{method.name}", data)')
    block.add(f"return {response}.decode({ctx.runtime('Reader')}(response))")
    block.end_control_flow()
    block.add()
    block.add(
        f"return list(await {ctx.stdlib_module('asyncio')}.gather(*(call(r) for r in requests)))"
    )
    block.end_control_flow()
    block.add()
    block.add(_data_loader(f"{name}.{method.name}", "request", ctx))
    block.end_control_flow()
    return block


def generate_client(service: ServiceDescriptor, ctx: FileContext) -> CodeBlock:
    """``<Service>ClientImpl`` sending encoded requests through an ``Rpc``."""
    use_context = ctx.options.use_context
    base = f"{service.name}[Context]" if use_context else service.name
    rpc = "Rpc[Context]" if use_context else "Rpc"

    block = CodeBlock()
    block.begin_control_flow(f"class {service.name}ClientImpl({base})")
    block.begin_control_flow(f"def __init__(self, rpc: {rpc}) -> None")
    block.add("self.rpc = rpc")
    block.end_control_flow()

    for method in service.methods:
        _check_unary(service, method)
        if use_context:
            batch = detect_batch_method(ctx.package, service, method, ctx.registry, ctx.options)
            if batch is not None:
                block.add()
                block.add_block(_batching_method(batch, ctx))
        block.add()
        if use_context and is_cacheable(method):
            block.add_block(_caching_method(service, method, ctx))
        else:
            block.add_block(_regular_method(service, method, ctx))

    block.end_control_flow()
    return block


def generate_support(ctx: FileContext) -> list[CodeBlock]:
    """Protocols and type variables the services of a unit refer to."""
    blocks: list[CodeBlock] = []
    protocol = ctx.stdlib("typing", "Protocol")
    type_var = ctx.stdlib("typing", "TypeVar")
    awaitable = ctx.stdlib("collections.abc", "Awaitable")

    if ctx.options.use_context:
        any_ = ctx.stdlib("typing", "Any")
        callable_ = ctx.stdlib("collections.abc", "Callable")
        blocks.append(CodeBlock().add(f'T = {type_var}("T")'))

        loaders = CodeBlock()
        loaders.begin_control_flow(f"class DataLoaders({protocol})")
        loaders.add(f"rpc_data_loader_options: dict[str, {any_}]")
        loaders.add()
        loaders.begin_control_flow(
            f"def get_data_loader(self, identifier: str, constructor_fn: {callable_}[[], T]) -> T"
        )
        loaders.add("...")
        loaders.end_control_flow()
        loaders.end_control_flow()
        blocks.append(loaders)
        blocks.append(CodeBlock().add(f'Context = {type_var}("Context", bound=DataLoaders)'))

    if ctx.options.emit_client:
        rpc = CodeBlock()
        if ctx.options.use_context:
            rpc.begin_control_flow(f"class Rpc({protocol}[Context])")
            rpc.begin_control_flow(
                "def request(self, ctx: Context, service: str, method: str, data: bytes) "
                f"-> {awaitable}[bytes]"
            )
        else:
            rpc.begin_control_flow(f"class Rpc({protocol})")
            rpc.begin_control_flow(
                f"def request(self, service: str, method: str, data: bytes) -> {awaitable}[bytes]"
            )
        rpc.add("...")
        rpc.end_control_flow()
        rpc.end_control_flow()
        blocks.append(rpc)

    return blocks
