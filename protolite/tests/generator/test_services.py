"""Tests for service interfaces, RPC clients and the batching heuristics"""

import asyncio

from pytest import raises

from protolite.generator import GenerationOptions, TypeRegistry, UnsupportedError
from protolite.generator.services import (
    companion_name,
    detect_batch_method,
    is_cacheable,
    singular,
)
from protolite.proto import DataLoaderContext

WIDGETS = """
name: "shop/widgets.proto"
package: "shop"
syntax: "proto3"
message_type {
  name: "Widget"
  field { name: "id" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
  field { name: "size" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
}
message_type {
  name: "BatchGetWidgetsRequest"
  field { name: "ids" number: 1 label: LABEL_REPEATED type: TYPE_STRING }
}
message_type {
  name: "BatchGetWidgetsResponse"
  field { name: "widgets" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".shop.Widget" }
}
message_type {
  name: "BatchGetTagsResponse"
  field {
    name: "tags" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE
    type_name: ".shop.BatchGetTagsResponse.TagsEntry"
  }
  nested_type {
    name: "TagsEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
    options { map_entry: true }
  }
}
message_type {
  name: "UpdateRequest"
  field { name: "ids" number: 1 label: LABEL_REPEATED type: TYPE_STRING }
  field { name: "note" number: 2 label: LABEL_OPTIONAL type: TYPE_STRING }
}
message_type {
  name: "InventoryRequest"
  field { name: "sku" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
}
message_type {
  name: "Inventory"
  field { name: "count" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
}
service {
  name: "Widgets"
  method {
    name: "BatchGetWidgets"
    input_type: ".shop.BatchGetWidgetsRequest"
    output_type: ".shop.BatchGetWidgetsResponse"
  }
  method {
    name: "BatchGetTags"
    input_type: ".shop.BatchGetWidgetsRequest"
    output_type: ".shop.BatchGetTagsResponse"
  }
  method {
    name: "BatchUpdate"
    input_type: ".shop.UpdateRequest"
    output_type: ".shop.BatchGetWidgetsResponse"
  }
  method { name: "GetInventory" input_type: ".shop.InventoryRequest" output_type: ".shop.Inventory" }
  method { name: "CreateWidget" input_type: ".shop.Widget" output_type: ".shop.Widget" }
}
source_code_info {
  location { path: [6, 0] leading_comments: " Widget storage.\\n" }
  location { path: [6, 0, 2, 4] leading_comments: " Stores a widget.\\n" }
}
"""

STREAMING = """
name: "shop/feed.proto"
package: "shop"
syntax: "proto3"
message_type { name: "Tick" }
service {
  name: "Feed"
  method { name: "Watch" input_type: ".shop.Tick" output_type: ".shop.Tick" server_streaming: true }
}
"""

LOADS = """
name: "shop/loads.proto"
package: "shop"
syntax: "proto3"
message_type {
  name: "Item"
  field { name: "name" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
}
message_type {
  name: "BatchGetItemsRequest"
  field { name: "loads" number: 1 label: LABEL_REPEATED type: TYPE_STRING }
}
message_type {
  name: "BatchGetItemsResponse"
  field { name: "items" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".shop.Item" }
}
service {
  name: "Items"
  method {
    name: "BatchGetItems"
    input_type: ".shop.BatchGetItemsRequest"
    output_type: ".shop.BatchGetItemsResponse"
  }
}
"""


class FakeRpc:
    """Transport answering widget RPCs from the request content."""

    def __init__(self, mod, context=True):
        self.mod = mod
        self.context = context
        self.calls = []

    async def _respond(self, service, method, data):
        mod = self.mod
        self.calls.append((service, method))
        if method == "BatchGetWidgets":
            ids = mod.BatchGetWidgetsRequest.decode(data).ids
            response = mod.BatchGetWidgetsResponse(
                widgets=[mod.Widget(id=i, size=len(i)) for i in ids]
            )
        elif method == "BatchGetTags":
            ids = mod.BatchGetWidgetsRequest.decode(data).ids
            response = mod.BatchGetTagsResponse(tags={i: len(i) for i in reversed(ids) if i})
        elif method == "GetInventory":
            request = mod.InventoryRequest.decode(data)
            response = mod.Inventory(count=len(request.sku))
        else:
            response = mod.Widget.decode(data)
        return response.encode().finish()

    def request(self, *args):
        if self.context:
            args = args[1:]
        return self._respond(*args)


def widgets(generate, parameter="context=true"):
    return generate(WIDGETS, parameter=parameter)["shop.widgets"]


def detect(parse_file, name):
    file = parse_file(WIDGETS)
    options = GenerationOptions(use_context=True)
    registry = TypeRegistry.build([file], options)
    service = file.services[0]
    method = next(m for m in service.methods if m.name == name)
    return detect_batch_method(file.package, service, method, registry, options)


def describe_batch_detection():
    def detects_list_batches(expect, parse_file):
        batch = detect(parse_file, "BatchGetWidgets")

        expect(batch.single_method_name) == "GetWidget"
        expect(batch.key_name) == "id"
        expect(batch.unique_identifier) == "shop.Widgets.BatchGetWidgets"
        expect(batch.map_response) == False

    def detects_map_batches(expect, parse_file):
        batch = detect(parse_file, "BatchGetTags")

        expect(batch.single_method_name) == "GetTag"
        expect(batch.map_response) == True

    def ignores_requests_with_more_fields(expect, parse_file):
        expect(detect(parse_file, "BatchUpdate")) == None

    def ignores_methods_without_the_prefix(expect, parse_file):
        expect(detect(parse_file, "CreateWidget")) == None

    def ignores_batches_whose_companion_exists(expect, parse_file):
        renamed = WIDGETS.replace('name: "CreateWidget"', 'name: "GetWidget"')
        file = parse_file(renamed)
        options = GenerationOptions(use_context=True)
        registry = TypeRegistry.build([file], options)
        service = file.services[0]

        expect(
            detect_batch_method(file.package, service, service.methods[0], registry, options)
        ) == None


def describe_naming():
    def derives_companion_names(expect):
        expect(companion_name("BatchGetWidgets")) == "GetWidget"
        expect(companion_name("BatchWidgets")) == "GetWidget"
        expect(singular("ids")) == "id"
        expect(singular("s")) == "s"
        expect(singular("data")) == "data"

    def recognizes_cacheable_methods(expect, parse_file):
        methods = {m.name: m for m in parse_file(WIDGETS).services[0].methods}

        expect(is_cacheable(methods["GetInventory"])) == True
        expect(is_cacheable(methods["CreateWidget"])) == False
        expect(is_cacheable(methods["BatchGetWidgets"])) == False


def describe_service_declarations():
    def declares_an_abstract_interface(expect, generate):
        mod = widgets(generate)

        expect(sorted(mod.Widgets.__abstractmethods__)) == [
            "BatchGetTags",
            "BatchGetWidgets",
            "BatchUpdate",
            "CreateWidget",
            "GetInventory",
            "GetTag",
            "GetWidget",
        ]
        expect(mod.Widgets.__doc__) == "Widget storage."
        expect(mod.Widgets.CreateWidget.__doc__) == "Stores a widget."

    def types_batch_accessors_as_futures(expect, render):
        content = render(WIDGETS, parameter="context=true")["shop/widgets.py"]

        expect(
            "    def GetWidget(self, ctx: Context, id: str) -> asyncio.Future[Widget]:\n" in content
        ) == True
        expect("    def GetTag(self, ctx: Context, id: str) -> asyncio.Future[int]:\n" in content) == True
        expect('            "shop.Widgets.BatchGetWidgets",\n' in content) == True
        expect("class Rpc(Protocol[Context]):\n" in content) == True

    def omits_context_plumbing_by_default(expect, generate, render):
        content = render(WIDGETS)["shop/widgets.py"]
        mod = widgets(generate, parameter="")

        expect("DataLoader" in content) == False
        expect("class Rpc(Protocol):\n" in content) == True
        expect(hasattr(mod.WidgetsClientImpl, "GetWidget")) == False

    def can_leave_out_the_client(expect, render):
        content = render(WIDGETS, parameter="outputClientImpl=false")["shop/widgets.py"]

        expect("class Widgets(ABC):" in content) == True
        expect("ClientImpl" in content) == False
        expect("class Rpc" in content) == False

    def refuses_streaming_methods(expect, render):
        with raises(UnsupportedError):
            render(STREAMING)


def describe_client():
    def sends_encoded_requests(expect, generate):
        mod = widgets(generate, parameter="")
        rpc = FakeRpc(mod, context=False)
        client = mod.WidgetsClientImpl(rpc)

        widget = asyncio.run(client.CreateWidget(mod.Widget(id="w", size=3)))
        expect(widget) == mod.Widget(id="w", size=3)
        expect(rpc.calls) == [("shop.Widgets", "CreateWidget")]

    def threads_the_context_through(expect, generate):
        mod = widgets(generate)
        rpc = FakeRpc(mod)
        client = mod.WidgetsClientImpl(rpc)

        widget = asyncio.run(client.CreateWidget(DataLoaderContext(), mod.Widget(id="w")))
        expect(widget) == mod.Widget(id="w")

    def batches_singular_calls_in_one_tick(expect, generate):
        mod = widgets(generate)
        rpc = FakeRpc(mod)
        client = mod.WidgetsClientImpl(rpc)

        async def run():
            ctx = DataLoaderContext()
            return await asyncio.gather(client.GetWidget(ctx, "a"), client.GetWidget(ctx, "bb"))

        expect(asyncio.run(run())) == [mod.Widget(id="a", size=1), mod.Widget(id="bb", size=2)]
        expect(rpc.calls) == [("shop.Widgets", "BatchGetWidgets")]

    def looks_up_map_results_by_key(expect, generate):
        mod = widgets(generate)
        rpc = FakeRpc(mod)
        client = mod.WidgetsClientImpl(rpc)

        async def run():
            ctx = DataLoaderContext()
            return await asyncio.gather(
                client.GetTag(ctx, "a"), client.GetTag(ctx, "ccc"), client.GetTag(ctx, "")
            )

        expect(asyncio.run(run())) == [1, 3, None]
        expect(rpc.calls) == [("shop.Widgets", "BatchGetTags")]

    def applies_data_loader_options_from_the_context(expect, generate):
        mod = widgets(generate)
        rpc = FakeRpc(mod)
        client = mod.WidgetsClientImpl(rpc)

        async def run():
            ctx = DataLoaderContext(max_batch_size=1)
            return await asyncio.gather(client.GetWidget(ctx, "a"), client.GetWidget(ctx, "b"))

        asyncio.run(run())
        expect(len(rpc.calls)) == 2

    def dedupes_identical_get_requests(expect, generate):
        mod = widgets(generate)
        rpc = FakeRpc(mod)
        client = mod.WidgetsClientImpl(rpc)

        async def run():
            ctx = DataLoaderContext()
            return await asyncio.gather(
                client.GetInventory(ctx, mod.InventoryRequest(sku="abc")),
                client.GetInventory(ctx, mod.InventoryRequest(sku="abc")),
                client.GetInventory(ctx, mod.InventoryRequest(sku="z")),
            )

        expect(asyncio.run(run())) == [
            mod.Inventory(count=3),
            mod.Inventory(count=3),
            mod.Inventory(count=1),
        ]
        expect(rpc.calls) == [("shop.Widgets", "GetInventory")] * 2

    def keeps_loaders_per_context(expect, generate):
        mod = widgets(generate)
        rpc = FakeRpc(mod)
        client = mod.WidgetsClientImpl(rpc)

        async def run():
            first, second = DataLoaderContext(), DataLoaderContext()
            await asyncio.gather(client.GetWidget(first, "a"), client.GetWidget(second, "a"))

        asyncio.run(run())
        expect(len(rpc.calls)) == 2

    def keeps_key_names_apart_from_generated_locals(expect, generate, render):
        mod = generate(LOADS, parameter="context=true")["shop.loads"]
        content = render(LOADS, parameter="context=true")["shop/loads.py"]

        class EchoRpc:
            async def request(self, ctx, service, method, data):
                names = mod.BatchGetItemsRequest.decode(data).loads
                response = mod.BatchGetItemsResponse(items=[mod.Item(name=n) for n in names])
                return response.encode().finish()

        client = mod.ItemsClientImpl(EchoRpc())

        async def run():
            ctx = DataLoaderContext()
            return await asyncio.gather(client.GetItem(ctx, "a"), client.GetItem(ctx, "b"))

        expect("def GetItem(self, ctx: Context, load_: str)" in content) == True
        expect(asyncio.run(run())) == [mod.Item(name="a"), mod.Item(name="b")]
