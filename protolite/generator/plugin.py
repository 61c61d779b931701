"""protoc plugin entry point.

Reads a ``CodeGeneratorRequest`` from stdin and writes a
``CodeGeneratorResponse`` to stdout. Invoked by protoc as
``protoc --protolite_out=context=true:out/ foo.proto``.
"""

import logging
import os
import sys

from google.protobuf.compiler import plugin_pb2

from . import logs
from .errors import GeneratorError
from .options import options_from_parameter
from .python import generate_files
from .request import files_from_request

_LOG = logging.getLogger(__name__)


def process_proto_request(
    req: plugin_pb2.CodeGeneratorRequest, res: plugin_pb2.CodeGeneratorResponse
) -> bool:
    """Generate a unit for every file of ``req`` into ``res``.

    Either every unit is added or, on failure, none is and ``res.error``
    describes the problem.
    """
    try:
        options = options_from_parameter(req.parameter)
        generated = generate_files(files_from_request(req), options)
    except GeneratorError as e:
        _LOG.error("%s", e)
        res.error = str(e)
        return False

    for output_file in generated:
        fd = res.file.add()
        fd.name = output_file.name
        fd.content = output_file.content
    _LOG.debug("Generated %d file(s)", len(generated))
    return True


def main() -> int:
    """Protobuf compiler plugin entrypoint."""
    logs.install(os.environ.get("PROTOLITE_LOG_LEVEL", "WARNING").upper())

    data = sys.stdin.buffer.read()
    request = plugin_pb2.CodeGeneratorRequest.FromString(data)
    response = plugin_pb2.CodeGeneratorResponse()

    # proto3 optional fields are generated as presence-tracked members
    response.supported_features |= response.FEATURE_PROTO3_OPTIONAL

    process_proto_request(request, response)

    # protoc reports response.error itself, so the exit status stays 0
    sys.stdout.buffer.write(response.SerializeToString())
    return 0


if __name__ == "__main__":
    sys.exit(main())
