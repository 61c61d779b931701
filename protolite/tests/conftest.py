"""Unit tests configuration file."""

import sys
import types

import pytest
from google.protobuf import descriptor_pb2, text_format

from protolite.generator import file_from_proto, generate_files, options_from_parameter
from protolite.generator.types import FileDescriptor


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


def parse_proto(text: str) -> descriptor_pb2.FileDescriptorProto:
    return text_format.Parse(text, descriptor_pb2.FileDescriptorProto())


@pytest.fixture
def parse_file():
    """Build a FileDescriptor from FileDescriptorProto text format."""

    def _parse(text: str) -> FileDescriptor:
        return file_from_proto(parse_proto(text))

    return _parse


@pytest.fixture
def generate(monkeypatch):
    """Generate and import units for descriptors given in text format.

    Units are registered in sys.modules under their dotted path for the
    duration of the test so they can import each other. Dependencies must
    come first.
    """

    def _generate(*texts: str, parameter: str = "") -> dict[str, types.ModuleType]:
        files = [file_from_proto(parse_proto(text)) for text in texts]
        modules = {}
        for generated in generate_files(files, options_from_parameter(parameter)):
            name = generated.name.removesuffix(".py").replace("/", ".")
            module = types.ModuleType(name)
            monkeypatch.setitem(sys.modules, name, module)
            exec(compile(generated.content, generated.name, "exec"), module.__dict__)
            modules[name] = module
        return modules

    return _generate


@pytest.fixture
def render(parse_file):
    """Return the generated source of each file, keyed by output name."""

    def _render(*texts: str, parameter: str = "") -> dict[str, str]:
        files = [parse_file(text) for text in texts]
        return {g.name: g.content for g in generate_files(files, options_from_parameter(parameter))}

    return _render
