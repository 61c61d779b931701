"""Generator options and the protoc parameter string parser."""

import logging
import os
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from lark import Lark
from lark.exceptions import LarkError
from lark.visitors import Transformer

from .errors import OptionError

_LOG = logging.getLogger(__name__)

_g_parser: Lark | None = None


class LongOption(StrEnum):
    """How 64-bit integer fields are represented in generated code."""

    NUMBER = "number"  # plain int, range checked against 2**53
    LONG = "long"  # protolite.proto.Long
    STRING = "string"  # decimal str


@dataclass(frozen=True)
class GenerationOptions:
    """Options resolved once per generation run."""

    use_context: bool = False
    snake_to_camel: bool = True
    long_mode: LongOption = LongOption.NUMBER
    emit_binary_codec: bool = True
    emit_json_codec: bool = True
    emit_client: bool = True
    runtime_import: str = "protolite.proto"


_TRUE = frozenset(["true", "1", "yes"])
_FALSE = frozenset(["false", "0", "no"])

_BOOL_KEYS = {
    "context": "use_context",
    "snakeToCamel": "snake_to_camel",
    "outputEncodeMethods": "emit_binary_codec",
    "outputJsonMethods": "emit_json_codec",
    "outputClientImpl": "emit_client",
}

_LONG_VALUES = {
    "true": LongOption.LONG,
    "long": LongOption.LONG,
    "string": LongOption.STRING,
    "false": LongOption.NUMBER,
    "number": LongOption.NUMBER,
}


class ParameterTransformer(Transformer):
    """Transform the parameter parse tree into (key, value) pairs."""

    def param(self, args: list[Any]) -> tuple[str, str]:
        key = str(args[0])
        value = args[1] if len(args) > 1 else None
        return (key, "true" if value is None else str(value))

    def start(self, args: list[Any]) -> list[tuple[str, str]]:
        return [arg for arg in args if arg is not None]


def _parse_bool(key: str, value: str) -> bool:
    if value.lower() in _TRUE:
        return True
    if value.lower() in _FALSE:
        return False
    raise OptionError(f"{key} expects true or false, got {value!r}")


def parse_parameter(parameter: str) -> list[tuple[str, str]]:
    """Split a parameter string such as ``context=true,forceLong=long``."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/options.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, parser="lalr")

    try:
        tree = _g_parser.parse(parameter)
    except LarkError as e:
        raise OptionError(f"Malformed parameter string {parameter!r}: {e}") from e
    return ParameterTransformer().transform(tree)


def options_from_parameter(parameter: str | None) -> GenerationOptions:
    """Resolve ``GenerationOptions`` from a protoc parameter string."""
    options = GenerationOptions()
    if not parameter:
        return options

    for key, value in parse_parameter(parameter):
        if key in _BOOL_KEYS:
            options = replace(options, **{_BOOL_KEYS[key]: _parse_bool(key, value)})
        elif key == "forceLong":
            if value.lower() not in _LONG_VALUES:
                raise OptionError(f"forceLong expects long, string or number, got {value!r}")
            options = replace(options, long_mode=_LONG_VALUES[value.lower()])
        elif key == "runtimeImport":
            options = replace(options, runtime_import=value)
        else:
            _LOG.warning("Ignoring unknown parameter %s=%s", key, value)

    return options
