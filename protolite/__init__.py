"""Protolite - protobuf code generator producing Python dataclasses and RPC clients."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("protolite")
except PackageNotFoundError:
    __version__ = "(local)"
