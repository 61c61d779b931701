"""Runtime support imported by protolite generated code."""

from .runtime import DataLoader as DataLoader
from .runtime import DataLoaderContext as DataLoaderContext
from .runtime import cache_key as cache_key
from .serialization import Message as Message
from .serialization import ProtoEnum as ProtoEnum
from .serialization import Reader as Reader
from .serialization import SerializationError as SerializationError
from .serialization import WireType as WireType
from .serialization import Writer as Writer
from .serialization import base64_from_bytes as base64_from_bytes
from .serialization import bytes_from_base64 as bytes_from_base64
from .types import Long as Long
