"""Protolite protobuf code generator."""

from .errors import GeneratorError as GeneratorError
from .errors import OptionError as OptionError
from .errors import TypeNotFoundError as TypeNotFoundError
from .errors import UnsupportedError as UnsupportedError
from .errors import ValidationError as ValidationError
from .options import GenerationOptions as GenerationOptions
from .options import LongOption as LongOption
from .options import options_from_parameter as options_from_parameter
from .python import GeneratedFile as GeneratedFile
from .python import generate_files as generate_files
from .registry import TypeRegistry as TypeRegistry
from .request import file_from_proto as file_from_proto
from .request import files_from_descriptor_set as files_from_descriptor_set
from .request import files_from_request as files_from_request
from .types import *
