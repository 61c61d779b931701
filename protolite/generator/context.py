"""Per-unit naming and import state."""

from dataclasses import dataclass, field

from .options import GenerationOptions
from .registry import TypeEntry, TypeRegistry
from .types import FileDescriptor

_MAX_LINE = 100


@dataclass
class _Imports:
    modules: set[str] = field(default_factory=set)
    names: dict[str, dict[str, str]] = field(default_factory=dict)

    def add(self, module: str, name: str, alias: str) -> None:
        self.names.setdefault(module, {})[name] = alias

    def lines(self) -> list[str]:
        lines = [f"import {module}" for module in sorted(self.modules)]
        for module in sorted(self.names):
            names = [
                name if name == alias else f"{name} as {alias}"
                for name, alias in sorted(self.names[module].items())
            ]
            line = f"from {module} import {', '.join(names)}"
            if len(line) > _MAX_LINE:
                line = f"from {module} import (\n" + "".join(f"    {n},\n" for n in names) + ")"
            lines.append(line)
        return lines


class FileContext:
    """Tracks which names one generated unit uses.

    Generators ask the context for every name that lives outside the unit
    (stdlib, runtime library, types of other units, helper functions). The
    context records the import or helper and hands back the local name,
    aliasing it when it would shadow a type declared in the unit.
    """

    def __init__(
        self, file: FileDescriptor, registry: TypeRegistry, options: GenerationOptions
    ) -> None:
        self.file = file
        self.registry = registry
        self.options = options
        self.used_helpers: set[str] = set()
        self._local_names = {e.name for e in registry if e.module == file.module_path}
        self._bound: dict[str, tuple[str, str]] = {}
        self._stdlib = _Imports()
        self._runtime = _Imports()
        self._generated = _Imports()

    @property
    def package(self) -> str:
        return self.file.package

    def _bind(self, module: str, name: str, alias: str) -> str:
        """Reserve a local name for ``module.name``, suffixing it until free."""
        while alias in self._local_names or self._bound.get(alias, (module, name)) != (
            module,
            name,
        ):
            alias = f"{alias}_"
        self._bound[alias] = (module, name)
        return alias

    def stdlib_module(self, module: str) -> str:
        self._stdlib.modules.add(module)
        return module

    def stdlib(self, module: str, name: str) -> str:
        alias = self._bind(module, name, name)
        self._stdlib.add(module, name, alias)
        return alias

    def runtime(self, name: str) -> str:
        module = self.options.runtime_import
        alias = self._bind(module, name, name)
        self._runtime.add(module, name, alias)
        return alias

    def helper(self, name: str) -> str:
        self.used_helpers.add(name)
        return name

    def type_name(self, entry: TypeEntry) -> str:
        """Local name of a registered type, importing it from its unit if needed."""
        if entry.module == self.file.module_path:
            return entry.name
        for alias, bound in self._bound.items():
            if bound == (entry.import_path, entry.name):
                return alias
        preferred = entry.name
        if preferred in self._bound or preferred in self._local_names:
            preferred = f"{entry.import_path.replace('.', '_')}_{entry.name}"
        alias = self._bind(entry.import_path, entry.name, preferred)
        self._generated.add(entry.import_path, entry.name, alias)
        return alias

    def lookup(self, schema_name: str) -> str:
        return self.type_name(self.registry.lookup(schema_name))

    def import_groups(self) -> list[list[str]]:
        groups = [self._stdlib.lines(), self._runtime.lines(), self._generated.lines()]
        return [group for group in groups if group]
