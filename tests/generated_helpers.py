from __future__ import annotations

import sys
import types


class GeneratedModules:
    """Execute generated source as real, importable modules.

    Dataclasses resolve string annotations through ``sys.modules``, so the
    generated code has to run inside a registered module rather than a
    bare namespace.
    """

    def __init__(self) -> None:
        self.names: list[str] = []

    def run(self, source: str) -> types.ModuleType:
        name = f"defew_generated_{len(self.names)}"
        module = types.ModuleType(name)
        sys.modules[name] = module
        self.names.append(name)
        exec(compile(source, f"<{name}>", "exec"), module.__dict__)
        return module

    def cleanup(self) -> None:
        for name in self.names:
            sys.modules.pop(name, None)
        self.names.clear()
