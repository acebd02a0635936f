"""Function sources: where target functions and their references come from.

The explainer never parses code itself; it asks a FunctionSource for the
target's source text and its resolved call references. ``InMemorySource`` is
the fake used in tests and by embedding hosts that already resolved
everything. ``PythonModuleSource`` is a small adapter for a single Python
file that resolves calls to functions defined in the same file.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Protocol

from llmexplain.errors import FunctionNotFound
from llmexplain.models import ResolvedReference, TargetFunction, reference_key

logger = logging.getLogger(__name__)

_FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


class FunctionSource(Protocol):
    """Supplies a target function and its resolved call references."""

    def get_function(self, name: str) -> TargetFunction: ...

    def get_references(self, name: str) -> Iterable[ResolvedReference]: ...


class InMemorySource:
    """FunctionSource backed by plain dicts.

    ``references`` maps a function name to ``(identifier, source)`` pairs in
    resolution order; duplicates are allowed and left to the collector.
    """

    def __init__(
        self,
        functions: Mapping[str, str],
        references: Mapping[str, Iterable[tuple[str, str]]] | None = None,
    ) -> None:
        self.functions = dict(functions)
        self.references = {k: list(v) for k, v in (references or {}).items()}

    def get_function(self, name: str) -> TargetFunction:
        if name not in self.functions:
            raise FunctionNotFound(name)
        return TargetFunction(name=name, source_text=self.functions[name])

    def get_references(self, name: str) -> list[ResolvedReference]:
        if name not in self.functions:
            raise FunctionNotFound(name)
        return [
            ResolvedReference(identifier, source)
            for identifier, source in self.references.get(name, [])
        ]


class PythonModuleSource:
    """FunctionSource for one Python file, using the stdlib ``ast`` module.

    Targets are addressed as ``func`` or ``Class.method``. Calls are resolved
    when the callee is a bare name of a module-level function or class, or
    ``self.<name>``/``cls.<name>`` of a method on the enclosing class.
    Anything else is left unresolved and skipped.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.file_name = self.path.name
        self.text = self.path.read_text(encoding="utf-8")
        self.tree = ast.parse(self.text, filename=str(self.path))
        self._functions: dict[str, _FunctionNode] = {}
        self._classes: dict[str, ast.ClassDef] = {}
        self._index()

    def _index(self) -> None:
        for node in self.tree.body:
            if isinstance(node, _FunctionNode):
                self._functions[node.name] = node
            elif isinstance(node, ast.ClassDef):
                self._classes[node.name] = node
                for item in node.body:
                    if isinstance(item, _FunctionNode):
                        self._functions[f"{node.name}.{item.name}"] = item

    @property
    def function_names(self) -> list[str]:
        return list(self._functions)

    def _segment(self, node: ast.AST) -> str:
        segment = ast.get_source_segment(self.text, node)
        return segment if segment is not None else ast.unparse(node)

    def _lookup(self, name: str) -> _FunctionNode:
        node = self._functions.get(name)
        if node is None:
            raise FunctionNotFound(name, str(self.path))
        return node

    def get_function(self, name: str) -> TargetFunction:
        node = self._lookup(name)
        return TargetFunction(name=name, source_text=self._segment(node))

    def get_references(self, name: str) -> Iterator[ResolvedReference]:
        node = self._lookup(name)
        owner = name.split(".", 1)[0] if "." in name else None

        calls = [n for n in ast.walk(node) if isinstance(n, ast.Call)]
        # ast.walk is breadth-first; order calls as they appear in the text
        calls.sort(key=lambda c: (c.lineno, c.col_offset))

        for call in calls:
            resolved = self._resolve(call.func, owner)
            if resolved is None:
                continue
            callee_name, target = resolved
            yield ResolvedReference(
                reference_key(self.file_name, callee_name),
                lambda target=target: self._segment(target),
            )

    def _resolve(self, func: ast.expr, owner: str | None) -> tuple[str, ast.AST] | None:
        if isinstance(func, ast.Name):
            if func.id in self._classes:
                return func.id, self._classes[func.id]
            target = self._functions.get(func.id)
            if target is not None:
                return func.id, target
            return None

        if (
            owner is not None
            and isinstance(func, ast.Attribute)
            and isinstance(func.value, ast.Name)
            and func.value.id in ("self", "cls")
        ):
            target = self._functions.get(f"{owner}.{func.attr}")
            if target is not None:
                return func.attr, target

        logger.debug(f"Unresolved call at line {func.lineno} in {self.file_name}")
        return None
