"""
Algorithm compiler for Snake Arena.

Turns submitted Python source into a decision function. The source is
parsed and checked against a small set of sandbox rules, then executed in
a fresh module namespace whose only capabilities are a curated builtins
table, `math`, and the grid `utils` namespace.

This is a cooperative sandbox for moderately trusted code running
in-process, not a security boundary: there is no CPU or memory isolation
beyond the engine's per-tick wall-clock check.
"""

from __future__ import annotations

import ast
import logging
import math
from typing import Any, Optional

from snakearena.core.errors import CompilationError, SandboxViolationError
from snakearena.core.types import DecisionFunction
from snakearena.utils.grid import GRID_SIZE, MAX_PATH_NODES, make_utils

logger = logging.getLogger(__name__)


ENTRYPOINT = "algorithm"

# Matches the leaderboard's 100KB submission limit
MAX_SOURCE_LENGTH = 100_000

DISALLOWED_NAMES = {
    "__import__",
    "breakpoint",
    "compile",
    "delattr",
    "eval",
    "exec",
    "getattr",
    "globals",
    "input",
    "locals",
    "open",
    "setattr",
    "vars",
}

DISALLOWED_NODE_TYPES = (
    ast.AsyncFor,
    ast.AsyncFunctionDef,
    ast.AsyncWith,
    ast.Await,
    ast.ClassDef,
    ast.Import,
    ast.ImportFrom,
)

ALLOWED_BUILTINS: dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "divmod": divmod,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "frozenset": frozenset,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "pow": pow,
    "range": range,
    "reversed": reversed,
    "round": round,
    "set": set,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
    "Exception": Exception,
    "IndexError": IndexError,
    "KeyError": KeyError,
    "RuntimeError": RuntimeError,
    "TypeError": TypeError,
    "ValueError": ValueError,
}


# ---------------------------------------------------------------------------
# Static validation
# ---------------------------------------------------------------------------

class SourceValidator(ast.NodeVisitor):
    """Reject imports, dunder access and reflective builtins."""

    def validate(self, tree: ast.AST) -> None:
        self.visit(tree)

    def _reject(self, node: ast.AST, reason: str) -> None:
        line = getattr(node, "lineno", "?")
        raise SandboxViolationError(f"Disallowed syntax: {reason} (line {line})")

    def generic_visit(self, node: ast.AST) -> None:
        if isinstance(node, DISALLOWED_NODE_TYPES):
            self._reject(node, node.__class__.__name__)

        if isinstance(node, ast.Attribute) and node.attr.startswith("__"):
            self._reject(node, f"dunder attribute '{node.attr}'")

        if isinstance(node, ast.Name):
            if node.id.startswith("__"):
                self._reject(node, f"dunder name '{node.id}'")
            if node.id in DISALLOWED_NAMES:
                self._reject(node, f"forbidden name '{node.id}'")

        if isinstance(node, ast.FunctionDef):
            if node.name.startswith("__") or node.name in DISALLOWED_NAMES:
                self._reject(node, f"function name '{node.name}'")

        if isinstance(node, ast.arg):
            if node.arg.startswith("__") or node.arg in DISALLOWED_NAMES:
                self._reject(node, f"argument name '{node.arg}'")

        super().generic_visit(node)


def validate_source(source: str) -> ast.Module:
    """
    Parse and statically check algorithm source.

    Args:
        source: Python source expected to define `algorithm(ctx)`.

    Returns:
        The parsed module.

    Raises:
        CompilationError: If the source is empty, too long or has a syntax error.
        SandboxViolationError: If the source breaks a sandbox rule.
    """
    if not isinstance(source, str) or not source.strip():
        raise CompilationError("Compilation error: no source code provided")
    if len(source) > MAX_SOURCE_LENGTH:
        raise CompilationError(
            f"Compilation error: source is {len(source)} characters, "
            f"maximum is {MAX_SOURCE_LENGTH}"
        )

    try:
        tree = ast.parse(source, filename="<algorithm>", mode="exec")
    except SyntaxError as exc:
        raise CompilationError(
            f"Compilation error: {exc.msg} (line {exc.lineno})"
        ) from exc

    SourceValidator().validate(tree)
    return tree


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def build_restricted_globals(
    grid_size: int = GRID_SIZE,
    max_path_nodes: int = MAX_PATH_NODES,
) -> dict[str, Any]:
    """Fresh module namespace for one compiled algorithm."""
    return {
        "__builtins__": dict(ALLOWED_BUILTINS),
        "__name__": "algorithm",
        "math": math,
        "utils": make_utils(grid_size, max_path_nodes),
    }


def compile_algorithm(
    source: str,
    grid_size: int = GRID_SIZE,
    max_path_nodes: int = MAX_PATH_NODES,
) -> DecisionFunction:
    """
    Compile algorithm source into a decision function.

    The source runs once, at compile time, in its own namespace. Anything
    it defines at module level stays reachable from `algorithm` between
    ticks.

    Args:
        source: Python source defining `algorithm(ctx)`.
        grid_size: Grid size the `utils` helpers are bound to.
        max_path_nodes: Visit budget for `utils.find_path`.

    Returns:
        The `algorithm` callable.

    Raises:
        CompilationError: On any failure before a callable is obtained.
    """
    tree = validate_source(source)

    namespace = build_restricted_globals(grid_size, max_path_nodes)
    try:
        code = compile(tree, filename="<algorithm>", mode="exec")
        exec(code, namespace)
    except Exception as exc:
        raise CompilationError(f"Compilation error: {exc}") from exc

    fn: Optional[Any] = namespace.get(ENTRYPOINT)
    if not callable(fn):
        raise CompilationError(
            f'Compilation error: code must define an "{ENTRYPOINT}" function'
        )

    logger.debug("Compiled algorithm (%d chars)", len(source))
    return fn
