"""
Unit tests for the algorithm compiler.

Tests cover:
- Compiling valid source into a callable
- Sandbox rules (imports, reflective builtins, dunder access, classes)
- Compilation failures (empty, too long, syntax error, missing entrypoint)
- Module-level state persisting between calls
- The utils and math namespaces available to algorithms
"""

import pytest

from snakearena.core.errors import CompilationError, SandboxViolationError
from snakearena.core.types import GameContext, Position
from snakearena.sandbox.builtin import TEMPLATE_SOURCE
from snakearena.sandbox.compiler import (
    MAX_SOURCE_LENGTH,
    compile_algorithm,
    validate_source,
)
from snakearena.utils.grid import ALL_DIRECTIONS


def make_ctx(frame: int = 1) -> GameContext:
    return GameContext(
        snake=[Position(0, 0, 0), Position(-1, 0, 0), Position(-2, 0, 0)],
        food=Position(3, 0, 0),
        score=0,
        frame=frame,
        grid_size=16,
    )


# ---------------------------------------------------------------------------
# Valid source
# ---------------------------------------------------------------------------

class TestCompileValid:
    def test_template_compiles(self):
        fn = compile_algorithm(TEMPLATE_SOURCE)
        assert callable(fn)

    def test_template_moves_toward_food(self):
        fn = compile_algorithm(TEMPLATE_SOURCE)
        assert tuple(fn(make_ctx())) == (1, 0, 0)

    def test_minimal_algorithm(self):
        fn = compile_algorithm("def algorithm(ctx):\n    return (0, 1, 0)\n")
        assert fn(make_ctx()) == (0, 1, 0)

    def test_module_level_state_persists(self):
        source = (
            "calls = []\n"
            "def algorithm(ctx):\n"
            "    calls.append(ctx.frame)\n"
            "    return len(calls)\n"
        )
        fn = compile_algorithm(source)
        assert fn(make_ctx(1)) == 1
        assert fn(make_ctx(2)) == 2

    def test_each_compile_gets_fresh_namespace(self):
        source = (
            "calls = []\n"
            "def algorithm(ctx):\n"
            "    calls.append(1)\n"
            "    return len(calls)\n"
        )
        a = compile_algorithm(source)
        b = compile_algorithm(source)
        a(make_ctx())
        a(make_ctx())
        assert b(make_ctx()) == 1

    def test_math_available(self):
        fn = compile_algorithm("def algorithm(ctx):\n    return math.floor(2.7)\n")
        assert fn(make_ctx()) == 2

    def test_utils_bound_to_grid_size(self):
        fn = compile_algorithm("def algorithm(ctx):\n    return utils.GRID_SIZE\n", grid_size=8)
        assert fn(make_ctx()) == 8

    def test_utils_directions(self):
        fn = compile_algorithm("def algorithm(ctx):\n    return utils.ALL_DIRECTIONS[0]\n")
        assert fn(make_ctx()) == ALL_DIRECTIONS[0]

    def test_print_unavailable_at_call_time(self):
        fn = compile_algorithm("def algorithm(ctx):\n    print(ctx)\n    return None\n")
        with pytest.raises(NameError):
            fn(make_ctx())


# ---------------------------------------------------------------------------
# Sandbox rules
# ---------------------------------------------------------------------------

class TestSandbox:
    @pytest.mark.parametrize("source", [
        "import os\ndef algorithm(ctx):\n    return None\n",
        "from os import path\ndef algorithm(ctx):\n    return None\n",
        "def algorithm(ctx):\n    return eval('1')\n",
        "def algorithm(ctx):\n    return open('/etc/passwd')\n",
        "def algorithm(ctx):\n    return __import__('os')\n",
        "def algorithm(ctx):\n    return ctx.__class__\n",
        "def algorithm(ctx):\n    return getattr(ctx, 'food')\n",
        "class A:\n    pass\ndef algorithm(ctx):\n    return None\n",
        "async def algorithm(ctx):\n    return None\n",
        "def algorithm(__ctx):\n    return None\n",
    ])
    def test_rejected(self, source):
        with pytest.raises(SandboxViolationError):
            compile_algorithm(source)

    def test_violation_is_compilation_error(self):
        with pytest.raises(CompilationError):
            compile_algorithm("import sys\n")

    def test_violation_reports_line(self):
        with pytest.raises(SandboxViolationError, match="line 3"):
            validate_source("x = 1\n\nimport os\n")


# ---------------------------------------------------------------------------
# Compilation failures
# ---------------------------------------------------------------------------

class TestCompileErrors:
    @pytest.mark.parametrize("source", ["", "   \n\t", None])
    def test_empty_source(self, source):
        with pytest.raises(CompilationError, match="no source code"):
            compile_algorithm(source)

    def test_too_long(self):
        source = "#" * (MAX_SOURCE_LENGTH + 1)
        with pytest.raises(CompilationError, match="maximum"):
            compile_algorithm(source)

    def test_syntax_error(self):
        with pytest.raises(CompilationError, match="Compilation error"):
            compile_algorithm("def algorithm(ctx)\n    return None\n")

    def test_missing_algorithm(self):
        with pytest.raises(CompilationError, match='"algorithm" function'):
            compile_algorithm("def solve(ctx):\n    return None\n")

    def test_non_callable_algorithm(self):
        with pytest.raises(CompilationError, match='"algorithm" function'):
            compile_algorithm("algorithm = 5\n")

    def test_module_level_runtime_error(self):
        with pytest.raises(CompilationError, match="division by zero"):
            compile_algorithm("x = 1 / 0\ndef algorithm(ctx):\n    return None\n")
