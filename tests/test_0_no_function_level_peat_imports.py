"""Guard: no function-level `import peat` / `from peat... import` inside src/.

A function-level `import peat.x.y` shadows the module-level `peat`
binding for the ENTIRE enclosing function, causing UnboundLocalError on
any `peat.` reference that precedes the import statement. Function-level
`from peat...` imports hide import cycles the module graph should make
explicit.

This file is named with `test_0_` so it runs first.
"""

import ast
import os


_SRC_ROOT = os.path.join(os.path.dirname(__file__), "..", "src", "peat")


def _imported_module(node):
    if isinstance(node, ast.Import):
        return [alias.name for alias in node.names]
    if isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
        return [node.module]
    return []


def _find_function_level_peat_imports():
    """Walk all .py files and flag peat imports inside functions/methods."""
    violations = []
    for dirpath, _dirs, files in os.walk(_SRC_ROOT):
        for fname in files:
            if not fname.endswith(".py"):
                continue
            path = os.path.join(dirpath, fname)
            with open(path) as f:
                tree = ast.parse(f.read(), filename=path)

            rel = os.path.relpath(path, _SRC_ROOT)
            for node in ast.walk(tree):
                if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                    continue
                for child in ast.walk(node):
                    for name in _imported_module(child):
                        if name == "peat" or name.startswith("peat."):
                            violations.append(f"{rel}:{child.lineno} function-level import of {name}")
    return violations


def test_no_function_level_peat_imports():
    violations = _find_function_level_peat_imports()
    assert violations == [], (
        "Function-level peat imports shadow the module binding or hide "
        "cycles. Move these to module level:\n"
        + "\n".join(f"  {v}" for v in violations)
    )
