#!/usr/bin/env python3
"""Security & PII gate for src/wabakit.

Fails if:
- print( is found in library code
- a logger call passes anything besides a constant message string
  (no f-strings, no %-args: webhook values must not reach log text)
- a logger call passes extra= whose "extra_fields" is not built by
  safe_log_context(...)

Usage:
    python scripts/gate_security_pii.py [SRC_DIR]
"""

import ast
import sys
from pathlib import Path

LOG_METHODS = {"debug", "info", "warning", "error", "critical", "exception"}


def _is_logger_call(node: ast.Call) -> bool:
    func = node.func
    return (
        isinstance(func, ast.Attribute)
        and func.attr in LOG_METHODS
        and isinstance(func.value, ast.Name)
        and func.value.id == "logger"
    )


def _is_safe_context(node: ast.expr) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == "safe_log_context"
    )


def _check_logger_call(node: ast.Call) -> list[str]:
    problems = []

    if len(node.args) != 1 or not (
        isinstance(node.args[0], ast.Constant) and isinstance(node.args[0].value, str)
    ):
        problems.append("log message must be a single constant string")

    for keyword in node.keywords:
        if keyword.arg != "extra":
            continue
        extra = keyword.value
        if not isinstance(extra, ast.Dict):
            problems.append("extra= must be a dict literal")
            continue
        for key, value in zip(extra.keys, extra.values):
            is_fields_key = isinstance(key, ast.Constant) and key.value == "extra_fields"
            if not is_fields_key or not _is_safe_context(value):
                problems.append('extra= must be {"extra_fields": safe_log_context(...)}')

    return problems


def check_file(filepath: Path) -> list[str]:
    """Check a single file for violations. Returns list of error messages."""
    try:
        tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))
    except (UnicodeDecodeError, SyntaxError) as e:
        return [f"{filepath}: cannot parse ({e.__class__.__name__})"]

    errors = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        if isinstance(node.func, ast.Name) and node.func.id == "print":
            errors.append(f"{filepath}:{node.lineno}: print() not allowed in library code")
        elif _is_logger_call(node):
            for problem in _check_logger_call(node):
                errors.append(f"{filepath}:{node.lineno}: {problem}")

    return errors


def check_tree(src_dir: Path) -> list[str]:
    all_errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))
    return all_errors


def main(argv: list[str]) -> int:
    src_dir = Path(argv[1]) if len(argv) > 1 else Path(__file__).parent.parent / "src"

    if not src_dir.exists():
        sys.stderr.write(f"Error: {src_dir} not found\n")
        return 1

    all_errors = check_tree(src_dir)
    if all_errors:
        sys.stderr.write("PII gate FAILED:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate PASSED\n")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
