"""
Static validation of learner submissions.

Runs before a submission is handed to the sandbox executor and rejects code
that reaches for the filesystem, the network, other processes or the
interpreter internals. Learner exercises only ever need a handful of pure
modules, so imports are whitelisted.
"""

import ast
from dataclasses import dataclass
from typing import Set, List, Optional


class ValidationError(Exception):
    """Raised when a submission fails validation."""

    def __init__(self, message: str, violations: List[str]):
        self.message = message
        self.violations = violations
        super().__init__(f"{message}: {', '.join(violations)}")


@dataclass
class ValidationResult:
    """Result of code validation."""
    valid: bool
    violations: List[str]
    imports_used: Set[str]


# Modules that are NEVER allowed
FORBIDDEN_MODULES = frozenset({
    # System access
    "os", "sys", "subprocess", "shutil", "pathlib",
    "glob", "tempfile", "io", "fileinput",

    # Network
    "socket", "http", "urllib", "requests", "httpx",
    "ssl", "ftplib", "smtplib",

    # Processes and threads
    "multiprocessing", "threading", "concurrent",
    "_thread", "signal", "asyncio",

    # Code execution and introspection
    "code", "codeop", "importlib", "runpy", "builtins",
    "inspect", "gc", "ctypes", "pickle", "marshal",
})

# Modules a learner exercise may import
ALLOWED_MODULES = frozenset({
    "math", "random", "statistics", "decimal", "fractions",
    "string", "re", "textwrap",
    "collections", "itertools", "functools", "operator",
    "datetime", "json", "dataclasses", "enum", "typing",
})

# Builtins that escape the sandbox or block on input
FORBIDDEN_BUILTINS = frozenset({
    "eval", "exec", "compile", "__import__",
    "open", "input", "breakpoint", "help",
    "globals", "locals", "vars",
    "getattr", "setattr", "delattr",
})

FORBIDDEN_ATTRIBUTES = frozenset({
    "__class__", "__bases__", "__subclasses__",
    "__mro__", "__globals__", "__code__",
    "__builtins__", "__import__", "__loader__",
    "__dict__",
})


class CodeValidator:
    """
    Validates a submission with an AST walk.

    The sandbox still enforces restricted builtins and resource limits at
    runtime; this only turns obvious problems into readable messages.
    """

    def __init__(
        self,
        allowed_modules: Optional[Set[str]] = None,
        forbidden_modules: Optional[Set[str]] = None,
        forbidden_builtins: Optional[Set[str]] = None,
        max_code_length: int = 20_000,
    ):
        self.allowed_modules = allowed_modules or ALLOWED_MODULES
        self.forbidden_modules = forbidden_modules or FORBIDDEN_MODULES
        self.forbidden_builtins = forbidden_builtins or FORBIDDEN_BUILTINS
        self.max_code_length = max_code_length

    def validate(self, code: str) -> ValidationResult:
        violations = []
        imports_used: Set[str] = set()

        if len(code) > self.max_code_length:
            violations.append(f"Code exceeds maximum length ({len(code)} > {self.max_code_length})")
            return ValidationResult(valid=False, violations=violations, imports_used=imports_used)

        try:
            tree = ast.parse(code)
        except SyntaxError as e:
            violations.append(f"Syntax error on line {e.lineno}: {e.msg}")
            return ValidationResult(valid=False, violations=violations, imports_used=imports_used)

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    violations.extend(self._check_module(alias.name, imports_used))

            elif isinstance(node, ast.ImportFrom):
                if node.level:
                    violations.append("Relative imports are not allowed")
                elif node.module:
                    violations.extend(self._check_module(node.module, imports_used))

            # Catches both calls and aliasing, e.g. `run = eval`
            elif isinstance(node, ast.Name):
                if node.id in self.forbidden_builtins:
                    violations.append(f"Forbidden builtin: {node.id}")

            elif isinstance(node, ast.Attribute):
                if node.attr in FORBIDDEN_ATTRIBUTES:
                    violations.append(f"Forbidden attribute access: .{node.attr}")

        return ValidationResult(
            valid=len(violations) == 0,
            violations=violations,
            imports_used=imports_used,
        )

    def _check_module(self, name: str, imports_used: Set[str]) -> List[str]:
        module = name.split('.')[0]
        imports_used.add(module)
        if module in self.forbidden_modules:
            return [f"Forbidden import: {module}"]
        if module not in self.allowed_modules:
            return [f"Disallowed import: {module} (not in whitelist)"]
        return []

    def validate_or_raise(self, code: str) -> ValidationResult:
        """Validate and raise ValidationError if invalid."""
        result = self.validate(code)
        if not result.valid:
            raise ValidationError("Code validation failed", result.violations)
        return result
