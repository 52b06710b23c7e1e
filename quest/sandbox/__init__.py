"""Sandbox module for running learner submissions."""

from .executor import SandboxExecutor, ExecutionResult
from .validator import CodeValidator, ValidationError

__all__ = ["SandboxExecutor", "ExecutionResult", "CodeValidator", "ValidationError"]
