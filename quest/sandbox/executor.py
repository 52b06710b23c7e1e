"""
Sandboxed execution of learner scripts.

A submission is a whole script; running it means executing it top to bottom
and collecting what it prints.

ISOLATION:
1. Static validation (validator.py) rejects dangerous imports and builtins
2. Restricted builtins, and an __import__ that only resolves whitelisted modules
3. Resource limits - CPU, memory, no forking, no file writes
4. Separate spawned interpreter per run
5. Wall-clock timeout with hard kill

LIMITATIONS:
- No namespace or network isolation (would need nsjail/bubblewrap)
"""

import builtins
import logging
import resource
import signal
import sys
import time
import multiprocessing
from dataclasses import dataclass
from typing import Optional

from ..config import SANDBOX_TIMEOUT_SECONDS, SANDBOX_MEMORY_MB, SANDBOX_MAX_OUTPUT_BYTES
from .validator import CodeValidator, ValidationError, ALLOWED_MODULES

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of running a script in the sandbox."""
    success: bool
    stdout: str
    error: Optional[str]  # Error message if failed
    error_type: Optional[str]  # Exception type if failed
    execution_time_ms: int


def _restricted_import(name, globals=None, locals=None, fromlist=(), level=0):
    if level != 0 or name.split('.')[0] not in ALLOWED_MODULES:
        raise ImportError(f"Import of '{name}' is not allowed")
    return builtins.__import__(name, globals, locals, fromlist, level)


# What a learner script can see - enough for beginner exercises
RESTRICTED_BUILTINS = {
    # Types
    'None': None,
    'True': True,
    'False': False,
    'int': int,
    'float': float,
    'bool': bool,
    'str': str,
    'list': list,
    'tuple': tuple,
    'dict': dict,
    'set': set,
    'frozenset': frozenset,
    'object': object,

    # Functions
    'abs': abs,
    'all': all,
    'any': any,
    'chr': chr,
    'divmod': divmod,
    'enumerate': enumerate,
    'filter': filter,
    'format': format,
    'isinstance': isinstance,
    'iter': iter,
    'len': len,
    'map': map,
    'max': max,
    'min': min,
    'next': next,
    'ord': ord,
    'pow': pow,
    'print': print,  # Captured to stdout
    'range': range,
    'repr': repr,
    'reversed': reversed,
    'round': round,
    'sorted': sorted,
    'sum': sum,
    'zip': zip,

    # Needed by class statements and import statements
    '__build_class__': builtins.__build_class__,
    '__import__': _restricted_import,

    # Exceptions
    'Exception': Exception,
    'ValueError': ValueError,
    'TypeError': TypeError,
    'KeyError': KeyError,
    'IndexError': IndexError,
    'ImportError': ImportError,
    'NameError': NameError,
    'RuntimeError': RuntimeError,
    'StopIteration': StopIteration,
    'ZeroDivisionError': ZeroDivisionError,
}


def _set_resource_limits(memory_mb: int, cpu_seconds: int):
    """Set resource limits for the current process (Linux only)."""
    try:
        memory_bytes = memory_mb * 1024 * 1024
        resource.setrlimit(resource.RLIMIT_AS, (memory_bytes, memory_bytes))
        # Hard limit above soft so the kernel sends SIGXCPU rather than SIGKILL
        resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds + 1))
        resource.setrlimit(resource.RLIMIT_NPROC, (0, 0))
        resource.setrlimit(resource.RLIMIT_FSIZE, (0, 0))
        resource.setrlimit(resource.RLIMIT_CORE, (0, 0))
    except (ValueError, OSError) as e:
        # Not every platform allows every limit
        print(f"Warning: Could not set resource limits: {e}", file=sys.stderr)


def _run_script(code: str, memory_mb: int, cpu_seconds: int, max_output: int, conn):
    """
    Execute a script in the spawned child and send an ExecutionResult back.

    Results go through a Pipe rather than a Queue: a Queue needs a feeder
    thread, which RLIMIT_NPROC forbids.
    """
    import io

    captured_stdout = io.StringIO()
    old_stdout = sys.stdout

    result = ExecutionResult(
        success=False,
        stdout="",
        error=None,
        error_type=None,
        execution_time_ms=0,
    )

    start_time = time.time()
    try:
        _set_resource_limits(memory_mb, cpu_seconds)
        sys.stdout = captured_stdout

        script_globals = {
            '__builtins__': RESTRICTED_BUILTINS,
            '__name__': '__main__',
            '__doc__': None,
        }
        exec(compile(code, "<submission>", "exec"), script_globals)
        result.success = True

    except MemoryError:
        result.error = "Memory limit exceeded"
        result.error_type = "MemoryError"
    except Exception as e:
        result.error = str(e)
        result.error_type = type(e).__name__
    finally:
        sys.stdout = old_stdout
        result.execution_time_ms = int((time.time() - start_time) * 1000)
        result.stdout = captured_stdout.getvalue()[:max_output]

    conn.send(result)
    conn.close()


class SandboxExecutor:
    """
    Runs learner scripts in a separate, resource-limited interpreter.

    Usage:
        executor = SandboxExecutor()
        result = executor.run('print("Hello, World!")')
        result.stdout  # 'Hello, World!\\n'
    """

    def __init__(
        self,
        timeout_seconds: int = SANDBOX_TIMEOUT_SECONDS,
        memory_mb: int = SANDBOX_MEMORY_MB,
        max_output_bytes: int = SANDBOX_MAX_OUTPUT_BYTES,
        validate: bool = True,
    ):
        self.timeout_seconds = timeout_seconds
        self.memory_mb = memory_mb
        self.max_output_bytes = max_output_bytes
        self.validate = validate
        self.validator = CodeValidator()

    def run(self, code: str) -> ExecutionResult:
        """Validate then execute `code`, returning its captured stdout."""
        if self.validate:
            try:
                self.validator.validate_or_raise(code)
            except ValidationError as e:
                logger.info("Submission rejected by validator: %s", e.violations)
                return self._failure(str(e), "ValidationError")

        # Spawn is safer than fork inside a threaded server
        ctx = multiprocessing.get_context('spawn')
        parent_conn, child_conn = ctx.Pipe(duplex=False)

        process = ctx.Process(
            target=_run_script,
            args=(
                code,
                self.memory_mb,
                self.timeout_seconds,
                self.max_output_bytes,
                child_conn,
            ),
        )
        process.start()
        child_conn.close()

        result = None
        timed_out = False
        try:
            # Extra grace period for interpreter startup
            if parent_conn.poll(self.timeout_seconds + 5):
                result = parent_conn.recv()
            else:
                timed_out = True
        except EOFError:
            # Child died without reporting
            result = None
        finally:
            parent_conn.close()
            self._reap(process)

        # RLIMIT_CPU kills a runaway loop with SIGXCPU before the wall clock expires
        if timed_out or process.exitcode == -signal.SIGXCPU:
            logger.warning("Sandbox run timed out after %ss", self.timeout_seconds)
            return self._failure(
                f"Execution timeout ({self.timeout_seconds}s)",
                "TimeoutError",
                execution_time_ms=self.timeout_seconds * 1000,
            )
        if result is None:
            return self._failure("Sandbox process exited without a result", "SandboxError")
        return result

    @staticmethod
    def _reap(process):
        process.join(timeout=2)
        if process.is_alive():
            process.terminate()
            process.join(timeout=2)
            if process.is_alive():
                process.kill()
                process.join()

    @staticmethod
    def _failure(error: str, error_type: str, execution_time_ms: int = 0) -> ExecutionResult:
        return ExecutionResult(
            success=False,
            stdout="",
            error=error,
            error_type=error_type,
            execution_time_ms=execution_time_ms,
        )
