"""Shared utility functions for the Gowright MCP server.

Provides async command execution (the shell delegate used for every ``go``
invocation), Go identifier and file-name helpers, file writing, and
Rich-based console reporting.  Stdout carries the MCP protocol, so every
console message goes to stderr.
"""

from __future__ import annotations

import asyncio
import os
import re
import signal
from pathlib import Path

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


# Seconds allowed for the pipes to close after a timed-out process group is killed.
KILL_GRACE_SECONDS = 2


async def _drain(stream: asyncio.StreamReader | None, sink: bytearray) -> None:
    """Append everything read from *stream* to *sink* until EOF."""
    if stream is None:
        return
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            return
        sink.extend(chunk)


def _kill_group(process: asyncio.subprocess.Process) -> None:
    """Kill *process* and its whole process group.

    ``go test`` runs the compiled test binary as a grandchild, and ``go get``
    runs ``git``; both would keep the pipes open if only the child died.
    """
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode("utf-8", errors="replace").strip()


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command and wait for it to finish.

    The child runs in its own session so a timeout can kill the whole
    process group, not just the direct child.

    Args:
        cmd: Program and arguments.  No shell is involved, so caller-supplied
            values cannot inject extra commands.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process group is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timeout yields ``-1``
        with whatever output was captured before the kill; a missing
        executable or working directory yields ``127``.  In those cases the
        stderr slot ends with an explanation.
    """
    if cwd is not None and not Path(cwd).is_dir():
        return (127, "", f"Working directory not found: {cwd}")

    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            start_new_session=True,
        )
    except FileNotFoundError:
        return (127, "", f"Executable not found: {cmd[0]}")

    stdout_buf = bytearray()
    stderr_buf = bytearray()
    try:
        await asyncio.wait_for(
            asyncio.gather(
                _drain(process.stdout, stdout_buf),
                _drain(process.stderr, stderr_buf),
                process.wait(),
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        _kill_group(process)
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    _drain(process.stdout, stdout_buf),
                    _drain(process.stderr, stderr_buf),
                ),
                timeout=KILL_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            print_warning(f"Output pipes still open after killing: {' '.join(cmd)}")
        await process.wait()
        message = f"Command timed out after {timeout}s: {' '.join(cmd)}"
        partial_err = _decode(stderr_buf)
        return (-1, _decode(stdout_buf), f"{partial_err}\n{message}" if partial_err else message)

    return (process.returncode or 0, _decode(stdout_buf), _decode(stderr_buf))


async def check_go_environment(timeout: int = 10) -> tuple[bool, str]:
    """Check that the ``go`` toolchain is on PATH.

    Returns:
        ``(True, "go version ...")`` when Go runs, otherwise ``(False, reason)``.
    """
    returncode, stdout, stderr = await run_command(["go", "version"], timeout=timeout)
    if returncode == 0:
        return True, stdout
    return False, "Go is not installed or not in PATH. Please install Go 1.22 or later."


# ---------------------------------------------------------------------------
# Go name helpers
# ---------------------------------------------------------------------------


def sanitize_test_name(name: str) -> str:
    """Turn an arbitrary label into the suffix of a Go ``TestXxx`` function.

    * Whitespace runs become a single underscore.
    * Anything outside ``[A-Za-z0-9_]`` is dropped.
    * The first character is upper-cased.

    Applying it twice gives the same result as applying it once.

    Examples::

        sanitize_test_name("login flow") -> "Login_flow"
        sanitize_test_name("my test!")   -> "My_test"
    """
    result = re.sub(r"\s+", "_", name.strip())
    result = re.sub(r"[^A-Za-z0-9_]", "", result)
    if not result:
        return "Generated"
    return result[0].upper() + result[1:]


def test_file_name(name: str) -> str:
    """File name for a generated test, e.g. ``"UserAPI"`` -> ``userapi_test.go``.

    Leading underscores are stripped: ``go build`` ignores files whose names
    start with ``_``.
    """
    stem = re.sub(r"[^a-z0-9]", "_", name.lower()).lstrip("_")
    return f"{stem or 'generated'}_test.go"


# Keep pytest from collecting the helper above when it is imported into tests.
test_file_name.__test__ = False  # type: ignore[attr-defined]


def go_method_name(method: str) -> str:
    """Map an HTTP verb to the Gowright API tester method (``GET`` -> ``Get``)."""
    known = {"GET": "Get", "POST": "Post", "PUT": "Put", "DELETE": "Delete", "PATCH": "Patch"}
    return known.get(method.upper(), "Get")


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def write_text_file(path: str | Path, content: str) -> Path:
    """Create parent dirs and write *content*; returns the written path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content, encoding="utf-8")
    return out


def fenced(text: str, language: str = "") -> str:
    """Wrap *text* in a Markdown code fence."""
    return f"```{language}\n{text}\n```"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def log_operation(name: str, detail: str = "") -> None:
    """Print a dim one-line trace of an incoming operation."""
    suffix = f" {detail}" if detail else ""
    console.print(f"[dim]-> {escape(name)}{escape(suffix)}[/dim]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
