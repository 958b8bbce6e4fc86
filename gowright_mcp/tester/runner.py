"""``go test`` execution.

Builds the ``go test`` command line from caller flags, runs it with an upper
time bound, and parses the verbose output into a :class:`GoTestSummary`.
Process failures and timeouts come back as data, never as exceptions.
"""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Optional

from rich.markup import escape

from .results import CommandResult, GoTestFailure, GoTestRun, GoTestSummary
from gowright_mcp.utils import console, format_duration, run_command

# "--- PASS: TestFoo (0.01s)" / "    --- FAIL: TestFoo/sub (0.00s)"
_RESULT_LINE = re.compile(r"^\s*--- (PASS|FAIL|SKIP): (\S+)(?: \(([\d.]+)s\))?")


# ---------------------------------------------------------------------------
# Output parser
# ---------------------------------------------------------------------------


def parse_go_test_output(output: str) -> GoTestSummary:
    """Count ``--- PASS/FAIL/SKIP`` lines in ``go test -v`` output.

    Output without ``-v`` has no per-test lines and yields an empty summary.
    """
    summary = GoTestSummary()
    for line in output.splitlines():
        match = _RESULT_LINE.match(line)
        if not match:
            continue
        status, name, duration = match.groups()
        if status == "PASS":
            summary.passed += 1
        elif status == "SKIP":
            summary.skipped += 1
        else:
            summary.failed += 1
            summary.failures.append(
                GoTestFailure(test_name=name, duration_seconds=float(duration or 0.0))
            )
    return summary


# ---------------------------------------------------------------------------
# GoTestRunner
# ---------------------------------------------------------------------------


class GoTestRunner:
    """Runs ``go test`` inside a project directory.

    Parameters
    ----------
    project_path:
        Directory the command runs in.
    timeout:
        Seconds before the process is killed and the run reported failed.
    parallel_degree:
        Value passed to ``-parallel`` when parallel execution is requested.
    """

    def __init__(
        self,
        project_path: str | Path,
        *,
        timeout: int = 300,
        parallel_degree: int = 4,
    ) -> None:
        self.project_path = Path(project_path)
        self.timeout = timeout
        self.parallel_degree = parallel_degree

    def build_command(
        self,
        test_file: str,
        test_function: Optional[str] = None,
        parallel: bool = False,
        verbose: bool = False,
    ) -> list[str]:
        """Assemble ``go test [-v] [-parallel N] [-run FN] <file>``."""
        cmd = ["go", "test"]
        if verbose:
            cmd.append("-v")
        if parallel:
            cmd.extend(["-parallel", str(self.parallel_degree)])
        if test_function:
            cmd.extend(["-run", test_function])
        cmd.append(test_file)
        return cmd

    async def run(
        self,
        test_file: str,
        test_function: Optional[str] = None,
        parallel: bool = False,
        verbose: bool = False,
        timeout: Optional[int] = None,
    ) -> GoTestRun:
        """Execute the tests and return the captured result."""
        cmd = self.build_command(test_file, test_function, parallel, verbose)
        console.print(f"[dim]$ {escape(' '.join(cmd))}[/dim]")

        start = time.monotonic()
        returncode, stdout, stderr = await run_command(
            cmd, cwd=self.project_path, timeout=timeout or self.timeout
        )
        elapsed = time.monotonic() - start

        result = CommandResult(command=cmd, returncode=returncode, stdout=stdout, stderr=stderr)
        run = GoTestRun(
            result=result,
            summary=parse_go_test_output(stdout),
            duration_seconds=round(elapsed, 3),
        )
        self._log_run(run)
        return run

    @staticmethod
    def _log_run(run: GoTestRun) -> None:
        """Print a one-line summary of the run."""
        color = "green" if run.passed else "red"
        console.print(
            f"[{color}]go test exit {run.result.returncode}: "
            f"{escape(run.summary.summary_text())} ({format_duration(run.duration_seconds)})[/{color}]"
        )
