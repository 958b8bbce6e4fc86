"""Results of shelled-out ``go`` commands.

Provides Pydantic v2 models for a raw command outcome, the per-test
summary parsed from ``go test -v`` output, and the combined run record the
``run_test`` operation reports.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field


# ---------------------------------------------------------------------------
# Raw command outcome
# ---------------------------------------------------------------------------

class CommandResult(BaseModel):
    """Exit status and captured streams of one external command."""

    command: list[str] = Field(default_factory=list)
    returncode: int = Field(default=0)
    stdout: str = Field(default="")
    stderr: str = Field(default="")

    @computed_field  # type: ignore[misc]
    @property
    def ok(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    @property
    def timed_out(self) -> bool:
        return self.returncode == -1

    def detail(self) -> str:
        """Captured output to show the caller: stdout, else stderr.

        A timed-out run shows both, so the partial output comes with the
        timeout message.
        """
        if self.timed_out:
            return "\n".join(part for part in (self.stdout, self.stderr) if part) or (
                f"exit status {self.returncode}"
            )
        return self.stdout or self.stderr or f"exit status {self.returncode}"

    def command_line(self) -> str:
        return " ".join(self.command)


# ---------------------------------------------------------------------------
# go test summary
# ---------------------------------------------------------------------------

class GoTestFailure(BaseModel):
    """A single ``--- FAIL`` line."""

    test_name: str = Field(..., description="Go test function (subtests use Parent/Child)")
    duration_seconds: float = Field(default=0.0, ge=0.0)


class GoTestSummary(BaseModel):
    """Counts parsed from verbose ``go test`` output."""

    passed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failures: list[GoTestFailure] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    def summary_text(self) -> str:
        """One line such as ``3 passed, 1 failed, 0 skipped``."""
        text = f"{self.passed} passed, {self.failed} failed, {self.skipped} skipped"
        if self.failures:
            names = ", ".join(f.test_name for f in self.failures)
            text += f" (failing: {names})"
        return text


# ---------------------------------------------------------------------------
# run_test record
# ---------------------------------------------------------------------------

class GoTestRun(BaseModel):
    """A ``go test`` invocation together with its parsed summary."""

    result: CommandResult
    summary: GoTestSummary = Field(default_factory=GoTestSummary)
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @computed_field  # type: ignore[misc]
    @property
    def passed(self) -> bool:
        return self.result.ok
