"""Gowright MCP -- tester module.

Runs ``go test`` for generated Gowright tests and turns its output into
structured results.

Public API
----------
.. autoclass:: GoTestRunner
.. autoclass:: GoTestRun
.. autoclass:: GoTestSummary
.. autoclass:: GoTestFailure
.. autoclass:: CommandResult
"""

from .results import CommandResult, GoTestFailure, GoTestRun, GoTestSummary
from .runner import GoTestRunner, parse_go_test_output

__all__ = [
    # Runner
    "GoTestRunner",
    "parse_go_test_output",
    # Results
    "CommandResult",
    "GoTestFailure",
    "GoTestRun",
    "GoTestSummary",
]
