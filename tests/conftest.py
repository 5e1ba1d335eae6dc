"""Shared fixtures for promptvars tests."""

import pytest

from promptvars.config import ExecutionEnvironment
from promptvars.exec import SourceEvaluator
from promptvars.variables import SubstitutionEngine


@pytest.fixture
def environment(tmp_path):
    """POSIX shell pinned to a temporary working directory."""
    return ExecutionEnvironment(shell="/bin/sh", cwd=tmp_path)


@pytest.fixture
def evaluator(environment):
    return SourceEvaluator(environment=environment)


@pytest.fixture
def engine(evaluator):
    return SubstitutionEngine(evaluator)
