"""Pytest configuration for brdfkit tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

SRC_DIR = Path(__file__).parent.parent / "src"


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    All kernel launches go through init_backend(), which ignores repeated
    calls, so the runtime is never reset between tests.
    """
    from brdfkit.core.backend import init_backend

    init_backend(offline_cache=False)
    yield


@pytest.fixture
def normal():
    """The fixed reference normal."""
    from brdfkit.core.vector import REFERENCE_NORMAL

    return REFERENCE_NORMAL


@pytest.fixture
def incoming():
    """The default preview incoming direction, normalized."""
    return np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)


@pytest.fixture
def write_definition(tmp_path):
    """Write a definition mapping (or raw text) to a JSON file in tmp_path."""

    def _write(filename, content, folder=None):
        directory = tmp_path if folder is None else tmp_path / folder
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        text = content if isinstance(content, str) else json.dumps(content)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def run_fresh_python():
    """Run a Python snippet in a new interpreter and return its last stdout line.

    Taichi state (initialisation, compiled kernels) is per process, so code
    that depends on it starting from scratch runs here.
    """

    def _run(script, timeout=600):
        paths = [str(SRC_DIR)] + [p for p in os.environ.get("PYTHONPATH", "").split(os.pathsep) if p]
        env = {**os.environ, "PYTHONPATH": os.pathsep.join(paths)}
        proc = subprocess.run(
            [sys.executable, "-c", script],
            capture_output=True,
            text=True,
            env=env,
            timeout=timeout,
        )
        assert proc.returncode == 0, proc.stderr
        lines = proc.stdout.strip().splitlines()
        return lines[-1] if lines else ""

    return _run

