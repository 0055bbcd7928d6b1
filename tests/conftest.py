"""
Pytest Configuration and Shared Fixtures
=========================================

This module configures pytest for the tuesday test suite.
It provides:
- Path setup for importing the tuesday package
- Custom markers for test categorization
- Shared graph fixtures available to all tests

Test Categories (markers):
- @pytest.mark.unit: Fast, isolated unit tests
- @pytest.mark.slow: Tests that take > 5 seconds

Usage:
    # Run only unit tests
    pytest -m unit

    # Run everything except slow tests
    pytest -m "not slow"
"""

import os
import sys
from datetime import date

import pytest


# =============================================================================
# PATH SETUP
# =============================================================================

# Ensure the tuesday package is importable from any test directory
_repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _repo_root not in sys.path:
    sys.path.insert(0, _repo_root)


# =============================================================================
# PYTEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Fast, isolated unit tests (< 1s each)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take > 5 seconds"
    )


# =============================================================================
# TEST COLLECTION HOOKS
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    Tests in tests/unit/ get @pytest.mark.unit.
    """
    for item in items:
        test_path = str(item.fspath)
        if '/unit/' in test_path or '\\unit\\' in test_path:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# GRAPH FIXTURES
# =============================================================================

REFERENCE_DAY = date(2024, 3, 5)  # a Tuesday


@pytest.fixture
def graph():
    """Fresh, empty graph."""
    from tuesday.graph import Graph
    return Graph()


@pytest.fixture
def college_graph():
    """
    The college scenario graph.

    Layout:
        0 college
        +-- 1 thesis
            +-- 2 draft
            +-- 3 exam
        4 date node for REFERENCE_DAY, also a parent of 2
    """
    from tuesday.graph import Graph, NodeKind

    g = Graph()
    college = g.add_node(NodeKind.NORMAL, "college")
    thesis = g.add_node(NodeKind.NORMAL, "thesis", parent=college)
    draft = g.add_node(NodeKind.NORMAL, "draft", parent=thesis)
    g.add_node(NodeKind.NORMAL, "exam", parent=thesis)
    today = g.add_node(NodeKind.DATE, "", day=REFERENCE_DAY)
    g.link(today, draft)
    return g


@pytest.fixture
def tue_env(tmp_path, monkeypatch):
    """
    Isolated environment for CLI runs.

    HOME and the working directory point into tmp_path so the global graph,
    configuration and blueprint store never touch the real home directory.
    """
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("TUESDAY_CONFIG", raising=False)
    monkeypatch.chdir(work)
    return tmp_path
