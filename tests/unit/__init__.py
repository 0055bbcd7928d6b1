"""
Unit Tests
==========

Fast, isolated tests for the graph engine and the tue command line.
These tests should:
- Run in < 1 second each
- Only touch files under pytest's tmp_path
- Test one thing at a time

Run with: python -m pytest tests/unit/ -v
"""
