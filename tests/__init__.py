"""
archillesdc test suite
======================

This package contains the tests for archillesdc.

Test Modules
------------
- test_models.py: Options model and normalization
- test_planner.py: Directory planning and creation
- test_variants.py: Variant table coverage
- test_renderer.py: Jinja2 environment and safe writes
- test_units.py: Generator units over every option combination
- test_orchestrator.py: Concurrent generation and failure isolation
- test_commands.py: Package manager commands and process execution
- test_verifier.py: Required artifacts and completion marker
- test_progress.py: Progress reporters
- test_lifecycle.py: Lifecycle steps with a mocked command runner
- test_scaffold.py: ``generate`` code generators
- test_cli.py: Command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Skip the full option matrix
    pytest -m "not slow"

    # Run specific module
    pytest tests/test_lifecycle.py

    # Run specific test class
    pytest tests/test_lifecycle.py::TestNonFatalFailures
"""
