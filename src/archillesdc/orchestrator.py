"""
archillesdc.orchestrator - Concurrent File Generation
=====================================================

Turns a ``ProjectOptions`` into files on disk:

    1. Plan and create every directory the source tree needs
    2. Check that no two units write the same path
    3. Run every applicable generator unit concurrently

A failing unit never stops its siblings. Each failure is captured as a
``UnitFailure`` and the whole batch is reported in a ``GenerationReport``.
Callers that prefer an exception pass ``fail_fast=True`` and get a
``GenerationError`` listing every failure once all units have settled.

Usage Example
-------------
>>> import asyncio
>>> from archillesdc.models import normalize_options
>>> options = normalize_options("demo", output_dir="/tmp")
>>> report = asyncio.run(generate_files(options))  # doctest: +SKIP
>>> report.success
True
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from archillesdc.models import ProjectOptions
from archillesdc.planner import ensure_directories, plan_directories
from archillesdc.renderer import build_context, create_jinja_env
from archillesdc.units import applicable_units, plan_writes, run_unit, unit_context


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class UnitFailure:
    """A generator unit that raised, with the exception it raised."""

    unit: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.unit}: {self.error}"


@dataclass
class GenerationReport:
    """
    Outcome of one ``generate_files`` run.

    Attributes
    ----------
    files_written : list[Path]
        Absolute paths written by the units that succeeded.

    failures : list[UnitFailure]
        Failed units, in unit table order.
    """

    files_written: list[Path] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def failed_units(self) -> list[str]:
        return [failure.unit for failure in self.failures]


class GenerationError(RuntimeError):
    """Raised in fail-fast mode when at least one unit failed."""

    def __init__(self, failures: list[UnitFailure]) -> None:
        self.failures = failures
        details = "; ".join(str(failure) for failure in failures)
        super().__init__(f"{len(failures)} generator unit(s) failed: {details}")


# =============================================================================
# Orchestration
# =============================================================================

async def generate_files(options: ProjectOptions, *, fail_fast: bool = False) -> GenerationReport:
    """
    Generate the project source tree.

    Parameters
    ----------
    options : ProjectOptions
        Resolved options. ``project_path`` must already exist.

    fail_fast : bool, default=False
        Raise ``GenerationError`` instead of returning a failed report.

    Returns
    -------
    GenerationReport
        Files written and unit failures.

    Raises
    ------
    PlanningError
        If two units claim the same output path. Nothing is written.
    GenerationError
        If ``fail_fast`` is set and any unit failed.
    OSError
        If a planned directory cannot be created.
    """
    plan_writes(options)
    await ensure_directories(options.project_path, plan_directories(options.template))

    env = create_jinja_env()
    context = build_context(options, **unit_context(options))
    units = applicable_units(options)

    results = await asyncio.gather(
        *(run_unit(unit, options, env, context) for unit in units),
        return_exceptions=True,
    )

    report = GenerationReport()
    for unit, result in zip(units, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            report.failures.append(UnitFailure(unit.name, result))
        else:
            report.files_written.extend(result)

    if fail_fast and report.failures:
        raise GenerationError(report.failures)

    return report
