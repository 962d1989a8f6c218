"""
archillesdc.lifecycle - Project Lifecycle Runner
================================================

Runs the ordered steps that turn options into a ready-to-use project:

    1. create-directory    Creating project directory
    2. generate-files      Generating project files
    3. setup-environment   Setting up environment
    4. git                 Initializing Git repository       (init_git)
    5. install             Installing dependencies with <pm> (not skip_install)
    6. prisma-generate     Generating Prisma client          (not skip_install)
    7. final-checks        Running final checks

Every step runs in the same wrapper: success and failure are recorded as a
``StepResult`` and reported through the injected ``ProgressReporter``, and
the run moves on. Only ``create-directory`` is fatal; without a project root
there is nothing for later steps to work on.

External commands go through an injectable ``runner`` with the signature of
``archillesdc.commands.run_command``, so tests can simulate failures without
spawning processes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from archillesdc.commands import (
    INSTALL_TIMEOUT,
    PRISMA_GENERATE_TIMEOUT,
    get_install_command,
    get_prisma_generate_command,
    run_command,
)
from archillesdc.models import ProjectOptions
from archillesdc.orchestrator import generate_files
from archillesdc.planner import ensure_directories, plan_environment_directories
from archillesdc.progress import ProgressReporter, RecordingProgressReporter
from archillesdc.verifier import run_final_checks


logger = logging.getLogger(__name__)

Runner = Callable[..., Awaitable[tuple[int, str, str]]]

COMMIT_MESSAGE = "Initial commit from create-archillesdc-app"


# =============================================================================
# Results
# =============================================================================

class StepOutcome(str, Enum):
    """How a lifecycle step ended."""

    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of one lifecycle step.

    Attributes
    ----------
    step : str
        Step identifier, e.g. ``install``.

    title : str
        Human-readable title shown while the step runs.

    outcome : StepOutcome
        Done, failed or skipped.

    message : str
        Failure message, empty otherwise.

    hint : str
        Command the user can run to fix the failure by hand, if any.
    """

    step: str
    title: str
    outcome: StepOutcome
    message: str = ""
    hint: str = ""


@dataclass
class LifecycleResult:
    """Ordered step results of one run."""

    steps: list[StepResult] = field(default_factory=list)
    fatal: bool = False

    @property
    def success(self) -> bool:
        """True when no step failed."""
        return not self.fatal and not self.failed_steps

    @property
    def failed_steps(self) -> list[StepResult]:
        return [result for result in self.steps if result.outcome is StepOutcome.FAILED]

    def outcome(self, step: str) -> StepOutcome | None:
        """Outcome of ``step``, or None if the run never reached it."""
        for result in self.steps:
            if result.step == step:
                return result.outcome
        return None


class StepFailure(Exception):
    """Raised by a step action to fail with a remediation hint."""

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


# =============================================================================
# Step Actions
# =============================================================================

@dataclass(frozen=True)
class StepContext:
    options: ProjectOptions
    runner: Runner
    fail_fast: bool


async def _create_directory(ctx: StepContext) -> None:
    await asyncio.to_thread(ctx.options.project_path.mkdir, parents=True, exist_ok=True)


async def _generate_files(ctx: StepContext) -> None:
    report = await generate_files(ctx.options, fail_fast=ctx.fail_fast)
    if not report.success:
        raise StepFailure(f"Failed to generate: {', '.join(report.failed_units)}")


async def _setup_environment(ctx: StepContext) -> None:
    directories = plan_environment_directories(ctx.options.template)
    await ensure_directories(ctx.options.project_path, directories)


async def _init_git(ctx: StepContext) -> None:
    root = ctx.options.project_path

    returncode, _, stderr = await ctx.runner(["git", "init"], cwd=root)
    if returncode != 0:
        logger.debug("git init failed: %s", stderr)
        raise StepFailure("Git not installed or not configured", hint="git init")

    returncode, _, stderr = await ctx.runner(["git", "add", "-A"], cwd=root)
    if returncode != 0:
        raise StepFailure(f"Failed to stage files: {stderr}", hint="git add -A")

    # Commits fail without a configured author identity
    returncode, _, stderr = await ctx.runner(["git", "commit", "-m", COMMIT_MESSAGE], cwd=root)
    if returncode != 0:
        logger.debug("Initial commit skipped: %s", stderr)


async def _install_dependencies(ctx: StepContext) -> None:
    command = get_install_command(ctx.options.package_manager)
    returncode, _, stderr = await ctx.runner(
        command, cwd=ctx.options.project_path, timeout=INSTALL_TIMEOUT
    )
    if returncode != 0:
        logger.debug("%s failed (%s): %s", command, returncode, stderr)
        raise StepFailure(
            f"Failed to install dependencies. Run '{command}' manually.", hint=command
        )


async def _generate_prisma_client(ctx: StepContext) -> None:
    command = get_prisma_generate_command(ctx.options.package_manager)
    returncode, _, stderr = await ctx.runner(
        command, cwd=ctx.options.project_path, timeout=PRISMA_GENERATE_TIMEOUT
    )
    if returncode != 0:
        logger.debug("%s failed (%s): %s", command, returncode, stderr)
        raise StepFailure(
            f"Failed to generate Prisma client. Run '{command}' manually after setting up .env",
            hint=command,
        )


async def _final_checks(ctx: StepContext) -> None:
    await asyncio.to_thread(run_final_checks, ctx.options)


@dataclass(frozen=True)
class LifecycleStep:
    """One entry of the step table."""

    name: str
    title: Callable[[ProjectOptions], str]
    action: Callable[[StepContext], Awaitable[None]]
    enabled: Callable[[ProjectOptions], bool] = lambda options: True
    fatal: bool = False


LIFECYCLE_STEPS: tuple[LifecycleStep, ...] = (
    LifecycleStep(
        "create-directory", lambda o: "Creating project directory", _create_directory, fatal=True
    ),
    LifecycleStep("generate-files", lambda o: "Generating project files", _generate_files),
    LifecycleStep("setup-environment", lambda o: "Setting up environment", _setup_environment),
    LifecycleStep(
        "git", lambda o: "Initializing Git repository", _init_git,
        enabled=lambda o: o.init_git,
    ),
    LifecycleStep(
        "install",
        lambda o: f"Installing dependencies with {o.package_manager.value}",
        _install_dependencies,
        enabled=lambda o: not o.skip_install,
    ),
    LifecycleStep(
        "prisma-generate", lambda o: "Generating Prisma client", _generate_prisma_client,
        enabled=lambda o: not o.skip_install,
    ),
    LifecycleStep("final-checks", lambda o: "Running final checks", _final_checks),
)


# =============================================================================
# Runner
# =============================================================================

async def _run_step(step: LifecycleStep, ctx: StepContext, reporter: ProgressReporter) -> StepResult:
    title = step.title(ctx.options)

    if not step.enabled(ctx.options):
        reporter.skip(step.name, title)
        return StepResult(step.name, title, StepOutcome.SKIPPED)

    reporter.begin(step.name, title)
    try:
        await step.action(ctx)
    except StepFailure as e:
        reporter.fail(step.name, title, e.message)
        return StepResult(step.name, title, StepOutcome.FAILED, e.message, e.hint)
    except Exception as e:
        logger.debug("Step %s failed", step.name, exc_info=True)
        reporter.fail(step.name, title, str(e))
        return StepResult(step.name, title, StepOutcome.FAILED, str(e))

    reporter.complete(step.name, title)
    return StepResult(step.name, title, StepOutcome.DONE)


async def run_lifecycle(
    options: ProjectOptions,
    reporter: ProgressReporter,
    *,
    runner: Runner = run_command,
    fail_fast: bool = False,
) -> LifecycleResult:
    """
    Run every lifecycle step in order.

    Parameters
    ----------
    options : ProjectOptions
        Resolved options for the run.

    reporter : ProgressReporter
        Receives begin/complete/fail/skip events for each step.

    runner : Runner
        Executes external commands. Defaults to ``run_command``.

    fail_fast : bool, default=False
        Passed to the orchestrator; a failing unit then fails the
        generate-files step with every unit failure in the message.

    Returns
    -------
    LifecycleResult
        Ordered step results. ``fatal`` is set when the project directory
        could not be created, in which case no later step is recorded.
    """
    ctx = StepContext(options=options, runner=runner, fail_fast=fail_fast)
    result = LifecycleResult()

    for step in LIFECYCLE_STEPS:
        step_result = await _run_step(step, ctx, reporter)
        result.steps.append(step_result)
        if step.fatal and step_result.outcome is StepOutcome.FAILED:
            result.fatal = True
            break

    return result


def create_project(
    options: ProjectOptions,
    reporter: ProgressReporter | None = None,
    *,
    runner: Runner = run_command,
) -> LifecycleResult:
    """
    Synchronous entry point used by the CLI.

    Examples
    --------
    >>> from archillesdc.models import normalize_options
    >>> options = normalize_options("demo", output_dir="/tmp", skip_install=True, init_git=False)
    >>> create_project(options).outcome("install")  # doctest: +SKIP
    <StepOutcome.SKIPPED: 'skipped'>
    """
    return asyncio.run(
        run_lifecycle(options, reporter or RecordingProgressReporter(), runner=runner)
    )

