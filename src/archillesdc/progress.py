"""
archillesdc.progress - Step Progress Reporting
==============================================

The lifecycle runner never writes to the console directly. It receives a
``ProgressReporter`` and calls ``begin``, ``complete``, ``fail`` or ``skip``
for each step. The CLI passes a ``ConsoleProgressReporter``; tests pass a
``RecordingProgressReporter`` and inspect the recorded events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from rich.console import Console


class ProgressReporter(Protocol):
    """Capabilities the lifecycle runner needs to report step progress."""

    def begin(self, step: str, title: str) -> None: ...

    def complete(self, step: str, title: str) -> None: ...

    def fail(self, step: str, title: str, message: str) -> None: ...

    def skip(self, step: str, title: str) -> None: ...


class ConsoleProgressReporter:
    """
    Reports step progress with Rich markup.

    A spinner status is shown while a step runs and replaced by a
    ``✓``/``✗``/``-`` line once the step settles.

    Parameters
    ----------
    console : Console | None
        Console to print to. A new one is created if omitted.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._status = None

    def begin(self, step: str, title: str) -> None:
        self._stop()
        self._status = self.console.status(f"[bold]{title}...[/]")
        self._status.start()

    def complete(self, step: str, title: str) -> None:
        self._stop()
        self.console.print(f"  [green]✓[/] {title}")

    def fail(self, step: str, title: str, message: str) -> None:
        self._stop()
        self.console.print(f"  [red]✗[/] {title}")
        self.console.print(f"    [dim]{message}[/]")

    def skip(self, step: str, title: str) -> None:
        self._stop()
        self.console.print(f"  [dim]- {title} (skipped)[/]")

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


@dataclass
class RecordingProgressReporter:
    """
    Records progress events instead of printing them.

    Attributes
    ----------
    events : list[tuple[str, str]]
        ``(event, step)`` pairs in the order they were reported, where
        ``event`` is one of ``begin``, ``complete``, ``fail`` or ``skip``.

    messages : dict[str, str]
        Failure messages keyed by step.
    """

    events: list[tuple[str, str]] = field(default_factory=list)
    messages: dict[str, str] = field(default_factory=dict)

    def begin(self, step: str, title: str) -> None:
        self.events.append(("begin", step))

    def complete(self, step: str, title: str) -> None:
        self.events.append(("complete", step))

    def fail(self, step: str, title: str, message: str) -> None:
        self.events.append(("fail", step))
        self.messages[step] = message

    def skip(self, step: str, title: str) -> None:
        self.events.append(("skip", step))

    def steps_with(self, event: str) -> list[str]:
        """Steps that reported ``event``, in order."""
        return [step for kind, step in self.events if kind == event]
