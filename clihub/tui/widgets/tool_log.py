"""Activity log — collapsible RichLog panel for setup and session events."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import RichLog

from clihub.engine.models import InstallResult, PrerequisiteReport, ProbeResult


class ActivityLog(RichLog):
    """Collapsible log of installs, probes and session events."""

    def __init__(self, **kwargs) -> None:
        super().__init__(
            auto_scroll=True,
            wrap=True,
            markup=True,
            highlight=False,
            max_lines=5000,
            **kwargs,
        )

    def log_prerequisites(self, report: PrerequisiteReport) -> None:
        node = escape(report.node_version) if report.node_version else "missing"
        self.write(f"[bold]node[/bold] {node}  [bold]npm[/bold] "
                   f"{'found' if report.npm else 'missing'}")
        if report.homebrew is not None:
            state = "found" if report.homebrew else "missing"
            self.write(f"[bold]brew[/bold] {state}")

    def log_probe(self, tool: str, probe: ProbeResult) -> None:
        if probe.installed:
            self.write(f"[bold cyan]{tool}[/bold cyan] {escape(probe.version or '')}")
        else:
            self.write(f"[bold cyan]{tool}[/bold cyan] [dim]not installed[/dim]")

    def log_install(self, target: str, result: InstallResult) -> None:
        color = "green" if result.success else "red"
        label = "Installed" if result.success else "Install failed"
        self.write(f"[bold cyan]{target}[/bold cyan] [{color}]{label}:[/{color}] "
                   f"{escape(result.message)}")

    def log_event(self, text: str, error: bool = False) -> None:
        if error:
            self.write(f"[red]{escape(text)}[/red]")
        else:
            self.write(f"[dim]{escape(text)}[/dim]")

    def toggle(self) -> None:
        self.toggle_class("visible")
