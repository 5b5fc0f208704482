# src/kubeactions/cli/formatter.py
import difflib
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kubeactions.core.errors import ActionEngineError
from kubeactions.core.exporter import ManifestExporter
from kubeactions.core.models import ActionDescriptor, ImpactedResource, ResourceIdentity, ResourceManifest
from kubeactions.verify.harness import CaseReport

# Initialize the Rich console for high-quality terminal output
console = Console()


class ActionFormatter:
    """
    ActionFormatter: the visual side of the CLI.
    Renders discovered actions, impacted resources, verification diffs and reports.
    """

    def __init__(self, exporter: ManifestExporter = None):
        self.exporter = exporter or ManifestExporter()

    def show_actions(self, resource: ResourceManifest, descriptors: List[ActionDescriptor]):
        """Lists the actions a resource offers right now."""
        identity = ResourceIdentity.of(resource)
        if not descriptors:
            console.print(f"[dim]ℹ No actions available for {identity}.[/dim]")
            return

        table = Table(title=f"Actions for {identity}", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Display Name")
        table.add_column("Available", justify="center")
        for d in descriptors:
            table.add_row(d.name, d.display_name or "", "🔒" if d.locked else "✅")
        console.print(table)

    def show_impacted(self, action: str, impacted: List[ImpactedResource]):
        """One panel per impacted resource, titled with its operation."""
        if not impacted:
            console.print(f"[dim]ℹ Action '{action}' produced no changes.[/dim]")
            return

        for item in impacted:
            color = "yellow" if item.operation.value == "patch" else "green"
            subtitle = "name generated by cluster" if item.generated_name else None
            syntax = Syntax(self.exporter.export(item.resource), "yaml", theme="monokai", line_numbers=False)
            console.print(Panel(
                syntax,
                title=f"[bold {color}]{item.operation.value.upper()}[/bold {color}] {item.identity}",
                subtitle=subtitle,
                border_style=color,
            ))

    def display_diff(self, label: str, expected: Dict[str, Any], actual: Dict[str, Any]):
        """
        Renders a unified diff between the normalized expectation and the
        normalized script output.
        """
        diff = difflib.unified_diff(
            self.exporter.export(expected).splitlines(),
            self.exporter.export(actual).splitlines(),
            fromfile="expected",
            tofile="actual",
            lineterm=""
        )
        diff_list = list(diff)
        if not diff_list:
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        console.print(Panel(syntax, title=f"Mismatch: {label}", border_style="red"))

    def show_error(self, error: ActionEngineError):
        """Reports the offending kind, action and error class verbatim."""
        console.print(Panel(
            f"[bold red]{type(error).__name__}[/bold red]\n"
            f"Kind:   [white]{error.kind or '-'}[/white]\n"
            f"Action: [white]{error.action or '-'}[/white]\n\n"
            f"{error.message}",
            title="[bold red]Action Engine Error[/bold red]",
            border_style="red",
            expand=False,
        ))

    def print_final_table(self, reports: List[CaseReport], summary: Dict[str, Any]):
        """
        Builds the summary table shown at the end of a verification run.
        """
        table = Table(title="KubeActions Verification Report", show_lines=True, header_style="bold magenta")
        table.add_column("Case", style="cyan")
        table.add_column("Kind", style="white")
        table.add_column("Detail")
        table.add_column("Result", justify="center")

        for r in reports:
            color = "green" if r.passed else "red"
            table.add_row(r.name, r.kind, f"[{color}]{r.message}[/{color}]", "✅" if r.passed else "❌")

        console.print(table)
        console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Cases:  {summary['total_cases']}\n"
            f"Passed:       [green]{summary['passed']}[/green]\n"
            f"Failed:       [red]{summary['failed']}[/red]",
            border_style="dim"
        ))
