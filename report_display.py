"""
report_display.py - Terminal rendering of a CPU Report
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cpu_models import CPU, Report
from cpu_parts import implementer_name


def _format_bytes(n: int) -> str:
    if not n:
        return ""
    if n % (1024 * 1024) == 0:
        return f"{n // (1024 * 1024)} MB"
    if n % 1024 == 0:
        return f"{n // 1024} KB"
    return f"{n} B"


def _vendor(cpu: CPU) -> str:
    if cpu.impl:
        return implementer_name(cpu.impl)
    return cpu.vendor_id


def _model(cpu: CPU) -> str:
    # ARM kernels leave "model name" empty on most boards
    if cpu.impl and not cpu.model_name:
        return cpu.name()
    return cpu.model_name


def build_cpu_table(report: Report) -> Table:
    """Build a table with one row per processor."""
    table = Table(title="Processors", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Vendor", style="cyan")
    table.add_column("Model")
    table.add_column("Part")
    table.add_column("Micro-arch")
    table.add_column("MHz", justify="right")
    table.add_column("L2", justify="right")
    table.add_column("Features", justify="right")

    for cpu in report.cpus:
        table.add_row(
            str(cpu.proc),
            _vendor(cpu),
            _model(cpu),
            cpu.name() if cpu.impl else "",
            cpu.micro_arch,
            f"{cpu.freq:.0f}" if cpu.freq else "",
            _format_bytes(cpu.cache.l2),
            str(len(cpu.features)) if cpu.features else ""
        )
    return table


def render_report(report: Report, console: Optional[Console] = None) -> None:
    """Print a report to the console."""
    console = console or Console()

    if not report.cpus:
        console.print("[yellow]No processors detected.[/yellow]")
    else:
        console.print(build_cpu_table(report))

    if report.misc:
        lines = [f"[bold]{escape(pair.key)}:[/bold] {escape(pair.value)}" for pair in report.misc]
        console.print(Panel(
            "\n".join(lines),
            title="Host",
            border_style="cyan",
            box=box.ROUNDED
        ))
