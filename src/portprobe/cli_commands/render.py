"""Text rendering and exit-code policy for scan reports."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from portprobe.modules.models import ProbeResult, ScanResult, Severity

from .shared import EXIT_CRITICAL, EXIT_HIGH, EXIT_OK

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
    Severity.INFO: "dim",
}

BANNER_PREVIEW = 40


def exit_code_for(result: ScanResult) -> int:
    """Map the most severe finding to a process exit code."""
    if result.summary.critical:
        return EXIT_CRITICAL
    if result.summary.high:
        return EXIT_HIGH
    return EXIT_OK


def _service_cell(port: ProbeResult) -> tuple[str, str]:
    fingerprint = port.fingerprint
    if fingerprint and fingerprint.identified:
        return fingerprint.service or port.info.service, fingerprint.version or "-"
    return port.info.service, "-"


def _banner_cell(port: ProbeResult) -> str:
    banner = port.banner or (port.fingerprint.banner if port.fingerprint else None)
    if not banner:
        return ""
    first_line = banner.strip().splitlines()[0] if banner.strip() else ""
    if len(first_line) > BANNER_PREVIEW:
        first_line = first_line[: BANNER_PREVIEW - 3] + "..."
    return escape(first_line)


def build_ports_table(result: ScanResult) -> Table:
    table = Table(title="Open Ports", header_style="bold")
    table.add_column("Port", style="cyan", justify="right")
    table.add_column("Service", style="bold white")
    table.add_column("Version")
    table.add_column("Behavior", style="dim")
    table.add_column("Stability")
    table.add_column("Banner", style="dim", overflow="fold")

    for port in result.open_ports:
        service, version = _service_cell(port)
        stability = port.stability.value if port.stability else "-"
        behavior = port.behavior.value if port.behavior else "-"
        table.add_row(
            f"{port.port}/tcp",
            escape(service),
            escape(version),
            behavior,
            stability,
            _banner_cell(port),
        )
    return table


def render_port_details(console: Console, result: ScanResult) -> None:
    """Category, connect time and behavior inference for each open port."""
    console.print("\n[bold]Port details:[/bold]")
    for port in result.open_ports:
        console.print(
            f"  [cyan]{port.port}/tcp[/cyan]  {escape(port.info.category)}  "
            f"{port.response_time_ms:.1f}ms"
        )
        if port.inference:
            console.print(f"           [dim]{escape(port.inference)}[/dim]")


def render_scan_result(console: Console, result: ScanResult) -> None:
    """Print a scan report: header panel, open-port table and findings."""
    seconds = result.scan_time_ms / 1000
    header = (
        f"[bold]{escape(result.host)}[/bold] ({result.ip})\n"
        f"{len(result.open_ports)} open / {result.total_ports_scanned} scanned "
        f"in {seconds:.2f}s\n"
        f"Risk score: [bold]{result.risk_score}[/bold]/100"
    )
    border = "red" if exit_code_for(result) != EXIT_OK else "green"
    console.print(Panel(header, title="portprobe", border_style=border))

    if not result.open_ports:
        console.print("[yellow]No open ports found.[/yellow]")
        return

    console.print(build_ports_table(result))
    render_port_details(console, result)

    if not result.vulnerabilities:
        console.print("[green]No vulnerabilities identified.[/green]")
        return

    console.print("\n[bold]Findings:[/bold]")
    for port in result.open_ports:
        for vuln in port.vulnerabilities:
            style = SEVERITY_STYLES[vuln.severity]
            console.print(
                f"  [{style}]{vuln.severity.value:8}[/] {port.port}/tcp  {escape(vuln.title)}"
            )
            console.print(f"           [dim]{escape(vuln.recommendation)}[/dim]")

    summary = result.summary
    console.print(
        f"\n[bold red]{summary.critical} critical[/], "
        f"[red]{summary.high} high[/], "
        f"[yellow]{summary.medium} medium[/], "
        f"[cyan]{summary.low} low[/]"
    )
