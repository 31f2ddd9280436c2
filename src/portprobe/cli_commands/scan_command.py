"""Scan CLI command."""

import json

import typer

from portprobe.errors import PortProbeError
from portprobe.modules.models import PortRange, ProbeResult

from .deps import cli_module
from .render import exit_code_for, render_scan_result
from .shared import EXIT_ERROR, EXIT_OK, app, console


@app.command()
def scan(
    host: str = typer.Argument(..., help="Hostname or IP address to scan"),
    quick: bool = typer.Option(False, "--quick", "-q", help="Scan common ports only"),
    port_range: str | None = typer.Option(
        None,
        "--range",
        "-r",
        help="Port range to scan (e.g., 1-1000); default is 1-65535",
    ),
    timeout: int | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Connect timeout per probe in milliseconds",
    ),
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Maximum probes in flight",
    ),
    no_fingerprint: bool = typer.Option(
        False, "--no-fingerprint", help="Skip service fingerprinting"
    ),
    no_vuln_check: bool = typer.Option(
        False, "--no-vuln-check", help="Skip vulnerability analysis"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Scan a host for open TCP ports and assess what is listening."""
    cli = cli_module()
    cli.configure_logging(verbose)

    if quick and port_range:
        console.print("[red]--quick and --range cannot be combined.[/red]")
        raise typer.Exit(EXIT_ERROR)

    try:
        parsed_range = PortRange.parse(port_range) if port_range else None
        options = cli.build_scan_options(
            port_range=parsed_range,
            connect_timeout_ms=timeout,
            max_concurrency=concurrency,
            enable_fingerprinting=False if no_fingerprint else None,
            enable_vulnerability_checks=False if no_vuln_check else None,
        )
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(EXIT_ERROR) from exc

    progress = {"done": 0}

    def on_result(result: ProbeResult) -> None:
        progress["done"] += 1
        if result.is_open and not json_output:
            console.print(f"[green]+[/green] {result.port}/tcp open ({result.info.service})")

    scanner = cli.PortScanner(
        options,
        fingerprinter=cli.ServiceFingerprinter(timeout=cli.get_fingerprint_timeout()),
        on_result=on_result,
    )

    async def run_scan():
        if quick:
            return await scanner.quick_scan(host)
        return await scanner.scan(host)

    if not json_output:
        port_range_value = options.port_range
        scope = (
            "common ports"
            if quick
            else f"ports {port_range_value.start}-{port_range_value.end}"
        )
        console.print(f"[blue]Scanning {host} ({scope})...[/blue]")

    try:
        result = cli.safe_async_run(run_scan())
    except PortProbeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(EXIT_ERROR) from exc
    except KeyboardInterrupt as exc:
        console.print(f"\n[yellow]Scan interrupted after {progress['done']} ports.[/yellow]")
        raise typer.Exit(EXIT_ERROR) from exc
    except Exception as exc:
        console.print(f"[red]Scan failed: {exc}[/red]")
        raise typer.Exit(EXIT_ERROR) from exc

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        render_scan_result(console, result)

    code = exit_code_for(result)
    if code != EXIT_OK:
        raise typer.Exit(code)
