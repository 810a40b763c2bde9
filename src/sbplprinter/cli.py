"""
Command-Line Interface for SBPL Printers.

Usage:
    sbpl status -a HOST[:PORT]       - Show printer status
    sbpl test -a HOST[:PORT]         - Print a test label
    sbpl print IMAGE -a HOST[:PORT]  - Print an image
    sbpl barcode DATA -a HOST[:PORT] - Print a barcode
    sbpl raw HEX -a HOST[:PORT]      - Send raw SBPL bytes
    sbpl clear-cache                 - Forget the last used printer
"""

import asyncio
import logging
import re
import sys
from typing import Awaitable, Callable, Optional

import click

from .barcodes import BarcodeType
from .cache import clear_cache, load_cached_printer, save_printer
from .config import DEFAULT_PORT, TransmissionConfig, load_config
from .exceptions import (
    DeviceFaultError,
    ImageError,
    PrinterError,
    ProtocolTimeoutError,
    TransportError,
    ValidationError,
)
from .printer import SBPLPrinter
from .sbpl_commands import DensitySpec

# host, host:port, or [ipv6]:port
ADDRESS_PATTERN = re.compile(r"^(?:\[(?P<v6>[0-9A-Fa-f:]+)\]|(?P<host>[A-Za-z0-9.\-]+))(?::(?P<port>\d{1,5}))?$")

BARCODE_TYPES = {
    "code128": BarcodeType.CODE128,
    "code39": BarcodeType.CODE39,
    "jan13": BarcodeType.JAN13,
    "jan8": BarcodeType.JAN8,
    "codabar": BarcodeType.CODABAR,
    "itf": BarcodeType.ITF,
}


def parse_address(value: str) -> tuple[str, int]:
    """Split "host[:port]" into (host, port).

    Raises:
        ValueError: If the address is malformed or the port is out of range
    """
    match = ADDRESS_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid printer address: '{value}'")
    host = match.group("v6") or match.group("host")
    port = int(match.group("port")) if match.group("port") else DEFAULT_PORT
    if not (1 <= port <= 65535):
        raise ValueError(f"Invalid port: {port}")
    return host, port


def validate_address(ctx, param, value):
    """Validate a printer address option.

    Accepts HOST, HOST:PORT or [IPV6]:PORT. The port defaults to 9100.

    Returns:
        Normalized "host:port" string, or None if not given

    Raises:
        click.BadParameter: If the address format is invalid
    """
    if value is None:
        return None
    try:
        host, port = parse_address(value)
    except ValueError as e:
        raise click.BadParameter(
            f"{e}. Expected HOST, HOST:PORT or [IPV6]:PORT"
        ) from None
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def resolve_address(address: Optional[str]) -> str:
    """Use the given address, or fall back to the cached printer."""
    if address is not None:
        return address
    cached = load_cached_printer()
    if cached is None:
        click.echo("No printer address given and none cached. Use --address.", err=True)
        sys.exit(1)
    click.echo(f"Using cached printer {cached.address}")
    return cached.address


def build_config(ctx, deadline: Optional[float]) -> TransmissionConfig:
    """Load the config file and apply command-line overrides."""
    try:
        config = load_config(ctx.obj.get("config_path"))
        if deadline is not None:
            config = TransmissionConfig.from_dict({**vars(config), "deadline": deadline})
    except ValidationError as e:
        click.echo(f"Config error: {e}", err=True)
        sys.exit(1)
    return config


def run_job(
    ctx,
    address: Optional[str],
    deadline: Optional[float],
    job: Callable[[SBPLPrinter], Awaitable[None]],
) -> None:
    """Open a session, run job(printer), report errors, and exit 1 on failure."""
    address = resolve_address(address)
    config = build_config(ctx, deadline)
    host, port = parse_address(address)

    async def _run():
        printer = SBPLPrinter.network(host, port, config=config)
        printer.set_debug(ctx.obj["debug"])

        click.echo(f"Connecting to {address}...")
        try:
            await printer.open()
            await job(printer)
            save_printer(address)
        except ValidationError as e:
            click.echo(f"Invalid parameter: {e}", err=True)
            sys.exit(1)
        except ImageError as e:
            click.echo(f"Image error: {e}", err=True)
            sys.exit(1)
        except DeviceFaultError as e:
            click.echo(f"Printer fault: {e}", err=True)
            sys.exit(1)
        except ProtocolTimeoutError as e:
            click.echo(f"Printer busy: {e}", err=True)
            sys.exit(1)
        except TransportError as e:
            click.echo(f"Connection error: {e}", err=True)
            sys.exit(1)
        except PrinterError as e:
            click.echo(f"Printer error: {e}", err=True)
            sys.exit(1)
        finally:
            await printer.close()

    asyncio.run(_run())


address_option = click.option(
    "--address",
    "-a",
    callback=validate_address,
    help="Printer address HOST[:PORT] (if omitted, uses the last printer)",
)
deadline_option = click.option(
    "--deadline",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait for a busy printer",
)


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug output")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default ~/.config/sbplprinter/config.json)",
)
@click.pass_context
def main(ctx, debug, config_path):
    """SBPL Label Printer CLI."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(name)s] %(message)s",
    )


@main.command()
@address_option
@deadline_option
@click.pass_context
def status(ctx, address, deadline):
    """Show the printer's status frame."""

    async def _status(printer: SBPLPrinter):
        frame = await printer.get_status()
        click.echo(str(frame))

    run_job(ctx, address, deadline, _status)


@main.command()
@address_option
@deadline_option
@click.option("--copies", type=click.IntRange(1, 999999), default=1, help="Number of copies")
@click.pass_context
def test(ctx, address, deadline, copies):
    """Print a test label (text and a CODE128 barcode)."""

    async def _test(printer: SBPLPrinter):
        printer.move_to_x(50)
        printer.move_to_y(50)
        printer.add("L0202")
        printer.add("XMSBPL TEST")
        printer.barcode.code128("SBPL-TEST", narrow=2, height=80, x=50, y=120)
        click.echo("Printing test label...")
        written = await printer.send(number_of_pages=copies)
        click.echo(f"Test label sent ({written} bytes)")

    run_job(ctx, address, deadline, _test)


@main.command("print")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@address_option
@deadline_option
@click.option("--x", "x", type=int, default=1, help="Horizontal position in dots")
@click.option("--y", "y", type=int, default=1, help="Vertical position in dots")
@click.option(
    "--density",
    type=click.IntRange(1, 5),
    default=None,
    help="Print density (1-5)",
)
@click.option("--copies", type=click.IntRange(1, 999999), default=1, help="Number of copies")
@click.pass_context
def print_image(ctx, image, address, deadline, x, y, density, copies):
    """Print an image file as an SBPL graphic."""

    async def _print(printer: SBPLPrinter):
        if density is not None:
            printer.set_density(density, DensitySpec.A)
        printer.graphic.print_image(image, x=x, y=y)
        click.echo(f"Printing {image}...")
        written = await printer.send(number_of_pages=copies)
        click.echo(f"Print complete ({written} bytes)")

    run_job(ctx, address, deadline, _print)


@main.command()
@click.argument("data")
@address_option
@deadline_option
@click.option(
    "--type",
    "barcode_type",
    type=click.Choice(sorted(BARCODE_TYPES)),
    default="code128",
    help="Barcode type (default: code128)",
)
@click.option("--narrow", type=click.IntRange(1, 12), default=2, help="Narrow bar width in dots")
@click.option("--height", type=click.IntRange(1, 999), default=100, help="Bar height in dots")
@click.option("--copies", type=click.IntRange(1, 999999), default=1, help="Number of copies")
@click.pass_context
def barcode(ctx, data, address, deadline, barcode_type, narrow, height, copies):
    """Print a barcode using the printer's built-in symbologies.

    Examples:
        sbpl barcode "12345"
        sbpl barcode "HELLO" --type code39
        sbpl barcode "4901234567894" --type jan13 -a 192.168.1.50
    """

    async def _barcode(printer: SBPLPrinter):
        printer.move_to_x(50)
        printer.move_to_y(50)
        printer.add_raw(printer.barcode.encode(BARCODE_TYPES[barcode_type], data, narrow, height))
        click.echo(f"Printing {barcode_type} barcode...")
        written = await printer.send(number_of_pages=copies)
        click.echo(f"Barcode printed ({written} bytes)")

    run_job(ctx, address, deadline, _barcode)


@main.command()
@click.argument("hex_data")
@address_option
@deadline_option
@click.option(
    "--force",
    is_flag=True,
    help="Acknowledge risks and skip warning prompt",
)
@click.pass_context
def raw(ctx, hex_data, address, deadline, force):
    """Send raw hex data to the printer as one job (for debugging/testing).

    The bytes are placed inside the usual STX / ESC A ... ESC Z / ETX
    envelope. WARNING: setting commands sent this way can change the
    printer's stored configuration.
    """
    try:
        data = bytes.fromhex(hex_data)
    except ValueError:
        click.echo("Invalid hex data!", err=True)
        sys.exit(1)

    if not force:
        click.echo(
            "WARNING: Raw mode sends arbitrary data to the printer and can "
            "change its stored configuration.",
            err=True,
        )
        if not click.confirm("Do you want to continue?"):
            click.echo("Aborted.")
            return

    async def _raw(printer: SBPLPrinter):
        click.echo(f"Sending: {data.hex()}")
        printer.add_raw(data)
        written = await printer.send()
        click.echo(f"Sent {written} bytes")

    run_job(ctx, address, deadline, _raw)


@main.command("clear-cache")
def clear_cache_command():
    """Forget the last used printer."""
    if clear_cache():
        click.echo("Cached printer cleared.")
    else:
        click.echo("No cached printer.")


if __name__ == "__main__":
    main()
