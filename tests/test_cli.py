"""Tests for CLI functionality."""

from unittest.mock import AsyncMock, MagicMock, patch

import click
import pytest
from click.testing import CliRunner
from PIL import Image

from sbplprinter.cache import CachedPrinter
from sbplprinter.cli import main, parse_address, validate_address
from sbplprinter.exceptions import DeviceFaultError, ProtocolTimeoutError, TransportError
from sbplprinter.responses import StatusFrame

from conftest import make_frame


class TestAddressValidation:
    """Test CLI printer address validation."""

    def test_host_gets_default_port(self):
        assert validate_address(None, None, "192.168.1.50") == "192.168.1.50:9100"

    def test_host_and_port(self):
        assert validate_address(None, None, "printer.local:9101") == "printer.local:9101"

    def test_ipv6(self):
        assert validate_address(None, None, "[fe80::1]:9100") == "[fe80::1]:9100"
        assert parse_address("[fe80::1]:9100") == ("fe80::1", 9100)

    @pytest.mark.parametrize("value", ["bad host", "host:", "host:99999", "host:0"])
    def test_invalid_address_raises_bad_parameter(self, value):
        with pytest.raises(click.BadParameter) as exc_info:
            validate_address(None, None, value)
        assert "Expected HOST" in str(exc_info.value)

    def test_none_address_returns_none(self):
        """None is allowed so the cached printer can be used."""
        assert validate_address(None, None, None) is None


@pytest.fixture
def mock_printer():
    """Patch SBPLPrinter and the cache in the CLI module."""
    printer = MagicMock()
    printer.open = AsyncMock()
    printer.close = AsyncMock()
    printer.send = AsyncMock(return_value=42)
    printer.get_status = AsyncMock(return_value=StatusFrame.parse(make_frame("A", name="JOB")))
    printer.barcode.encode.return_value = b"\x1bBG02100X"

    with patch("sbplprinter.cli.SBPLPrinter") as mock_cls, \
            patch("sbplprinter.cli.save_printer") as mock_save, \
            patch("sbplprinter.cli.load_cached_printer", return_value=None):
        mock_cls.network.return_value = printer
        printer.network = mock_cls.network
        printer.save_printer = mock_save
        yield printer


class TestCLICommands:
    """Test CLI commands with a mocked printer."""

    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("status", "test", "print", "barcode", "raw", "clear-cache"):
            assert command in result.output

    def test_status(self, mock_printer):
        result = CliRunner().invoke(main, ["status", "-a", "10.0.0.5"])
        assert result.exit_code == 0, result.output
        assert "Connecting to 10.0.0.5:9100" in result.output
        assert "ready" in result.output
        mock_printer.network.assert_called_once()
        assert mock_printer.network.call_args[0][:2] == ("10.0.0.5", 9100)
        mock_printer.save_printer.assert_called_once_with("10.0.0.5:9100")
        mock_printer.close.assert_awaited_once()

    def test_test_label(self, mock_printer):
        result = CliRunner().invoke(main, ["test", "-a", "10.0.0.5", "--copies", "3"])
        assert result.exit_code == 0, result.output
        mock_printer.send.assert_awaited_once_with(number_of_pages=3)
        mock_printer.barcode.code128.assert_called_once()

    def test_barcode(self, mock_printer):
        result = CliRunner().invoke(
            main, ["barcode", "HELLO", "--type", "code39", "-a", "10.0.0.5"]
        )
        assert result.exit_code == 0, result.output
        assert "code39" in result.output
        mock_printer.add_raw.assert_called_once_with(b"\x1bBG02100X")

    def test_print_image(self, mock_printer, tmp_path):
        path = tmp_path / "label.png"
        Image.new("L", (8, 8), 0).save(path)
        result = CliRunner().invoke(
            main, ["print", str(path), "-a", "10.0.0.5", "--density", "4"]
        )
        assert result.exit_code == 0, result.output
        mock_printer.set_density.assert_called_once()
        mock_printer.graphic.print_image.assert_called_once_with(str(path), x=1, y=1)

    def test_deadline_override(self, mock_printer):
        result = CliRunner().invoke(main, ["status", "-a", "10.0.0.5", "--deadline", "2.5"])
        assert result.exit_code == 0, result.output
        config = mock_printer.network.call_args[1]["config"]
        assert config.deadline == 2.5

    def test_device_fault_exits_1(self, mock_printer):
        mock_printer.send.side_effect = DeviceFaultError("Printer reported fault", health=ord("G"))
        result = CliRunner().invoke(main, ["test", "-a", "10.0.0.5"])
        assert result.exit_code == 1
        assert "Printer fault" in result.output
        mock_printer.close.assert_awaited_once()
        mock_printer.save_printer.assert_not_called()

    def test_busy_timeout_exits_1(self, mock_printer):
        mock_printer.send.side_effect = ProtocolTimeoutError("busy", attempts=3)
        result = CliRunner().invoke(main, ["test", "-a", "10.0.0.5"])
        assert result.exit_code == 1
        assert "Printer busy" in result.output

    def test_connection_error_exits_1(self, mock_printer):
        mock_printer.open.side_effect = TransportError("Failed to connect")
        result = CliRunner().invoke(main, ["status", "-a", "10.0.0.5"])
        assert result.exit_code == 1
        assert "Connection error" in result.output

    def test_no_address_and_no_cache(self, mock_printer):
        result = CliRunner().invoke(main, ["status"])
        assert result.exit_code == 1
        assert "none cached" in result.output
        mock_printer.network.assert_not_called()

    def test_cached_address_used(self, mock_printer):
        cached = CachedPrinter(address="10.0.0.9:9100", last_used=0)
        with patch("sbplprinter.cli.load_cached_printer", return_value=cached):
            result = CliRunner().invoke(main, ["status"])
        assert result.exit_code == 0, result.output
        assert "Using cached printer 10.0.0.9:9100" in result.output

    def test_bad_config_file(self, mock_printer, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")
        result = CliRunner().invoke(main, ["--config", str(path), "status", "-a", "10.0.0.5"])
        assert result.exit_code == 1
        assert "Config error" in result.output


class TestRawCommand:
    """Test the raw command's safety prompt."""

    def test_invalid_hex(self, mock_printer):
        result = CliRunner().invoke(main, ["raw", "zz", "-a", "10.0.0.5", "--force"])
        assert result.exit_code == 1
        assert "Invalid hex" in result.output

    def test_prompt_declined(self, mock_printer):
        result = CliRunner().invoke(main, ["raw", "1b4830303031", "-a", "10.0.0.5"], input="n\n")
        assert result.exit_code == 0
        assert "WARNING" in result.output
        assert "Aborted" in result.output
        mock_printer.network.assert_not_called()

    def test_force_sends(self, mock_printer):
        result = CliRunner().invoke(main, ["raw", "1b4830303031", "-a", "10.0.0.5", "--force"])
        assert result.exit_code == 0, result.output
        mock_printer.add_raw.assert_called_once_with(b"\x1bH0001")
        mock_printer.send.assert_awaited_once()


class TestClearCache:
    """Test the clear-cache command."""

    def test_clear(self):
        with patch("sbplprinter.cli.clear_cache", return_value=True):
            result = CliRunner().invoke(main, ["clear-cache"])
        assert "cleared" in result.output

    def test_nothing_cached(self):
        with patch("sbplprinter.cli.clear_cache", return_value=False):
            result = CliRunner().invoke(main, ["clear-cache"])
        assert "No cached printer" in result.output
