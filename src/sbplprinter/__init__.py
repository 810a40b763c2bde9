"""SBPL Label Printer Driver (raw TCP and Windows spooler)."""

__version__ = "0.1.0"

from .exceptions import (
    PrinterError,
    ValidationError,
    TransportError,
    ProtocolTimeoutError,
    DeviceFaultError,
    TransmissionCancelledError,
    ImageError,
)
from .printer import SBPLPrinter
from .buffer import CommandBuffer
from .stream import StreamController
from .status import StatusMonitor
from .protocol import TransmissionProtocol, TransmissionState, TransmissionAttempt
from .connection import TransportPort, SocketConnection, SpoolerConnection
from .config import TransmissionConfig, load_config
from .responses import StatusFrame, HealthState
from .sbpl_commands import SBPLCommands, SensorType, DensitySpec
from .barcodes import Barcode, BarcodeType, BarcodeRatio
from .graphics import Graphic, MAX_IMAGE_DIMENSION

__all__ = [
    "SBPLPrinter",
    "PrinterError",
    "ValidationError",
    "TransportError",
    "ProtocolTimeoutError",
    "DeviceFaultError",
    "TransmissionCancelledError",
    "ImageError",
    "CommandBuffer",
    "StreamController",
    "StatusMonitor",
    "TransmissionProtocol",
    "TransmissionState",
    "TransmissionAttempt",
    "TransportPort",
    "SocketConnection",
    "SpoolerConnection",
    "TransmissionConfig",
    "load_config",
    "StatusFrame",
    "HealthState",
    "SBPLCommands",
    "SensorType",
    "DensitySpec",
    "Barcode",
    "BarcodeType",
    "BarcodeRatio",
    "Graphic",
    "MAX_IMAGE_DIMENSION",
]
