from __future__ import annotations

from typing import Dict, Optional, Type

from multipay.config import SamaSettings
from multipay.drivers.base import Driver
from multipay.drivers.sama import SamaDriver
from multipay.exceptions import DriverNotFoundException
from multipay.invoice import Invoice

DRIVERS: Dict[str, Type[Driver]] = {
    "sama": SamaDriver,
}


def create_driver(name: str, invoice: Invoice, settings: Optional[SamaSettings] = None) -> Driver:
    """Build the driver registered under ``name`` for ``invoice``.

    Settings are read from the environment when not given.
    """
    driver_cls = DRIVERS.get((name or "").strip().lower())
    if driver_cls is None:
        raise DriverNotFoundException(f"Unsupported payment driver: {name}")
    if settings is None:
        settings = SamaSettings.from_env()
    return driver_cls(invoice, settings)
