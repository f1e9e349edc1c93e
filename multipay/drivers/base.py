from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from multipay.invoice import Invoice
from multipay.receipt import Receipt
from multipay.redirection import RedirectionForm


class Driver(ABC):
    """Contract every gateway driver implements.

    A driver is built around one invoice. ``purchase`` registers the invoice
    with the provider, ``pay`` describes where to send the payer, and
    ``verify`` confirms the result once the payer comes back.
    """

    name: str = "base"

    def __init__(self, invoice: Invoice, settings: Any) -> None:
        self.invoice = invoice
        self.settings = settings

    @abstractmethod
    async def purchase(self) -> str:
        """Register the invoice with the provider and return the transaction id."""
        raise NotImplementedError

    @abstractmethod
    def pay(self) -> RedirectionForm:
        raise NotImplementedError

    @abstractmethod
    async def verify(self) -> Receipt:
        raise NotImplementedError

    def redirect_with_form(
        self,
        action: str,
        inputs: Optional[Mapping[str, Any]] = None,
        method: str = "POST",
    ) -> RedirectionForm:
        return RedirectionForm(action, inputs or {}, method)
