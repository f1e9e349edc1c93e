from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from multipay.config import SamaSettings
from multipay.drivers.base import Driver
from multipay.exceptions import InvalidPaymentException, PurchaseFailedException
from multipay.invoice import Invoice
from multipay.receipt import Receipt
from multipay.redirection import RedirectionForm
from multipay.utils.money import rials, to_rial

logger = logging.getLogger(__name__)

_OK_STATUSES = {200, 201}

VERIFY_ERRORS: Dict[int, str] = {
    40001: "شماره فروشنده پیدا نشد",
    40002: "شماره خریدار پیدا نشد",
    40003: "آدرس url توکن یبعانه معتبر نیست",
}
VERIFY_ERROR_DEFAULT = "تراکنش با خطا مواجه شد."


def _error_code(detail: Any) -> int:
    try:
        return int(detail)
    except (TypeError, ValueError):
        return 0


class SamaDriver(Driver):
    name = "sama"

    def __init__(
        self,
        invoice: Invoice,
        settings: SamaSettings,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(invoice, settings)
        # an injected client stays owned by the caller
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.timeout, connect=10.0))

    async def __aenter__(self) -> "SamaDriver":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Api-Key {self.settings.auth_token}",
            "Accept": "application/json",
        }

    async def _post(self, url: str, payload: Dict[str, Any]) -> tuple[int, Dict[str, Any]]:
        # Error statuses are returned to the caller, never raised here.
        try:
            resp = await self._client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.exception("HTTP error on POST %s: %s", url, e)
            raise
        try:
            body = resp.json()
        except ValueError:
            logger.warning("Non-JSON response from %s (status %s)", url, resp.status_code)
            body = {}
        if not isinstance(body, dict):
            body = {}
        return resp.status_code, body

    def _mobile(self) -> Optional[str]:
        return self.invoice.get_detail("mobile") or None

    async def purchase(self) -> str:
        price = to_rial(self.invoice.amount, self.settings.currency)
        data = {
            "price": price,
            "callback_url": self.settings.callback_url,
            "buyer_phone": self._mobile(),
            "client_id": self.invoice.uuid,
        }
        status, body = await self._post(self.settings.api_purchase_url, data)

        if status not in _OK_STATUSES:
            logger.warning(
                "Sama purchase failed",
                extra={"extra": {"invoice": self.invoice.uuid, "status": status, "detail": body.get("detail")}},
            )
            raise PurchaseFailedException(body.get("detail"))

        self.invoice.transaction_id = body.get("token")
        logger.info("Sama purchase created for invoice %s (%s)", self.invoice.uuid, rials(price))
        return self.invoice.transaction_id

    def pay(self) -> RedirectionForm:
        # payment_link carries its own trailing separator
        url = f"{self.invoice.get_detail('payment_link') or ''}{self.invoice.transaction_id or ''}"
        return self.redirect_with_form(url, {}, "GET")

    async def verify(self) -> Receipt:
        # Only the merchant id is sent; the provider resolves the pending payment itself.
        data = {"api": self.settings.merchant_id}
        status, body = await self._post(self.settings.api_verification_url, data)

        if status not in _OK_STATUSES and not body.get("is_paid"):
            logger.warning(
                "Sama verification failed",
                extra={"extra": {"invoice": self.invoice.uuid, "status": status, "detail": body.get("detail")}},
            )
            self._not_verified(body.get("detail"))

        payment = body.get("payment")
        if not isinstance(payment, dict):
            payment = {}
        receipt = self._create_receipt(payment.get("reference_number"), body, payment)
        logger.info("Sama payment verified for invoice %s, reference %s", self.invoice.uuid, receipt.reference_id)
        return receipt

    def _create_receipt(self, reference_id: Optional[str], body: Dict[str, Any], payment: Dict[str, Any]) -> Receipt:
        receipt = Receipt(self.name, reference_id)
        receipt.detail({
            "isPaid": body.get("is_paid"),
            "fee": body.get("fee"),
            "transactionCode": payment.get("transaction_code"),
            "requestId": payment.get("request_id"),
            "paymentReqId": body.get("paymentReqId"),
            "paymentId": body.get("paymentId"),
        })
        return receipt

    def _not_verified(self, status: Any) -> None:
        code = _error_code(status)
        raise InvalidPaymentException(VERIFY_ERRORS.get(code, VERIFY_ERROR_DEFAULT), code)
