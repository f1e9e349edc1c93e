from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Callable, Dict, List

import httpx
import pytest

from multipay.config import SamaSettings
from multipay.drivers.sama import VERIFY_ERROR_DEFAULT, SamaDriver
from multipay.exceptions import InvalidPaymentException, PurchaseFailedException
from multipay.invoice import Invoice

PURCHASE_URL = "https://sama.test/api/purchase/"
VERIFY_URL = "https://sama.test/api/verify/"


def _settings(**overrides: Any) -> SamaSettings:
    data: Dict[str, Any] = {
        "currency": "T",
        "callbackUrl": "https://shop.test/callback",
        "apiPurchaseUrl": PURCHASE_URL,
        "apiVerificationUrl": VERIFY_URL,
        "authToken": "SECRET-KEY",
        "merchantId": "MERCHANT-1",
    }
    data.update(overrides)
    return SamaSettings.from_mapping(data)


@pytest.fixture
def sent() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_driver(sent: List[httpx.Request]) -> Callable[..., SamaDriver]:
    def _make(response: httpx.Response, invoice: Invoice | None = None, **settings: Any) -> SamaDriver:
        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return response

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SamaDriver(invoice or Invoice(amount=1000), _settings(**settings), client=client)

    return _make


def _body(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)


@pytest.mark.asyncio
async def test_purchase_converts_toman_to_rial(make_driver, sent) -> None:
    driver = make_driver(httpx.Response(200, json={"token": "abc"}), Invoice(amount=1500), currency="T")
    await driver.purchase()
    assert _body(sent[0])["price"] == 15000


@pytest.mark.asyncio
async def test_purchase_sends_rial_amount_unchanged(make_driver, sent) -> None:
    driver = make_driver(httpx.Response(201, json={"token": "abc"}), Invoice(amount=1500), currency="R")
    await driver.purchase()
    assert _body(sent[0])["price"] == 1500


@pytest.mark.asyncio
async def test_purchase_decimal_amount_is_serialisable(make_driver, sent) -> None:
    driver = make_driver(httpx.Response(200, json={"token": "abc"}), Invoice(amount=Decimal("250")))
    await driver.purchase()
    assert _body(sent[0])["price"] == 2500


@pytest.mark.asyncio
async def test_purchase_payload_and_headers(make_driver, sent) -> None:
    invoice = Invoice(amount=100, uuid="inv-1").detail("mobile", "09121234567")
    driver = make_driver(httpx.Response(200, json={"token": "abc"}), invoice)
    await driver.purchase()

    request = sent[0]
    assert request.method == "POST"
    assert str(request.url) == PURCHASE_URL
    assert request.headers["Authorization"] == "Api-Key SECRET-KEY"
    assert request.headers["Accept"] == "application/json"
    assert _body(request) == {
        "price": 1000,
        "callback_url": "https://shop.test/callback",
        "buyer_phone": "09121234567",
        "client_id": "inv-1",
    }


@pytest.mark.asyncio
async def test_purchase_without_mobile_sends_null(make_driver, sent) -> None:
    invoice = Invoice(amount=100).detail("mobile", "")
    driver = make_driver(httpx.Response(200, json={"token": "abc"}), invoice)
    await driver.purchase()
    assert _body(sent[0])["buyer_phone"] is None


@pytest.mark.asyncio
async def test_purchase_success_stores_transaction_id(make_driver) -> None:
    invoice = Invoice(amount=100)
    driver = make_driver(httpx.Response(200, json={"token": "abc"}), invoice)

    transaction_id = await driver.purchase()

    assert transaction_id == "abc"
    assert invoice.transaction_id == "abc"


@pytest.mark.asyncio
async def test_purchase_failure_raises_with_detail(make_driver) -> None:
    invoice = Invoice(amount=100)
    driver = make_driver(httpx.Response(400, json={"detail": "bad request"}), invoice)

    with pytest.raises(PurchaseFailedException) as exc_info:
        await driver.purchase()

    assert str(exc_info.value) == "bad request"
    assert exc_info.value.detail == "bad request"
    assert invoice.transaction_id is None


@pytest.mark.asyncio
async def test_purchase_failure_with_non_json_body(make_driver) -> None:
    driver = make_driver(httpx.Response(502, text="<html>Bad Gateway</html>"))
    with pytest.raises(PurchaseFailedException) as exc_info:
        await driver.purchase()
    assert exc_info.value.detail is None


@pytest.mark.asyncio
async def test_transport_errors_propagate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    driver = SamaDriver(Invoice(amount=100), _settings(), client=client)
    with pytest.raises(httpx.ConnectError):
        await driver.purchase()


def test_pay_builds_get_redirect(make_driver, sent) -> None:
    invoice = Invoice(amount=100, transaction_id="abc").detail("payment_link", "https://pay.example/")
    driver = make_driver(httpx.Response(200), invoice)

    form = driver.pay()

    assert form.action == "https://pay.example/abc"
    assert form.method == "GET"
    assert form.inputs == {}
    assert sent == []


VERIFIED_BODY = {
    "is_paid": True,
    "fee": 100,
    "payment": {"reference_number": "R1", "transaction_code": "T1", "request_id": "Q1"},
    "paymentReqId": "P1",
    "paymentId": "PID1",
}


@pytest.mark.asyncio
async def test_verify_success_builds_receipt(make_driver, sent) -> None:
    driver = make_driver(httpx.Response(200, json=VERIFIED_BODY))

    receipt = await driver.verify()

    assert receipt.driver == "sama"
    assert receipt.reference_id == "R1"
    assert receipt.get_details() == {
        "isPaid": True,
        "fee": 100,
        "transactionCode": "T1",
        "requestId": "Q1",
        "paymentReqId": "P1",
        "paymentId": "PID1",
    }
    assert str(sent[0].url) == VERIFY_URL
    assert sent[0].headers["Authorization"] == "Api-Key SECRET-KEY"
    assert _body(sent[0]) == {"api": "MERCHANT-1"}


@pytest.mark.asyncio
async def test_verify_error_status_but_paid_still_returns_receipt(make_driver) -> None:
    driver = make_driver(httpx.Response(400, json=VERIFIED_BODY))
    receipt = await driver.verify()
    assert receipt.reference_id == "R1"


@pytest.mark.asyncio
async def test_verify_missing_fields_become_none(make_driver) -> None:
    driver = make_driver(httpx.Response(200, json={"is_paid": True}))
    receipt = await driver.verify()
    assert receipt.reference_id is None
    assert receipt.get_detail("transactionCode") is None
    assert receipt.get_detail("paymentId") is None
    assert receipt.get_detail("isPaid") is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "detail,message",
    [
        (40001, "شماره فروشنده پیدا نشد"),
        (40002, "شماره خریدار پیدا نشد"),
        ("40003", "آدرس url توکن یبعانه معتبر نیست"),
    ],
)
async def test_verify_known_error_codes(make_driver, detail, message) -> None:
    driver = make_driver(httpx.Response(400, json={"is_paid": False, "detail": detail}))

    with pytest.raises(InvalidPaymentException) as exc_info:
        await driver.verify()

    assert str(exc_info.value) == message
    assert exc_info.value.code == int(detail)


@pytest.mark.asyncio
async def test_verify_unknown_error_code_uses_generic_message(make_driver) -> None:
    driver = make_driver(httpx.Response(400, json={"is_paid": False, "detail": 99999}))

    with pytest.raises(InvalidPaymentException) as exc_info:
        await driver.verify()

    assert exc_info.value.message == VERIFY_ERROR_DEFAULT
    assert exc_info.value.code == 99999


@pytest.mark.asyncio
async def test_verify_textual_detail_maps_to_code_zero(make_driver) -> None:
    driver = make_driver(httpx.Response(404, json={"detail": "Not found."}))

    with pytest.raises(InvalidPaymentException) as exc_info:
        await driver.verify()

    assert exc_info.value.message == VERIFY_ERROR_DEFAULT
    assert exc_info.value.code == 0


@pytest.mark.asyncio
async def test_driver_closes_its_own_client_on_exit() -> None:
    driver = SamaDriver(Invoice(amount=100), _settings())
    async with driver:
        pass
    assert driver._client.is_closed


@pytest.mark.asyncio
async def test_driver_leaves_injected_client_open(make_driver) -> None:
    driver = make_driver(httpx.Response(200, json={"token": "abc"}))
    async with driver:
        await driver.purchase()
    assert not driver._client.is_closed
    await driver._client.aclose()


@pytest.mark.asyncio
async def test_verify_non_object_payment_treated_as_missing(make_driver) -> None:
    driver = make_driver(httpx.Response(200, json={"is_paid": True, "fee": 5, "payment": "n/a"}))
    receipt = await driver.verify()
    assert receipt.reference_id is None
    assert receipt.get_detail("transactionCode") is None
    assert receipt.get_detail("requestId") is None
    assert receipt.get_detail("fee") == 5
