from __future__ import annotations


class PaymentException(Exception):
    """Base class for errors raised by payment drivers."""


class PurchaseFailedException(PaymentException):
    """The provider refused to create a transaction."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or "")
        self.detail = detail


class InvalidPaymentException(PaymentException):
    """The provider did not confirm the payment."""

    def __init__(self, message: str, code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class DriverNotFoundException(PaymentException):
    pass


class InvalidConfigurationException(PaymentException):
    pass
