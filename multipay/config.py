from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, List, Mapping

from multipay.exceptions import InvalidConfigurationException

# camelCase keys used by the provider's published config
_ALIASES = {
    "callbackUrl": "callback_url",
    "apiPurchaseUrl": "api_purchase_url",
    "apiVerificationUrl": "api_verification_url",
    "authToken": "auth_token",
    "merchantId": "merchant_id",
}

_REQUIRED = (
    "callback_url",
    "api_purchase_url",
    "api_verification_url",
    "auth_token",
    "merchant_id",
)


def _parse_timeout(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidConfigurationException(f"Invalid HTTP timeout: {raw!r}") from None
    if value <= 0:
        raise InvalidConfigurationException(f"HTTP timeout must be positive: {raw!r}")
    return value


@dataclass(frozen=True)
class SamaSettings:
    currency: str = "T"
    callback_url: str = ""
    api_purchase_url: str = ""
    api_verification_url: str = ""
    auth_token: str = ""
    merchant_id: str = ""
    timeout: float = 30.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SamaSettings":
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
        if "timeout" in kwargs:
            kwargs["timeout"] = _parse_timeout(kwargs["timeout"])
        return cls(**kwargs)

    @classmethod
    def from_env(cls) -> "SamaSettings":
        return cls(
            currency=os.getenv("SAMA_CURRENCY", "T"),
            callback_url=os.getenv("SAMA_CALLBACK_URL", ""),
            api_purchase_url=os.getenv("SAMA_API_PURCHASE_URL", ""),
            api_verification_url=os.getenv("SAMA_API_VERIFICATION_URL", ""),
            auth_token=os.getenv("SAMA_AUTH_TOKEN", ""),
            merchant_id=os.getenv("SAMA_MERCHANT_ID", ""),
            timeout=_parse_timeout(os.getenv("SAMA_HTTP_TIMEOUT", "30")),
        )

    def missing_fields(self) -> List[str]:
        return [name for name in _REQUIRED if not getattr(self, name)]
