from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union


class Receipt:
    """Proof of a verified payment, normalised across drivers."""

    def __init__(self, driver: str, reference_id: Optional[str], date: Optional[datetime] = None) -> None:
        self.driver = driver
        self.reference_id = reference_id
        self.date = date or datetime.now(timezone.utc)
        self.details: Dict[str, Any] = {}

    def detail(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Receipt":
        if isinstance(key, Mapping):
            self.details.update(key)
        else:
            self.details[key] = value
        return self

    def get_detail(self, key: str, default: Any = None) -> Any:
        return self.details.get(key, default)

    def get_details(self) -> Dict[str, Any]:
        return dict(self.details)

    def __repr__(self) -> str:
        return f"Receipt(driver={self.driver!r}, reference_id={self.reference_id!r})"
