from __future__ import annotations

import uuid as uuid_lib
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

Amount = Union[int, Decimal]


@dataclass
class Invoice:
    """A payment request owned by the caller.

    Drivers read ``amount``, ``uuid`` and ``details`` and fill in
    ``transaction_id`` once the provider has issued one.
    """

    amount: Amount = 0
    uuid: str = field(default_factory=lambda: str(uuid_lib.uuid4()))
    details: Dict[str, Any] = field(default_factory=dict)
    transaction_id: Optional[str] = None

    def detail(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Invoice":
        if isinstance(key, Mapping):
            self.details.update(key)
        else:
            self.details[key] = value
        return self

    def get_detail(self, key: str, default: Any = None) -> Any:
        return self.details.get(key, default)

    def get_details(self) -> Dict[str, Any]:
        return dict(self.details)
