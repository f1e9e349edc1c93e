from __future__ import annotations

import html
import json
from typing import Any, Dict, Mapping, Optional

_TEMPLATE = """<!DOCTYPE html>
<html lang="fa" dir="rtl">
<head><meta charset="utf-8"><title>انتقال به درگاه پرداخت</title></head>
<body onload="document.forms[0].submit()">
<form action="{action}" method="{method}">
{inputs}
<noscript><button type="submit">پرداخت</button></noscript>
</form>
</body>
</html>
"""


class RedirectionForm:
    """Tells the web layer where to send the payer's browser."""

    def __init__(self, action: str, inputs: Optional[Mapping[str, Any]] = None, method: str = "POST") -> None:
        self.action = action
        self.inputs: Dict[str, Any] = dict(inputs or {})
        self.method = method.upper()

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "inputs": dict(self.inputs), "method": self.method}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def render(self) -> str:
        fields = "\n".join(
            f'<input type="hidden" name="{html.escape(str(k))}" value="{html.escape(str(v))}">'
            for k, v in self.inputs.items()
        )
        return _TEMPLATE.format(
            action=html.escape(self.action),
            method=html.escape(self.method),
            inputs=fields,
        )

    def __repr__(self) -> str:
        return f"RedirectionForm(action={self.action!r}, method={self.method!r})"
