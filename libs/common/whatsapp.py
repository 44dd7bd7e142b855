"""WhatsApp order request messages and ``wa.me`` deep links."""

import re
from typing import Iterable, Optional, Protocol
from urllib.parse import quote

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


class MessageLine(Protocol):
    name: str
    quantity: int
    total: int


def build_order_message(
    *,
    customer_name: str,
    customer_phone: str,
    customer_address: str,
    lines: Iterable[MessageLine],
    subtotal: int,
    delivery_date: Optional[str] = None,
) -> str:
    """Plain-text order request listing the customer and the cart lines."""
    parts = [
        "New Order Request",
        "",
        "Customer Details:",
        f"- Name: {customer_name}",
        f"- Phone: {customer_phone}",
        f"- Address: {customer_address}",
    ]
    if delivery_date:
        parts.append(f"- Expected Delivery: {delivery_date}")
    parts.append("")
    parts.append("Order Items:")
    for idx, line in enumerate(lines, start=1):
        parts.append(f"{idx}. {line.name} x {line.quantity} = ₹{line.total}")
    parts.append("")
    parts.append(f"Subtotal: ₹{subtotal}")
    parts.append("(Subtotal does not include shipping charges or discounts)")
    parts.append("")
    parts.append("Please confirm availability and provide final invoice total.")
    return "\n".join(parts)


def build_whatsapp_url(phone_number: str, text: str) -> str:
    """``https://wa.me/<digits>?text=<encoded>`` for the given number."""
    digits = re.sub(r"[^\d]", "", phone_number)
    return f"https://wa.me/{digits}?text={quote(text, safe=_URI_COMPONENT_SAFE)}"
