"""Unit tests for WhatsApp order messages."""

from types import SimpleNamespace
from urllib.parse import unquote

import pytest
from libs.common.whatsapp import build_order_message, build_whatsapp_url


def _line(name, quantity, total):
    return SimpleNamespace(name=name, quantity=quantity, total=total)


@pytest.mark.unit
def test_message_lists_customer_and_items():
    message = build_order_message(
        customer_name="Asha",
        customer_phone="9876543210",
        customer_address="12 Lake Road",
        lines=[_line("Truffle (500grams)", 2, 598), _line("Bun", 1, 150)],
        subtotal=748,
    )

    assert message.startswith("New Order Request")
    assert "- Name: Asha" in message
    assert "1. Truffle (500grams) x 2 = ₹598" in message
    assert "2. Bun x 1 = ₹150" in message
    assert "Subtotal: ₹748" in message
    assert "Expected Delivery" not in message


@pytest.mark.unit
def test_message_includes_delivery_date_when_given():
    message = build_order_message(
        customer_name="Asha",
        customer_phone="98",
        customer_address="Home",
        lines=[],
        subtotal=0,
        delivery_date="2026-10-24",
    )
    assert "- Expected Delivery: 2026-10-24" in message


@pytest.mark.unit
def test_whatsapp_url_strips_number_and_encodes_text():
    url = build_whatsapp_url("+91 98765-43210", "Hi there\nTotal: ₹748")

    assert url.startswith("https://wa.me/919876543210?text=")
    encoded = url.split("?text=", 1)[1]
    assert " " not in encoded and "\n" not in encoded
    assert "%20" in encoded
    assert unquote(encoded) == "Hi there\nTotal: ₹748"
