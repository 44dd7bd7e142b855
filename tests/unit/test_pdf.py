"""Unit tests for invoice PDF generation."""

from datetime import date
from decimal import Decimal

import pytest
from libs.common.pdf import generate_invoice_pdf, invoice_filename, strip_weight_suffix


@pytest.mark.unit
@pytest.mark.parametrize(
    "name, expected",
    [
        ("Chocolate Cake (500grams)", "Chocolate Cake"),
        ("Walnut Brownie (Eggless) (6pieces)", "Walnut Brownie (Eggless)"),
        ("Plum Cake (1kg)", "Plum Cake"),
        ("Plain Bun", "Plain Bun"),
    ],
)
def test_strip_weight_suffix(name, expected):
    assert strip_weight_suffix(name) == expected


@pytest.mark.unit
def test_invoice_filename_sanitizes_customer_name():
    filename = invoice_filename("Asha K. Rao", "0f8fad5b-d9cb-469f-a165-70867728950e")
    assert filename == "Asha-K--Rao-invoice-0f8fad5b.pdf"


@pytest.mark.unit
def test_generate_invoice_pdf_returns_pdf_bytes():
    pdf = generate_invoice_pdf(
        order_id="0f8fad5b-d9cb-469f-a165-70867728950e",
        customer_name="Asha & Co <Bakes>",
        customer_phone="9876543210",
        customer_address=None,
        items=[
            {
                "product_name": "Truffle (500grams)",
                "weight": Decimal("500"),
                "weight_unit": "grams",
                "quantity": 2,
                "product_price": Decimal("299"),
                "total": Decimal("598"),
            },
            {"product_name": "Bun", "quantity": 1, "product_price": 150, "total": 150},
        ],
        subtotal=748,
        shipping_charges=50,
        discount_amount=75,
        total=723,
        business_name="Home Bakery",
        business_subtitle="Fresh every morning",
        business_phone="9000000000",
        order_date=date(2026, 10, 1),
        delivery_date="2026-10-03",
        shipment_number="SHP-1",
    )

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000
