"""
PDF generation utilities using ReportLab.
"""

import io
import re
from datetime import date, datetime
from typing import List, Optional, Union
from xml.sax.saxutils import escape

from libs.common.datetime_utils import format_display_date
from libs.common.pricing import round_price
from libs.common.units import format_weight
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

# Base-14 fonts have no rupee glyph
CURRENCY = "Rs."

BRAND_BROWN = colors.HexColor("#8b4513")
BRAND_TAN = colors.HexColor("#d4a574")
MUTED = colors.HexColor("#666666")

# "Chocolate Cake (500grams)" -> "Chocolate Cake"; "(Eggless)" is kept
_WEIGHT_SUFFIX = re.compile(
    r"\s*\(\d+[^)]*(?:grams?|kg|pieces?|g|ml|l|oz|lb)[^)]*\)\s*$", re.IGNORECASE
)

DateLike = Optional[Union[date, datetime, str]]


def strip_weight_suffix(product_name: str) -> str:
    return _WEIGHT_SUFFIX.sub("", product_name)


def invoice_filename(customer_name: str, order_id: str) -> str:
    """``<sanitized-customer-name>-invoice-<first-8-of-order-id>.pdf``."""
    safe_name = re.sub(r"[^a-zA-Z0-9]", "-", customer_name)
    return f"{safe_name}-invoice-{str(order_id)[:8]}.pdf"


def _money(amount) -> str:
    return f"{CURRENCY} {round_price(amount)}"


def generate_invoice_pdf(
    *,
    order_id: str,
    customer_name: str,
    customer_phone: Optional[str],
    customer_address: Optional[str],
    items: List[
        dict
    ],  # [{"product_name": str, "weight": float, "weight_unit": str, "quantity": int, "product_price": float, "total": int}]
    subtotal,
    shipping_charges,
    discount_amount,
    total,
    business_name: str,
    business_subtitle: Optional[str] = None,
    business_phone: Optional[str] = None,
    business_email: Optional[str] = None,
    order_date: DateLike = None,
    invoice_date: DateLike = None,
    delivery_date: DateLike = None,
    shipment_number: Optional[str] = None,
) -> bytes:
    """
    Generate a PDF invoice for an order.

    Every monetary value is rounded with ``round_price`` before display.
    Returns PDF as bytes for download or email attachment.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"Invoice INV-{str(order_id)[:8]}",
    )

    styles = getSampleStyleSheet()
    elements = []

    title_style = ParagraphStyle(
        "InvoiceTitle",
        parent=styles["Heading1"],
        fontSize=22,
        textColor=BRAND_BROWN,
        alignment=1,
        spaceAfter=4,
    )
    subtitle_style = ParagraphStyle(
        "InvoiceSubtitle",
        parent=styles["Normal"],
        fontSize=10,
        textColor=BRAND_TAN,
        alignment=1,
    )
    meta_style = ParagraphStyle(
        "InvoiceMeta",
        parent=styles["Normal"],
        fontSize=9,
        textColor=MUTED,
        alignment=1,
    )
    heading_style = ParagraphStyle(
        "InvoiceHeading",
        parent=styles["Heading2"],
        fontSize=13,
        textColor=BRAND_BROWN,
        spaceBefore=14,
        spaceAfter=6,
    )
    normal_style = styles["Normal"]

    # Header
    elements.append(Paragraph(escape(business_name), title_style))
    if business_subtitle:
        elements.append(Paragraph(escape(business_subtitle), subtitle_style))
    contact = " | ".join(c for c in (business_phone, business_email) if c)
    if contact:
        elements.append(Paragraph(escape(contact), meta_style))
    elements.append(Spacer(1, 8))
    elements.append(Paragraph(f"Invoice #INV-{str(order_id)[:8]}", meta_style))
    elements.append(Paragraph(f"Order ID: {order_id}", meta_style))
    invoice_date_str = format_display_date(invoice_date or datetime.now())
    elements.append(Paragraph(f"Invoice Date: {invoice_date_str}", meta_style))
    if order_date:
        elements.append(
            Paragraph(f"Order Date: {format_display_date(order_date)}", meta_style)
        )
    elements.append(Spacer(1, 12))

    # Customer block
    elements.append(Paragraph("Customer Details", heading_style))
    customer_data = [
        ["Name:", customer_name],
        ["Phone:", customer_phone or "N/A"],
        ["Address:", customer_address or "N/A"],
    ]
    if delivery_date:
        customer_data.append(["Delivery Date:", format_display_date(delivery_date)])
    if shipment_number:
        customer_data.append(["Shipment Number:", shipment_number])

    customer_table = Table(customer_data, colWidths=[1.5 * inch, 5 * inch])
    customer_table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#f9f7f4")),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    elements.append(customer_table)
    elements.append(Spacer(1, 12))

    # Line items
    item_rows = [["Item", "Weight", "Qty", "Price", "Total"]]
    for item in items:
        weight = item.get("weight")
        weight_str = (
            f"{format_weight(weight)} {item.get('weight_unit') or ''}".strip()
            if weight
            else "N/A"
        )
        item_rows.append(
            [
                Paragraph(escape(strip_weight_suffix(item.get("product_name", ""))), normal_style),
                weight_str,
                str(item.get("quantity", 0)),
                _money(item.get("product_price")),
                _money(item.get("total")),
            ]
        )

    items_table = Table(
        item_rows,
        colWidths=[2.8 * inch, 1.1 * inch, 0.6 * inch, 1 * inch, 1 * inch],
        repeatRows=1,
    )
    items_table.setStyle(
        TableStyle(
            [
                # Header
                ("BACKGROUND", (0, 0), (-1, 0), BRAND_TAN),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),
                # Body
                ("FONTSIZE", (0, 1), (-1, -1), 9),
                ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#dddddd")),
                ("PADDING", (0, 0), (-1, -1), 6),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    elements.append(items_table)
    elements.append(Spacer(1, 12))

    # Totals
    totals_data = [
        ["Subtotal:", _money(subtotal)],
        ["Shipping:", _money(shipping_charges)],
    ]
    if discount_amount and round_price(discount_amount) > 0:
        totals_data.append(["Discount:", f"-{_money(discount_amount)}"])
    totals_data.append(["Total Amount:", _money(total)])

    totals_table = Table(totals_data, colWidths=[1.5 * inch, 1.2 * inch], hAlign="RIGHT")
    totals_table.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("TEXTCOLOR", (0, -1), (-1, -1), BRAND_BROWN),
                ("LINEABOVE", (0, -1), (-1, -1), 1.5, BRAND_TAN),
            ]
        )
    )
    elements.append(totals_table)
    elements.append(Spacer(1, 24))

    # Footer
    footer_style = ParagraphStyle(
        "Footer",
        parent=normal_style,
        fontSize=9,
        textColor=MUTED,
        alignment=1,  # Center
    )
    elements.append(
        Paragraph(f"Thank you for choosing {escape(business_name)}!", footer_style)
    )
    elements.append(Paragraph("Made with love for delicious moments", footer_style))

    # Build PDF
    doc.build(elements)
    buffer.seek(0)
    return buffer.getvalue()
