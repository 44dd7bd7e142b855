"""Integration tests for admin order management and invoices."""

import uuid
from decimal import Decimal

import pytest
from services.bakery_service.models import Order, OrderItem, OrderStatus
from sqlalchemy import func, select
from tests.factories import OrderFactory, OrderItemFactory


async def _seed_order(db_session, **overrides):
    cake = OrderItemFactory.create(
        product_name="Truffle (500grams)", product_price=Decimal("299"), quantity=2,
        total=Decimal("598"),
    )
    bun = OrderItemFactory.create(
        product_name="Bun", product_price=Decimal("150"), quantity=1,
        total=Decimal("150"), weight=None, weight_unit=None,
    )
    defaults = {
        "subtotal": Decimal("748"),
        "shipping_charges": Decimal("50"),
        "discount_amount": Decimal("75"),
        "total": Decimal("723"),
    }
    defaults.update(overrides)
    order = OrderFactory.create(items=[cake, bun], **defaults)
    db_session.add(order)
    await db_session.commit()
    return order, cake, bun


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_orders_filters_by_status(client, db_session):
    await _seed_order(db_session)
    await _seed_order(db_session, status=OrderStatus.SHIPPED)

    response = await client.get("/admin/store/orders", params={"status": "shipped"})
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["status"] == "shipped"

    everything = await client.get("/admin/store/orders")
    assert len(everything.json()) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_order_includes_items(client, db_session):
    order, _, _ = await _seed_order(db_session)

    response = await client.get(f"/admin/store/orders/{order.id}")
    assert response.status_code == 200
    assert len(response.json()["items"]) == 2

    missing = await client.get(f"/admin/store/orders/{uuid.uuid4()}")
    assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_status(client, db_session):
    order, _, _ = await _seed_order(db_session)

    response = await client.patch(
        f"/admin/store/orders/{order.id}/status", json={"status": "preparing"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "preparing"

    invalid = await client.patch(
        f"/admin/store/orders/{order.id}/status", json={"status": "lost"}
    )
    assert invalid.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_order_recomputes_totals(client, db_session):
    order, cake, bun = await _seed_order(db_session)

    response = await client.put(
        f"/admin/store/orders/{order.id}",
        json={
            "customer_phone": "9000011111",
            "shipping_charges": "40",
            "items": [
                {"id": str(cake.id), "quantity": 3, "product_price": "280"},
                {"id": str(bun.id), "quantity": 0},
            ],
        },
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["customer_phone"] == "9000011111"
    assert [i["id"] for i in data["items"]] == [str(cake.id)]
    assert Decimal(data["items"][0]["total"]) == 840
    assert Decimal(data["subtotal"]) == 840
    # 840 + 40 shipping - 75 existing discount
    assert Decimal(data["total"]) == 805

    count = await db_session.execute(
        select(func.count(OrderItem.id)).where(OrderItem.order_id == order.id)
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_order_discount_only(client, db_session):
    order, _, _ = await _seed_order(db_session)

    response = await client.put(
        f"/admin/store/orders/{order.id}", json={"discount_amount": "100"}
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["subtotal"]) == 748
    assert Decimal(data["total"]) == 698


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_order_rejects_foreign_items(client, db_session):
    order, cake, _ = await _seed_order(db_session)
    other, other_item, _ = await _seed_order(db_session)

    response = await client.put(
        f"/admin/store/orders/{order.id}",
        json={
            "shipping_charges": "0",
            "items": [
                {"id": str(cake.id), "quantity": 5},
                {"id": str(other_item.id), "quantity": 1},
            ],
        },
    )

    assert response.status_code == 400
    assert str(other_item.id) in response.json()["detail"]
    unchanged = await db_session.get(Order, order.id)
    assert unchanged.total == Decimal("723")
    assert cake.quantity == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_order_removes_items(client, db_session):
    order, _, _ = await _seed_order(db_session)

    response = await client.delete(f"/admin/store/orders/{order.id}")
    assert response.status_code == 204

    orders = await db_session.execute(select(func.count(Order.id)))
    items = await db_session.execute(select(func.count(OrderItem.id)))
    assert orders.scalar() == 0
    assert items.scalar() == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_download_invoice_pdf(client, db_session):
    order, _, _ = await _seed_order(db_session, customer_name="Asha Kumar")

    response = await client.get(f"/admin/store/orders/{order.id}/invoice")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert response.headers["content-disposition"] == (
        f"attachment; filename=Asha-Kumar-invoice-{str(order.id)[:8]}.pdf"
    )


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("field", ["customer_name", "customer_email", "status"])
async def test_edit_order_rejects_null_required_fields(client, db_session, field):
    order, _, _ = await _seed_order(db_session)

    response = await client.put(f"/admin/store/orders/{order.id}", json={field: None})

    assert response.status_code == 422
    unchanged = await client.get(f"/admin/store/orders/{order.id}")
    assert unchanged.json()[field] is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_order_removing_same_item_twice(client, db_session):
    order, cake, bun = await _seed_order(db_session)

    response = await client.put(
        f"/admin/store/orders/{order.id}",
        json={
            "items": [
                {"id": str(cake.id), "quantity": 0},
                {"id": str(cake.id), "quantity": 0},
            ]
        },
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert [i["id"] for i in data["items"]] == [str(bun.id)]
    assert Decimal(data["subtotal"]) == 150
    # 150 + 50 shipping - 75 discount
    assert Decimal(data["total"]) == 125
