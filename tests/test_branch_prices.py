from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from conftest import add_branch, add_price, add_product
from market_core.core.errors import StorageUnavailable
from market_core.db.repositories.branch_prices import fetch_branch_prices, fetch_prices


class BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("db is down"))


async def test_only_approved_active_branches_and_vendors_are_visible(db):
    sugar = await add_product(db, "Sugar 2kg")
    visible = await add_branch(db, "Windhoek Central")
    hidden = [
        await add_branch(db, "Pending Branch", approved=False),
        await add_branch(db, "Closed Branch", active=False),
        await add_branch(db, "Pending Vendor", vendor_approved=False),
        await add_branch(db, "Suspended Vendor", vendor_active=False),
    ]
    await add_price(db, visible, sugar, "25.99")
    for branch in hidden:
        await add_price(db, branch, sugar, "1.00")

    records = await fetch_prices(db, [sugar.id])

    assert [r.branch_id for r in records] == [visible.id]
    record = records[0]
    assert record.price == Decimal("25.99")
    assert record.vendor_id == visible.vendor_id
    assert record.product_name == "Sugar 2kg"
    assert record.branch_name == "Windhoek Central"


async def test_restricted_to_requested_products_and_in_stock(db):
    sugar = await add_product(db, "Sugar 2kg")
    rice = await add_product(db, "Rice 1kg")
    flour = await add_product(db, "Flour 2.5kg")
    branch = await add_branch(db, "Katutura")
    await add_price(db, branch, sugar, "25.99")
    await add_price(db, branch, rice, "18.50", in_stock=False)
    await add_price(db, branch, flour, "30.00")

    records = await fetch_prices(db, [sugar.id, rice.id, uuid4()])
    assert [r.product_id for r in records] == [sugar.id]

    with_out_of_stock = await fetch_prices(db, [sugar.id, rice.id], in_stock_only=False)
    assert {r.product_id for r in with_out_of_stock} == {sugar.id, rice.id}


async def test_empty_id_list_does_not_touch_storage():
    assert await fetch_prices(BrokenSession(), []) == []


async def test_storage_failure_is_not_an_empty_result():
    with pytest.raises(StorageUnavailable):
        await fetch_prices(BrokenSession(), [uuid4()])


async def test_branch_prices_search_and_filter(db):
    category = uuid4()
    sugar = await add_product(db, "White Sugar 2KG", category_id=category)
    rice = await add_product(db, "Rice 1kg")
    a = await add_branch(db, "Branch A")
    b = await add_branch(db, "Branch B")
    other = await add_branch(db, "Branch C")
    for branch in (a, b, other):
        await add_price(db, branch, sugar, "20.00")
        await add_price(db, branch, rice, "15.00")

    records = await fetch_branch_prices(db, [a.id, b.id], search="sugar 2kg")
    assert {(r.branch_id, r.product_id) for r in records} == {(a.id, sugar.id), (b.id, sugar.id)}

    records = await fetch_branch_prices(db, [a.id], category_id=category)
    assert [r.product_id for r in records] == [sugar.id]
