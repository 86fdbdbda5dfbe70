from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from conftest import add_branch, add_price, add_product
from market_core.db.models import PriceHistory, Product, StoreProduct
from market_core.domain.catalog.service import merge_duplicate_groups, pick_survivor, preview_duplicates


async def _all(db, model):
    return list((await db.execute(select(model))).scalars().all())


async def test_merge_folds_group_into_most_complete_product(db):
    north = await add_branch(db, "North")
    south = await add_branch(db, "South")

    plain = await add_product(db, "Sugar 2kg")
    stale = Product(id=uuid4(), name="SUGAR 2 KG", normalized_name="sugar 2kg", image_url="https://img/sugar.png")
    coded = Product(id=uuid4(), name="Sugar 2 kg", normalized_name="sugar 2 kg", barcode="111")
    db.add_all([stale, coded])
    await db.commit()

    plain_north = await add_price(db, north, plain, "30.00")
    await add_price(db, south, plain, "31.00")
    stale_north = await add_price(db, north, stale, "29.00")
    db.add(PriceHistory(store_product_id=plain_north.id, old_price=Decimal("32.00"), new_price=Decimal("30.00")))
    await db.commit()

    summary = await merge_duplicate_groups(db)

    assert summary.merged_groups == 1
    assert summary.deleted_products == 2
    assert summary.moved_listings == 1
    assert summary.dropped_listings == 1
    assert summary.remaining_products == 1

    (survivor,) = await _all(db, Product)
    assert survivor.id == stale.id
    assert survivor.normalized_name == "sugar 2 kg"
    assert survivor.barcode == "111"
    assert survivor.image_url == "https://img/sugar.png"
    assert survivor.slug == "sugar-2kg"

    listings = {l.branch_id: l for l in await _all(db, StoreProduct)}
    assert set(listings) == {north.id, south.id}
    assert all(l.product_id == stale.id for l in listings.values())
    assert listings[north.id].id == stale_north.id
    assert listings[north.id].price == Decimal("29.00")

    (history,) = await _all(db, PriceHistory)
    assert history.store_product_id == stale_north.id

    assert (await preview_duplicates(db)).duplicate_groups == 0


async def test_merge_keeps_products_with_different_barcodes(db):
    await add_product(db, "Sugar 2kg", barcode="111")
    await add_product(db, "SUGAR 2KG", barcode="222")

    summary = await merge_duplicate_groups(db)

    assert summary.merged_groups == 0
    assert summary.deleted_products == 0
    assert summary.remaining_products == 2
    assert len(await _all(db, Product)) == 2


async def test_merge_without_duplicates_changes_nothing(db):
    await add_product(db, "Sugar 2kg")
    await add_product(db, "Rice 1kg")

    summary = await merge_duplicate_groups(db)

    assert summary.merged_groups == 0
    assert summary.remaining_products == 2


@pytest.mark.parametrize(
    "fields, expected",
    [
        ([{}, {"image_url": "x"}], 1),
        ([{"brand": "A"}, {"barcode": "1"}], 0),
        ([{"category_id": uuid4()}, {"brand": "A", "size": "1kg"}], 0),
        ([{}, {}], 0),
    ],
)
def test_pick_survivor(fields, expected):
    products = [Product(id=uuid4(), name="Sugar", normalized_name="sugar", **f) for f in fields]
    assert pick_survivor(products) is products[expected]
