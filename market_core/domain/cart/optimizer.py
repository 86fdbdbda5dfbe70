# market_core/domain/cart/optimizer.py
"""Rank branches for a shopper's cart.

Each branch is scored on the whole cart: how many of the requested products
it stocks and what those cost. Branches that can fill the entire cart always
rank ahead of partial ones, and savings are only ever measured between
full-coverage branches, since a partial total is not comparable to a full one.

Everything here is plain Decimal arithmetic over data already fetched; there
is no I/O and no state kept between calls.
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List
from uuid import UUID

from .schemas import BranchCartResult, BranchPriceRecord, CartCalculation, CartItem, CartLine

ZERO = Decimal("0")


def merge_cart(cart: Iterable[CartItem]) -> "OrderedDict[UUID, int]":
    """Collapse repeated products into one line with the summed quantity."""
    quantities: "OrderedDict[UUID, int]" = OrderedDict()
    for item in cart:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return quantities


def _index_by_branch(records: Iterable[BranchPriceRecord]) -> Dict[UUID, Dict[UUID, BranchPriceRecord]]:
    branches: Dict[UUID, Dict[UUID, BranchPriceRecord]] = {}
    for record in records:
        if not record.in_stock:
            continue
        prices = branches.setdefault(record.branch_id, {})
        # one price per branch and product; keep the first if storage sent two
        prices.setdefault(record.product_id, record)
    return branches


def _score_branch(
    branch_id: UUID,
    prices: Dict[UUID, BranchPriceRecord],
    quantities: "OrderedDict[UUID, int]",
) -> BranchCartResult:
    sample = next(iter(prices.values()))
    result = BranchCartResult(
        branch_id=branch_id,
        vendor_id=sample.vendor_id,
        branch_name=sample.branch_name,
        vendor_name=sample.vendor_name,
        total_items_requested=len(quantities),
    )

    total = ZERO
    for product_id, quantity in quantities.items():
        record = prices.get(product_id)
        if record is None:
            continue
        line_total = record.price * quantity
        result.items.append(
            CartLine(
                product_id=product_id,
                product_name=record.product_name,
                price=record.price,
                quantity=quantity,
                line_total=line_total,
            )
        )
        total += line_total

    result.total = total
    result.item_count = len(result.items)
    result.has_all_items = result.item_count == len(quantities)
    return result


def optimize(cart: Iterable[CartItem], records: Iterable[BranchPriceRecord]) -> CartCalculation:
    quantities = merge_cart(cart)
    if not quantities:
        return CartCalculation()

    full: List[BranchCartResult] = []
    partial: List[BranchCartResult] = []

    for branch_id, prices in _index_by_branch(records).items():
        result = _score_branch(branch_id, prices, quantities)
        if result.item_count == 0:
            continue
        if result.has_all_items:
            full.append(result)
        else:
            partial.append(result)

    # equal totals fall back to branch id so the order is reproducible
    full.sort(key=lambda r: (r.total, r.branch_id))
    partial.sort(key=lambda r: (-r.item_count, r.total, r.branch_id))
    ranked = full + partial

    if not ranked:
        return CartCalculation()

    cheapest = full[0] if full else ranked[0]
    max_savings = full[-1].total - full[0].total if len(full) >= 2 else ZERO

    return CartCalculation(
        branches=ranked,
        cheapest_branch_id=cheapest.branch_id,
        cheapest_total=cheapest.total,
        max_savings=max_savings,
    )
