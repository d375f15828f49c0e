"""Concurrent checkouts against a shared product must never oversell."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.errors import InsufficientStock
from storefront.services.checkout_service import CartLine, CheckoutService


def run_concurrently(checkout, carts, idempotency_key=None):
    """Start every checkout at the same moment; return (placed orders, errors)."""
    barrier = threading.Barrier(len(carts))

    def attempt(cart):
        barrier.wait()
        try:
            return checkout.place_order("Customer", "Street 1", cart, idempotency_key=idempotency_key)
        except InsufficientStock as e:
            return e

    with ThreadPoolExecutor(max_workers=len(carts)) as pool:
        results = list(pool.map(attempt, carts))

    placed = [r for r in results if not isinstance(r, Exception)]
    errors = [r for r in results if isinstance(r, Exception)]
    return placed, errors


@pytest.fixture
def checkout(db):
    return CheckoutService(db)


def test_two_carts_competing_for_last_units(checkout, make_product, stock_of):
    """Stock 5, two carts of 3: exactly one succeeds and the other sees 2 left."""
    product_id = make_product(price="10.00", stock=5)

    placed, errors = run_concurrently(checkout, [[CartLine(product_id, 3)], [CartLine(product_id, 3)]])

    assert len(placed) == 1
    assert len(errors) == 1
    assert errors[0].available == 2
    assert stock_of(product_id) == 2


def test_many_single_unit_checkouts(checkout, make_product, stock_of, counts):
    """Eight buyers, five units: five orders, three refusals, stock ends at zero."""
    product_id = make_product(stock=5)

    placed, errors = run_concurrently(checkout, [[CartLine(product_id, 1)] for _ in range(8)])

    assert len(placed) == 5
    assert len(errors) == 3
    assert all(e.available == 0 for e in errors)
    assert stock_of(product_id) == 0
    assert counts() == (5, 5)


def test_committed_quantity_never_exceeds_stock(checkout, make_product, stock_of):
    """Mixed quantities: whatever succeeds fits within the original stock."""
    product_id = make_product(stock=10)
    quantities = [4, 3, 3, 2, 5, 1]

    placed, errors = run_concurrently(checkout, [[CartLine(product_id, q)] for q in quantities])

    committed = sum(q for q in quantities) - sum(e.requested for e in errors)
    assert committed <= 10
    assert stock_of(product_id) == 10 - committed
    assert len(placed) + len(errors) == len(quantities)
    # Every refusal happened because the remaining stock could not cover it
    assert all(e.available < e.requested for e in errors)


def test_concurrent_retries_with_same_key_place_one_order(checkout, make_product, stock_of, counts):
    """Simultaneous retries of one request produce a single order."""
    product_id = make_product(stock=5)

    placed, errors = run_concurrently(
        checkout, [[CartLine(product_id, 2)] for _ in range(4)], idempotency_key="retry-token"
    )

    assert errors == []
    assert len({p.order_id for p in placed}) == 1
    assert sum(1 for p in placed if not p.replayed) == 1
    assert stock_of(product_id) == 3
    assert counts() == (1, 1)
