"""Tests for the wishlist ledger over the in-memory store."""

import threading

import pytest

from storefront.core.errors import Conflict, NotFound, ValidationFailure
from storefront.wishlist.ledger import LOCK_STRIPES


def test_add_and_list(wishlist):
    entry = wishlist.add("u1", "3")
    assert entry.product_id == "3"
    assert entry.product is not None
    assert entry.product.name == "Premium Backpack"

    items = wishlist.list("u1")
    assert [i.product_id for i in items] == ["3"]
    assert items[0].product.id == "3"


def test_list_is_newest_first(wishlist):
    for product_id in ("1", "2", "3"):
        wishlist.add("u1", product_id)
    assert [i.product_id for i in wishlist.list("u1")] == ["3", "2", "1"]


def test_missing_product_id(wishlist):
    for value in (None, "", "  "):
        with pytest.raises(ValidationFailure) as exc:
            wishlist.add("u1", value)
        assert exc.value.message == "Product ID is required"


def test_unknown_product(wishlist):
    with pytest.raises(NotFound):
        wishlist.add("u1", "999")


def test_inactive_product(store, wishlist):
    store._products[0] = store._products[0].model_copy(update={"status": "inactive"})
    with pytest.raises(NotFound):
        wishlist.add("u1", "1")


def test_duplicate_add_conflicts_and_keeps_one_entry(wishlist):
    wishlist.add("u1", "2")
    with pytest.raises(Conflict) as exc:
        wishlist.add("u1", "2")
    assert exc.value.message == "Already in wishlist"
    assert len(wishlist.list("u1")) == 1


def test_same_product_for_different_users(wishlist):
    wishlist.add("u1", "2")
    wishlist.add("u2", "2")
    assert len(wishlist.list("u1")) == 1
    assert len(wishlist.list("u2")) == 1


def test_concurrent_duplicate_adds(wishlist):
    outcomes = []

    def attempt():
        try:
            wishlist.add("u1", "4")
            outcomes.append("added")
        except Conflict:
            outcomes.append("conflict")

    threads = [threading.Thread(target=attempt) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert outcomes.count("added") == 1
    assert outcomes.count("conflict") == 19
    assert len(wishlist.list("u1")) == 1


def test_remove_one(wishlist):
    wishlist.add("u1", "1")
    wishlist.add("u1", "2")
    assert wishlist.remove("u1", "1") == 1
    assert [i.product_id for i in wishlist.list("u1")] == ["2"]


def test_clear(wishlist):
    wishlist.add("u1", "1")
    wishlist.add("u1", "2")
    wishlist.add("u2", "1")
    assert wishlist.remove("u1") == 2
    assert wishlist.list("u1") == []
    assert len(wishlist.list("u2")) == 1


def test_lock_pool_does_not_grow_with_users(wishlist):
    for i in range(500):
        wishlist.add(f"user-{i}", "1")
        wishlist.remove(f"user-{i}")
    assert len(wishlist._locks) == LOCK_STRIPES
