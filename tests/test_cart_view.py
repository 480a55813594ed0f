import uuid
from http import HTTPStatus
from types import SimpleNamespace

import pytest

from storefront.cart import CartService
from storefront.cart_view import (
    CartHandler,
    cart_created_response,
    cart_detail_response,
    cart_item_response,
    preview_vat_rate,
    round_currency,
)
from storefront.errors import DomainError, NotFoundError
from storefront.models import Cart, CartDetail, CartItem
from storefront.store import MemoryStore


@pytest.fixture
def env():
    store = MemoryStore()
    merchant = uuid.uuid4()
    branch = store.add_branch(merchant, "Main")
    category = store.create_product_category(merchant, "Drinks", None)
    product = store.create_product(merchant, category.id, "Coffee", None, 10.0, None, False, True)
    addon = store.create_product_addon(product.id, "Milk", 2.0)
    handler = CartHandler(CartService(store))
    cart_id = uuid.uuid4()
    handler.create_cart(
        {"cart_id": str(cart_id), "merchant_id": str(merchant), "branch_id": str(branch.id)}
    )
    return SimpleNamespace(
        store=store, merchant=merchant, branch=branch, category=category,
        product=product, addon=addon, handler=handler, cart_id=cart_id,
    )


def test_preview_vat_rates_from_source():
    assert preview_vat_rate("card") == 8
    assert preview_vat_rate("  CASH ") == 15
    assert preview_vat_rate("crypto") is None


@pytest.mark.parametrize("value", [0.0, 1.234, 19.999, 7.5, 123.456])
def test_round_currency_invariants(value):
    rounded = round_currency(value)
    assert round_currency(rounded) == rounded
    assert abs(rounded - value) <= 0.005 + 1e-9


def test_create_cart_response(env):
    cart_id = uuid.uuid4()
    status, body = env.handler.create_cart(
        {"cart_id": str(cart_id), "merchant_id": str(env.merchant), "branch_id": str(env.branch.id)}
    )
    assert status == HTTPStatus.CREATED
    assert body["id"] == str(cart_id)
    assert body["branch_id"] == str(env.branch.id)


def test_create_cart_missing_field(env):
    with pytest.raises(DomainError) as info:
        env.handler.create_cart({"cart_id": str(uuid.uuid4()), "branch_id": str(env.branch.id)})
    assert info.value.status == 400


def test_cart_created_response_omits_nil_branch():
    cart = Cart(id=uuid.uuid4(), merchant_id=uuid.uuid4(), branch_id=uuid.UUID(int=0))
    body = cart_created_response(cart)
    assert "branch_id" not in body
    assert body["id"] == str(cart.id)


def test_cart_item_response_fields():
    item = CartItem(id=uuid.uuid4(), cart_id=uuid.uuid4(), product_id=uuid.uuid4(), quantity=4)
    assert cart_item_response(item) == {
        "item_id": str(item.id),
        "product_id": str(item.product_id),
        "quantity": 4,
    }


def test_add_item_and_merge(env):
    body = {"product_id": str(env.product.id), "quantity": 2, "addon_ids": [str(env.addon.id)]}
    status, first = env.handler.add_item(str(env.cart_id), body)
    assert status == HTTPStatus.CREATED
    assert first["quantity"] == 2
    _, second = env.handler.add_item(str(env.cart_id), dict(body, quantity=3))
    assert second["item_id"] == first["item_id"]
    assert second["quantity"] == 5


def test_add_item_rejects_zero_quantity(env):
    with pytest.raises(DomainError) as info:
        env.handler.add_item(str(env.cart_id), {"product_id": str(env.product.id), "quantity": 0})
    assert info.value.status == 400


def test_add_item_rejects_bad_cart_id(env):
    with pytest.raises(DomainError) as info:
        env.handler.add_item("not-a-uuid", {"product_id": str(env.product.id), "quantity": 1})
    assert info.value.status == 400


def test_detail_without_preview(env):
    env.handler.add_item(
        str(env.cart_id), {"product_id": str(env.product.id), "quantity": 3, "addon_ids": [str(env.addon.id)]}
    )
    status, body = env.handler.get_cart_detail(str(env.cart_id))
    assert status == HTTPStatus.OK
    assert body["cart_id"] == str(env.cart_id)
    assert "vat_rate" not in body
    assert "discount" not in body
    assert body["total_price"] == pytest.approx((env.product.base_price + env.addon.price) * 3)
    assert body["products"][0]["addons"][0]["name"] == "Milk"


def test_detail_with_card_preview(env):
    env.handler.add_item(str(env.cart_id), {"product_id": str(env.product.id), "quantity": 3})
    _, body = env.handler.get_cart_detail(str(env.cart_id), "card")
    assert body["vat_rate"] == 8
    assert body["payment_method"] == "card"
    line = body["products"][0]
    assert line["vat"] == round_currency(line["final_price"] * 0.08)
    assert line["total_price"] == round_currency(line["final_price"] + line["vat"])
    assert body["total_price"] == pytest.approx(body["subtotal"] + body["total_vat"])


def test_detail_invalid_payment_method(env):
    with pytest.raises(DomainError) as info:
        env.handler.get_cart_detail(str(env.cart_id), "barter")
    assert info.value.status == 400


def test_detail_discount_summary(env):
    discount = env.store.create_merchant_discount(
        env.merchant, "percentage", 10.0, "Promo", None, None, env.product.id, None
    )
    env.handler.add_item(str(env.cart_id), {"product_id": str(env.product.id), "quantity": 2})
    _, body = env.handler.get_cart_detail(str(env.cart_id))
    stored = env.store.list_cart_items_by_cart(env.cart_id)[0]
    assert body["discount"]["id"] == str(discount.id)
    assert body["discount"]["description"] == "Promo"
    assert body["discount"]["amount"] == stored.applied_discount_amount
    assert body["total_price"] == pytest.approx(env.product.base_price * 2 - stored.applied_discount_amount)


def test_detail_of_empty_cart():
    cart = Cart(id=uuid.uuid4(), merchant_id=uuid.uuid4(), branch_id=uuid.uuid4())
    body = cart_detail_response(CartDetail(cart=cart), "cash")
    assert body["products"] == []
    assert body["total_price"] == 0
    assert body["vat_rate"] == 15


def test_update_item(env):
    _, added = env.handler.add_item(str(env.cart_id), {"product_id": str(env.product.id), "quantity": 1})
    status, updated = env.handler.update_item(str(env.cart_id), added["item_id"], {"quantity": 7})
    assert status == HTTPStatus.OK
    assert updated["quantity"] == 7
    assert updated["item_id"] == added["item_id"]


def test_update_item_bad_item_id(env):
    with pytest.raises(DomainError) as info:
        env.handler.update_item(str(env.cart_id), "bogus", {"quantity": 1})
    assert info.value.status == 400


def test_delete_item(env):
    _, added = env.handler.add_item(str(env.cart_id), {"product_id": str(env.product.id), "quantity": 1})
    status, body = env.handler.delete_item(str(env.cart_id), added["item_id"])
    assert status == HTTPStatus.NO_CONTENT
    assert body is None
    _, detail = env.handler.get_cart_detail(str(env.cart_id))
    assert detail["products"] == []
    with pytest.raises(NotFoundError):
        env.handler.delete_item(str(env.cart_id), added["item_id"])


def test_delete_item_bad_id(env):
    with pytest.raises(DomainError) as info:
        env.handler.delete_item(str(env.cart_id), "nope")
    assert info.value.status == 400