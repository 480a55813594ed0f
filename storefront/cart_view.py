"""Request handling and response shaping for carts, with an optional VAT preview."""

from __future__ import annotations

import uuid
from http import HTTPStatus

from .errors import NotFoundError, parse_uuid, round2, validation_error

_NIL = uuid.UUID(int=0)

_VAT_RATES = {
    "card": 8.0,
    "cash": 15.0,
}


def preview_vat_rate(payment_method):
    """Return the VAT rate in percent for a payment method, or None if it is unknown."""
    return _VAT_RATES.get(str(payment_method).strip().lower())


def round_currency(value):
    """Round a currency amount to cents, halves away from zero."""
    return round2(value)


def _timestamp(value):
    return value.isoformat() if value is not None else None


def _drop_none(mapping):
    return {key: value for key, value in mapping.items() if value is not None}


def cart_created_response(cart):
    """Body returned after a cart is created."""
    response = {
        "id": str(cart.id),
        "created_at": _timestamp(cart.created_at),
        "updated_at": _timestamp(cart.updated_at),
    }
    if cart.branch_id is not None and cart.branch_id != _NIL:
        response["branch_id"] = str(cart.branch_id)
    return _drop_none(response)


def cart_item_response(item):
    """Body returned after a cart line is added or changed."""
    return {
        "item_id": str(item.id),
        "product_id": str(item.product_id),
        "quantity": int(item.quantity),
    }


def _discount_summary(discount):
    return {
        "id": str(discount.id),
        "type": discount.discount_type.value,
        "value": discount.value,
        "amount": 0.0,
        "description": discount.description or "",
    }


def cart_detail_response(detail, payment_method=None):
    """Shape a cart detail, adding VAT figures when a payment method is given."""
    vat_rate = 0.0
    preview = payment_method is not None
    if preview:
        rate = preview_vat_rate(payment_method)
        if rate is None:
            raise validation_error("invalid payment method")
        vat_rate = rate

    products = []
    subtotal = 0.0
    total_vat = 0.0
    total_discount = 0.0
    summary = None

    for line in detail.items:
        quantity = int(line.item.quantity)
        base_price = float(line.product.base_price)
        addon_total = 0.0
        addons = []
        for addon in line.addons:
            price = float(addon.price)
            addon_total += price * quantity
            addons.append({"id": str(addon.id), "name": addon.name, "price": price})

        line_discount = float(line.item.applied_discount_amount)
        total_discount += line_discount
        line_subtotal = round_currency(base_price * quantity + addon_total - line_discount)
        line_vat = 0.0
        line_total = line_subtotal
        if preview:
            line_vat = round_currency(line_subtotal * (vat_rate / 100.0))
            line_total = round_currency(line_subtotal + line_vat)
            total_vat += line_vat
        subtotal += line_subtotal

        if line.discount is not None:
            if summary is None:
                summary = _discount_summary(line.discount)
            summary["amount"] = round_currency(summary["amount"] + line_discount)

        product = {
            "id": str(line.product.id),
            "item_id": str(line.item.id),
            "name": line.product.name,
            "price": base_price,
            "quantity": quantity,
            "addons": addons,
        }
        if preview:
            product["final_price"] = line_subtotal
            product["vat"] = line_vat
            product["total_price"] = line_total
        products.append(product)

    if summary is not None and total_discount == 0:
        summary = None

    response = {
        "cart_id": str(detail.cart.id),
        "total_price": round_currency(subtotal + total_vat),
        "products": products,
    }
    if summary is not None:
        response["discount"] = summary
    if preview:
        response["payment_method"] = payment_method
        response["vat_rate"] = vat_rate
        response["subtotal"] = round_currency(subtotal)
        response["total_vat"] = round_currency(total_vat)
    return response


def _body(body):
    if not isinstance(body, dict):
        raise validation_error("invalid request body")
    return body


def _uuid_field(body, key, required=True):
    value = body.get(key)
    if value is None or value == "":
        if required:
            raise validation_error(f"{key} is required")
        return None
    parsed = parse_uuid(value, key.replace("_", " "))
    if required and parsed == _NIL:
        raise validation_error(f"{key} is required")
    return parsed


def _quantity_field(body):
    value = body.get("quantity")
    if isinstance(value, bool) or not isinstance(value, int):
        raise validation_error("quantity is required")
    if value <= 0:
        raise validation_error("quantity must be greater than zero")
    return value


class CartHandler:
    """Turns request data into cart service calls; returns (status, body) pairs."""

    def __init__(self, service):
        self.service = service

    def get_cart_detail(self, cart_id, payment_method=None):
        detail = self.service.get_cart_detail(cart_id)
        return HTTPStatus.OK, cart_detail_response(detail, payment_method)

    def create_cart(self, body):
        body = _body(body)
        branch_id = _uuid_field(body, "branch_id")
        cart_id = _uuid_field(body, "cart_id")
        merchant_id = _uuid_field(body, "merchant_id")
        cart = self.service.create_cart(cart_id, merchant_id, branch_id, None)
        return HTTPStatus.CREATED, cart_created_response(cart)

    def add_item(self, cart_id, body):
        body = _body(body)
        product_id = _uuid_field(body, "product_id")
        quantity = _quantity_field(body)
        raw_addons = body.get("addon_ids") or []
        if not isinstance(raw_addons, (list, tuple)):
            raise validation_error("addon_ids must be a list")
        addon_ids = [parse_uuid(value, "addon id") for value in raw_addons]
        discount_id = _uuid_field(body, "discount_id", required=False)
        parsed_cart = parse_uuid(cart_id, "cart id")
        item = self.service.add_item_to_cart(parsed_cart, product_id, quantity, addon_ids, discount_id, 0.0)
        return HTTPStatus.CREATED, cart_item_response(item)

    def update_item(self, cart_id, item_id, body):
        body = _body(body)
        parse_uuid(item_id, "item id")
        quantity = _quantity_field(body)
        parsed_cart = parse_uuid(cart_id, "cart id")
        parsed_item = parse_uuid(item_id, "item id")
        item = self.service.update_cart_item_quantity(parsed_cart, parsed_item, quantity)
        return HTTPStatus.OK, cart_item_response(item)

    def delete_item(self, cart_id, item_id):
        parsed_item = parse_uuid(item_id, "item id")
        parsed_cart = parse_uuid(cart_id, "cart id")
        self.service.remove_item_from_cart(parsed_cart, parsed_item)
        return HTTPStatus.NO_CONTENT, None


__all__ = [
    "CartHandler",
    "NotFoundError",
    "cart_created_response",
    "cart_detail_response",
    "cart_item_response",
    "preview_vat_rate",
    "round_currency",
]