"""Carts: adding, updating and removing items, with automatic discount resolution."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from .errors import DomainError, NotFoundError, internal_error, parse_uuid, round2, validation_error
from .models import CartDetail, DiscountType, ItemDetail

_NIL = uuid.UUID(int=0)
NO_DISCOUNT = "NO_DISCOUNT"


def _is_nil(value):
    return value is None or value == _NIL


def _now():
    return datetime.now(timezone.utc)


def normalize_addon_ids(addon_ids):
    """Drop empty and repeated ids and sort the rest by their text form."""
    seen = set()
    normalized = []
    for addon_id in addon_ids or ():
        if _is_nil(addon_id) or addon_id in seen:
            continue
        seen.add(addon_id)
        normalized.append(addon_id)
    return sorted(normalized, key=str)


def calculate_discount_amount(discount, subtotal):
    """Amount a discount takes off ``subtotal``; flat discounts never exceed it."""
    if discount.discount_type is DiscountType.PERCENTAGE:
        return round2(subtotal * discount.value / 100)
    if discount.value > subtotal:
        return round2(subtotal)
    return round2(discount.value)


class CartService:
    """Keeps cart lines priced and discounted against the merchant's catalog."""

    def __init__(self, store):
        self.store = store

    def create_cart(self, cart_id, merchant_id, branch_id, actor_id=None):
        actor = None if _is_nil(actor_id) else actor_id
        return self.store.create_cart(cart_id, merchant_id, branch_id, actor)

    def _addon_unit_subtotal(self, product, addon_ids):
        total = 0.0
        for addon_id in addon_ids:
            addon = self.store.get_product_addon(addon_id)
            if addon.product_id != product.id:
                raise validation_error("addon does not belong to product")
            total += addon.price
        return total

    def _ensure_no_discount_id(self, cart_id):
        try:
            cart = self.store.get_cart(cart_id)
            existing = self.store.find_discount_by_description(cart.merchant_id, NO_DISCOUNT)
            if existing is not None:
                return existing.id
            now = _now()
            created = self.store.create_merchant_discount(
                merchant_id=cart.merchant_id,
                discount_type=DiscountType.FLAT,
                value=0.0,
                description=NO_DISCOUNT,
                valid_from=now - timedelta(days=1),
                valid_to=now + timedelta(days=36525),
                product_id=None,
                category_id=None,
            )
            return created.id
        except Exception as exc:
            raise internal_error(exc) from exc

    @staticmethod
    def _check_discount(discount, product, line_subtotal):
        now = _now()
        if not discount.is_active(now) and discount.valid_to is not None:
            if discount.valid_from is not None and now < discount.valid_from:
                raise validation_error("discount is not active yet")
            raise validation_error("discount has expired")
        priority, matches = discount.priority_for(product.id, product.category_id)
        if priority < 1 or not matches:
            raise validation_error("discount does not apply to product")
        return calculate_discount_amount(discount, line_subtotal)

    def add_item_to_cart(self, cart_id, product_id, quantity, addon_ids=(), discount_id=None, discount_amount=0.0):
        """Add a line, merging with an existing line of the same product and add-ons."""
        if quantity <= 0:
            raise validation_error("quantity must be greater than zero")
        addons = normalize_addon_ids(addon_ids)
        cart = self.store.get_cart(cart_id)
        product = self.store.get_product(cart.merchant_id, product_id)
        addon_unit = self._addon_unit_subtotal(product, addons)

        try:
            existing = self.store.get_cart_item_by_signature(cart_id, product_id, addons)
        except NotFoundError:
            existing = None

        merged = quantity + (existing.quantity if existing is not None else 0)
        line_subtotal = round2(merged * product.base_price + addon_unit * merged)

        applied_id = None if _is_nil(discount_id) else discount_id
        resolved = None
        if applied_id is None:
            resolved = self.resolve_best_discount(cart.merchant_id, product.id, product.category_id, _now())
            if resolved is not None:
                applied_id = resolved.id

        if applied_id is None:
            applied_id = self._ensure_no_discount_id(cart_id)
            discount_amount = 0.0
        else:
            if resolved is not None and resolved.id == applied_id:
                discount = resolved
            else:
                discount = self.store.get_merchant_discount(cart.merchant_id, applied_id)
            discount_amount = self._check_discount(discount, product, line_subtotal)

        if discount_amount < 0 or discount_amount > line_subtotal:
            raise validation_error("discount exceeds subtotal")

        if existing is not None:
            return self.store.update_cart_item_by_id(
                cart_id, existing.id, merged, addons, applied_id, discount_amount
            )
        return self.store.create_cart_item(cart_id, product_id, merged, addons, applied_id, discount_amount)

    def update_cart_item_quantity(self, cart_id, item_id, quantity):
        """Set a line's quantity and recompute its discount."""
        if quantity <= 0:
            raise validation_error("quantity must be greater than zero")
        cart = self.store.get_cart(cart_id)
        stored = self.store.get_cart_item_by_id(cart_id, item_id)
        product = self.store.get_product(cart.merchant_id, stored.product_id)
        addon_unit = self._addon_unit_subtotal(product, stored.addon_ids)
        line_subtotal = round2(quantity * product.base_price + addon_unit * quantity)

        applied_id = stored.applied_discount_id
        discount_amount = 0.0
        if _is_nil(applied_id):
            applied_id = self._ensure_no_discount_id(cart_id)
        else:
            discount = self.store.get_merchant_discount(cart.merchant_id, applied_id)
            discount_amount = self._check_discount(discount, product, line_subtotal)

        if discount_amount < 0 or discount_amount > line_subtotal:
            raise validation_error("discount exceeds subtotal")

        return self.store.update_cart_item_by_id(
            cart_id, item_id, quantity, stored.addon_ids, applied_id, discount_amount
        )

    def remove_item_from_cart(self, cart_id, item_id):
        self.store.get_cart(cart_id)
        if self.store.delete_cart_item(cart_id, item_id) == 0:
            raise NotFoundError("cart item not found")

    def get_cart_detail(self, cart_id):
        """Return the cart with each line's product, add-ons and discount."""
        cart = self.store.get_cart(parse_uuid(cart_id, "cart id"))
        details = []
        for item in self.store.list_cart_items_by_cart(cart.id):
            product = self.store.get_product(cart.merchant_id, item.product_id)
            addons = tuple(self.store.get_product_addon(addon_id) for addon_id in item.addon_ids)
            discount = None
            if not _is_nil(item.applied_discount_id):
                try:
                    discount = self.store.get_merchant_discount(cart.merchant_id, item.applied_discount_id)
                except DomainError:
                    discount = None
            details.append(ItemDetail(item=item, product=product, addons=addons, discount=discount))
        return CartDetail(cart=cart, items=tuple(details))

    def resolve_best_discount(self, merchant_id, product_id, category_id, now):
        """Pick the active discount with the narrowest scope; the newest wins a tie."""
        best = None
        best_priority = 99
        for discount in self.store.list_discounts_by_merchant(merchant_id):
            if not discount.is_active(now):
                continue
            priority, matches = discount.priority_for(product_id, category_id)
            if not matches:
                continue
            if best is None or priority < best_priority or (
                priority == best_priority and discount.created_at > best.created_at
            ):
                best = discount
                best_priority = priority
        return best