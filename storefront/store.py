"""An in-memory store holding actors, roles, carts, catalog and discounts."""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timezone

from .errors import ConflictError, NotFoundError
from .models import (
    Actor,
    ActorProfile,
    ActorRole,
    Branch,
    Cart,
    CartItem,
    DiscountType,
    InventoryItem,
    MerchantDiscount,
    Product,
    ProductAddon,
    ProductCategory,
    ProductDetail,
    ProductInventory,
    Role,
    RoleType,
    Session,
)


def _now():
    return datetime.now(timezone.utc)


def _profile(actor):
    return ActorProfile(
        uid=actor.id,
        merchant_id=actor.merchant_id,
        email=actor.email,
        first_name=actor.first_name,
        last_name=actor.last_name,
        is_active=actor.is_active,
        created_at=actor.created_at,
    )


class MemoryStore:
    """Keeps every record in dictionaries; lookups that miss raise NotFoundError."""

    def __init__(self):
        self._actors: dict[uuid.UUID, Actor] = {}
        self._sessions: dict[uuid.UUID, Session] = {}
        self._roles: dict[uuid.UUID, Role] = {}
        self._actor_roles: dict[tuple[uuid.UUID, uuid.UUID, uuid.UUID], ActorRole] = {}
        self._branches: dict[uuid.UUID, Branch] = {}
        self._carts: dict[uuid.UUID, Cart] = {}
        self._cart_items: dict[uuid.UUID, CartItem] = {}
        self._categories: dict[uuid.UUID, ProductCategory] = {}
        self._products: dict[uuid.UUID, Product] = {}
        self._addons: dict[uuid.UUID, ProductAddon] = {}
        self._inventory: dict[tuple[uuid.UUID, uuid.UUID], ProductInventory] = {}
        self._discounts: dict[uuid.UUID, MerchantDiscount] = {}

    # actors

    def create_actor(self, merchant_id, email, password_hash, first_name, last_name, is_active, last_login):
        if any(a.merchant_id == merchant_id and a.email == email for a in self._actors.values()):
            raise ConflictError("actor already exists")
        actor = Actor(
            id=uuid.uuid4(),
            merchant_id=merchant_id,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
            last_login=last_login,
        )
        self._actors[actor.id] = actor
        return actor

    def _actor_by_email(self, merchant_id, email):
        found = next(
            (a for a in self._actors.values() if a.merchant_id == merchant_id and a.email == email),
            None,
        )
        if found is None:
            raise NotFoundError("actor not found")
        return found

    def get_actor(self, merchant_id, email):
        return self._actor_by_email(merchant_id, email)

    def get_actor_by_uid(self, merchant_id, actor_id):
        """Look an actor up by id; a merchant id of None matches any merchant."""
        actor = self._actors.get(actor_id)
        if actor is None or (merchant_id is not None and actor.merchant_id != merchant_id):
            raise NotFoundError("actor not found")
        return actor

    def get_actor_profile_by_merchant_and_email(self, merchant_id, email):
        return _profile(self._actor_by_email(merchant_id, email))

    def list_actors_by_merchant(self, merchant_id):
        return [_profile(a) for a in self._actors.values() if a.merchant_id == merchant_id]

    def list_employees_by_merchant(self, merchant_id):
        return [
            _profile(a)
            for a in self._actors.values()
            if a.merchant_id == merchant_id and self.has_role(a.id, RoleType.EMPLOYEE, merchant_id)
        ]

    # sessions

    def create_session(self, session):
        if session.id in self._sessions:
            raise ConflictError("session already exists")
        self._sessions[session.id] = session
        return session

    def get_session(self, session_id):
        try:
            return self._sessions[session_id]
        except KeyError:
            raise NotFoundError("session not found") from None

    # roles

    def add_role(self, merchant_id, role_type):
        role = Role(id=uuid.uuid4(), merchant_id=merchant_id, role_type=RoleType(role_type))
        self._roles[role.id] = role
        return role

    def assign_actor_role(self, merchant_id, actor_id, role_id):
        actor = self._actors.get(actor_id)
        role = self._roles.get(role_id)
        if actor is None or actor.merchant_id != merchant_id:
            raise NotFoundError("actor not found")
        if role is None or role.merchant_id != merchant_id:
            raise NotFoundError("role not found")
        key = (merchant_id, actor_id, role_id)
        if key in self._actor_roles:
            raise ConflictError("role already assigned")
        assignment = ActorRole(merchant_id=merchant_id, actor_id=actor_id, role_id=role_id)
        self._actor_roles[key] = assignment
        return assignment

    def get_actor_role(self, merchant_id, actor_id, role_id):
        try:
            return self._actor_roles[(merchant_id, actor_id, role_id)]
        except KeyError:
            raise NotFoundError("actor role not found") from None

    def has_role(self, actor_id, role_type, merchant_id):
        """Whether the actor holds a role of this type; a merchant id of None matches any merchant."""
        role_type = RoleType(role_type)
        actor = self._actors.get(actor_id)
        if actor is None or (merchant_id is not None and actor.merchant_id != merchant_id):
            return False
        for assignment in self._actor_roles.values():
            if assignment.actor_id != actor.id or assignment.merchant_id != actor.merchant_id:
                continue
            role = self._roles.get(assignment.role_id)
            if role is not None and role.merchant_id == actor.merchant_id and role.role_type is role_type:
                return True
        return False

    def get_role_id_by_type(self, merchant_id, role_type):
        role_type = RoleType(role_type)
        for role in self._roles.values():
            if role.merchant_id == merchant_id and role.role_type is role_type:
                return role.id
        raise NotFoundError("role not found")

    # branches

    def add_branch(self, merchant_id, name):
        branch = Branch(id=uuid.uuid4(), merchant_id=merchant_id, name=name)
        self._branches[branch.id] = branch
        return branch

    def get_branch(self, merchant_id, branch_id):
        branch = self._branches.get(branch_id)
        if branch is None or branch.merchant_id != merchant_id:
            raise NotFoundError("branch not found")
        return branch

    # carts

    def create_cart(self, cart_id, merchant_id, branch_id, actor_id):
        if cart_id in self._carts:
            raise ConflictError("cart already exists")
        cart = Cart(id=cart_id, merchant_id=merchant_id, branch_id=branch_id, actor_id=actor_id)
        self._carts[cart_id] = cart
        return cart

    def get_cart(self, cart_id):
        try:
            return self._carts[cart_id]
        except KeyError:
            raise NotFoundError("cart not found") from None

    def create_cart_item(self, cart_id, product_id, quantity, addon_ids, applied_discount_id, applied_discount_amount):
        self.get_cart(cart_id)
        item = CartItem(
            id=uuid.uuid4(),
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            addon_ids=tuple(addon_ids),
            applied_discount_id=applied_discount_id,
            applied_discount_amount=applied_discount_amount,
        )
        self._cart_items[item.id] = item
        return item

    def get_cart_item_by_signature(self, cart_id, product_id, addon_ids):
        signature = tuple(addon_ids)
        for item in self._cart_items.values():
            if item.cart_id == cart_id and item.product_id == product_id and item.addon_ids == signature:
                return item
        raise NotFoundError("cart item not found")

    def get_cart_item_by_id(self, cart_id, item_id):
        item = self._cart_items.get(item_id)
        if item is None or item.cart_id != cart_id:
            raise NotFoundError("cart item not found")
        return item

    def update_cart_item_by_id(self, cart_id, item_id, quantity, addon_ids, applied_discount_id, applied_discount_amount):
        item = self.get_cart_item_by_id(cart_id, item_id)
        updated = dataclasses.replace(
            item,
            quantity=quantity,
            addon_ids=tuple(addon_ids),
            applied_discount_id=applied_discount_id,
            applied_discount_amount=applied_discount_amount,
        )
        self._cart_items[item_id] = updated
        return updated

    def delete_cart_item(self, cart_id, item_id):
        """Delete an item and return how many rows went away."""
        item = self._cart_items.get(item_id)
        if item is None or item.cart_id != cart_id:
            return 0
        del self._cart_items[item_id]
        return 1

    def list_cart_items_by_cart(self, cart_id):
        return [item for item in self._cart_items.values() if item.cart_id == cart_id]

    # catalog

    def create_product_category(self, merchant_id, name, description):
        category = ProductCategory(id=uuid.uuid4(), merchant_id=merchant_id, name=name, description=description)
        self._categories[category.id] = category
        return category

    def get_product_category(self, merchant_id, category_id):
        category = self._categories.get(category_id)
        if category is None or category.merchant_id != merchant_id:
            raise NotFoundError("product category not found")
        return category

    def list_product_categories_by_merchant(self, merchant_id):
        return [c for c in self._categories.values() if c.merchant_id == merchant_id]

    def create_product(self, merchant_id, category_id, name, description, base_price, image_url, track_inventory, is_active):
        product = Product(
            id=uuid.uuid4(),
            merchant_id=merchant_id,
            category_id=category_id,
            name=name,
            description=description,
            base_price=base_price,
            image_url=image_url,
            track_inventory=track_inventory,
            is_active=is_active,
        )
        self._products[product.id] = product
        return product

    def get_product(self, merchant_id, product_id):
        product = self._products.get(product_id)
        if product is None or product.merchant_id != merchant_id:
            raise NotFoundError("product not found")
        return product

    def get_product_detail(self, merchant_id, product_id):
        product = self.get_product(merchant_id, product_id)
        category = self._categories.get(product.category_id)
        values = {f.name: getattr(product, f.name) for f in dataclasses.fields(product)}
        return ProductDetail(**values, category_name=category.name if category else "")

    def list_products_by_merchant(self, merchant_id):
        return [p for p in self._products.values() if p.merchant_id == merchant_id]

    def create_product_addon(self, product_id, name, price):
        addon = ProductAddon(id=uuid.uuid4(), product_id=product_id, name=name, price=price)
        self._addons[addon.id] = addon
        return addon

    def get_product_addon(self, addon_id):
        try:
            return self._addons[addon_id]
        except KeyError:
            raise NotFoundError("product addon not found") from None

    def list_product_addons_by_product(self, product_id):
        return [a for a in self._addons.values() if a.product_id == product_id]

    # inventory

    def upsert_product_inventory(self, product_id, branch_id, quantity):
        key = (product_id, branch_id)
        existing = self._inventory.get(key)
        if existing is None:
            record = ProductInventory(id=uuid.uuid4(), product_id=product_id, branch_id=branch_id, quantity=quantity)
        else:
            record = dataclasses.replace(existing, quantity=quantity, updated_at=_now())
        self._inventory[key] = record
        return record

    def get_product_inventory(self, product_id, branch_id):
        try:
            return self._inventory[(product_id, branch_id)]
        except KeyError:
            raise NotFoundError("product inventory not found") from None

    def update_product_inventory_quantity(self, product_id, branch_id, quantity):
        record = dataclasses.replace(
            self.get_product_inventory(product_id, branch_id), quantity=quantity, updated_at=_now()
        )
        self._inventory[(product_id, branch_id)] = record
        return record

    def list_inventory_by_merchant(self, merchant_id):
        """Stock per product of the merchant, summed over branches."""
        totals: dict[uuid.UUID, int] = {}
        for record in self._inventory.values():
            product = self._products.get(record.product_id)
            if product is not None and product.merchant_id == merchant_id:
                totals[product.id] = totals.get(product.id, 0) + record.quantity
        return [
            InventoryItem(product_id=p.id, product_name=p.name, quantity=totals[p.id])
            for p in self._products.values()
            if p.id in totals
        ]

    # discounts

    def create_merchant_discount(self, merchant_id, discount_type, value, description, valid_from, valid_to, product_id, category_id):
        discount = MerchantDiscount(
            id=uuid.uuid4(),
            merchant_id=merchant_id,
            discount_type=DiscountType(discount_type),
            value=value,
            description=description,
            valid_from=valid_from,
            valid_to=valid_to,
            product_id=product_id,
            category_id=category_id,
        )
        self._discounts[discount.id] = discount
        return discount

    def get_merchant_discount(self, merchant_id, discount_id):
        discount = self._discounts.get(discount_id)
        if discount is None or discount.merchant_id != merchant_id:
            raise NotFoundError("merchant discount not found")
        return discount

    def list_discounts_by_merchant(self, merchant_id):
        return [d for d in self._discounts.values() if d.merchant_id == merchant_id]

    def find_discount_by_description(self, merchant_id, description):
        """Return the merchant's first discount with this description, or None."""
        return next(
            (d for d in self._discounts.values() if d.merchant_id == merchant_id and d.description == description),
            None,
        )