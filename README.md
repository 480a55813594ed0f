# storefront

Domain services for a merchant storefront: actors and sessions, role-based
access to merchants, and shopping carts whose lines are priced against the
merchant's products and add-ons and discounted automatically. All records
live in an in-memory store, so the package needs no database and has no
dependencies outside the standard library.

The `test` extra installs pytest for running the test suite.

## Modules

- `storefront.models`: frozen dataclasses for actors, profiles, sessions,
  roles, branches, carts and cart items, product categories, products,
  add-ons, inventory and merchant discounts, plus the `RoleType`
  (`admin`, `merchant`, `employee`) and `DiscountType` (`percentage`, `flat`)
  enums. `MerchantDiscount.is_active(now)` checks the validity window and
  `MerchantDiscount.priority_for(product_id, category_id)` ranks a discount's
  scope: product 1, category 2, merchant-wide 3.
- `storefront.errors`: `DomainError`, which carries an HTTP `status`, an
  `ErrorKind` and a `message`; the subclasses `NotFoundError` (404) and
  `ConflictError` (409); `validation_error(message)` (400) and
  `internal_error(cause)` (500); `parse_uuid(value, label)`, which raises a
  400 error such as "invalid cart id"; and `round2(value)`, which rounds to
  cents with halves away from zero.
- `storefront.store`: `MemoryStore`, the backing store. Lookups that miss
  raise `NotFoundError`; duplicates raise `ConflictError`.
- `storefront.access`: `AccessPolicy`. An actor holding the admin role may
  view and manage every merchant; otherwise the merchant role within the
  target merchant is required. Refusals raise a 403 `DomainError`.
- `storefront.actor`: `ActorService` for registration, login, sessions and
  lookups, `PasswordHasher` (salted PBKDF2-SHA256; an empty password hashes
  to an empty string) and `split_full_name`.
- `storefront.cart`: `CartService` for creating carts, adding, updating and
  removing lines and reading a cart's detail; `normalize_addon_ids` and
  `calculate_discount_amount`.
- `storefront.cart_view`: `CartHandler`, which validates request bodies
  given as dictionaries and returns `(HTTPStatus, body)` pairs, and the
  response builders `cart_created_response`, `cart_item_response` and
  `cart_detail_response`. Passing a payment method to the cart detail adds a
  VAT preview: 8 % for `card`, 15 % for `cash`; any other method is a 400
  error.

## How carts are priced

A line's subtotal is `quantity × (base price + sum of add-on prices)`,
rounded to cents. Adding a product with the same set of add-ons as an
existing line merges the two and adds their quantities; add-on ids are
de-duplicated and sorted first, and an add-on that belongs to another product
is rejected.

When no discount id is given, the service picks the active discount with the
narrowest scope that matches the product (product, then category, then
merchant-wide; the newest wins a tie). If none applies, the line is tied to
the merchant's `NO_DISCOUNT` flat discount of zero, which is created on first
use. Percentage discounts take that share of the subtotal; flat discounts
never take more than the subtotal. Expired, not-yet-active and non-matching
discounts are rejected with a 400 error.

## Example

```python
import uuid

from storefront.actor import ActorService
from storefront.cart import CartService
from storefront.cart_view import cart_detail_response
from storefront.models import NewActor, RoleType
from storefront.store import MemoryStore
from storefront.access import AccessPolicy

store = MemoryStore()
merchant_id = uuid.uuid4()

password = "password"
owner = ActorService(store).create_actor(
    NewActor(merchant_id=merchant_id, full_name="Ada Owner",
             email="owner@example.com", password=password)
)
role = store.add_role(merchant_id, RoleType.MERCHANT)
store.assign_actor_role(merchant_id, owner.id, role.id)
AccessPolicy(store).require_manage_access(merchant_id, "owner@example.com", merchant_id)

branch = store.add_branch(merchant_id, "Main")
category = store.create_product_category(merchant_id, "Coffee", None)
latte = store.create_product(merchant_id, category.id, "Latte", None, 4.5, None, False, True)

carts = CartService(store)
cart = carts.create_cart(uuid.uuid4(), merchant_id, branch.id, None)
carts.add_item_to_cart(cart.id, latte.id, 2)

detail = carts.get_cart_detail(str(cart.id))
body = cart_detail_response(detail, "card")
# body["subtotal"] == 9.0, body["total_vat"] == 0.72, body["total_price"] == 9.72
```

## What the package does not do

- Storage is in memory only: `MemoryStore` keeps nothing between runs and
  there is no database back end.
- There is no HTTP server or command-line program. `CartHandler` works on
  plain dictionaries and returns status and body; wiring it to a web
  framework, and handling authentication tokens, is left to the caller.
- There is no service layer for managing categories, products, add-ons or
  inventory with access checks; those records are created and read through
  `MemoryStore` directly.