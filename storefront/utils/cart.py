import logging
from decimal import Decimal, InvalidOperation

from ..api.schemas import OrderItemSchema

logger = logging.getLogger(__name__)

CART_KEY = "cart"
CHECKOUT_KEY = "checkout"


def get_cart(session):
    cart = session.get(CART_KEY, {"items": []})
    if not isinstance(cart, dict) or not isinstance(cart.get("items"), list):
        logger.warning("Discarding malformed cart in session: %r", cart)
        cart = {"items": []}
    return cart


def save_cart(session, cart):
    session[CART_KEY] = cart
    session.modified = True


def _clean_items(items):
    clean, seen = [], {}
    for item in items:
        try:
            product_id = int(item["id"])
            qty = int(item["qty"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Dropping malformed cart line: %r", item)
            continue
        if qty < 1:
            continue
        if product_id in seen:
            seen[product_id]["qty"] += qty
            continue
        line = dict(item, id=product_id, qty=qty)
        seen[product_id] = line
        clean.append(line)
    return clean


def _price(value):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class Cart:
    """
    Session-backed cart: an ordered list of product snapshots with a qty.

    Product ids are unique within the list and every qty is >= 1. Each
    mutation is written straight back to the session.
    """

    def __init__(self, session):
        self.session = session
        data = get_cart(session)
        self.items = _clean_items(data["items"])
        self.is_open = bool(data.get("open", False))

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def __bool__(self):
        return bool(self.items)

    def save(self):
        save_cart(self.session, {"items": self.items, "open": self.is_open})

    def get(self, product_id):
        product_id = int(product_id)
        return next((item for item in self.items if item["id"] == product_id), None)

    def add(self, product, qty=1):
        qty = int(qty)
        if qty < 1:
            raise ValueError("qty must be a positive integer")

        existing = self.get(product.id)
        if existing:
            existing["qty"] += qty
        else:
            self.items.append({
                "id": product.id,
                "name": product.name,
                "slug": product.slug,
                "category": product.category,
                "price": str(product.price) if product.price is not None else None,
                "price_type": product.price_type,
                "image": product.images[0] if product.images else "",
                "qty": qty,
            })
        self.save()
        return self

    def remove(self, product_id):
        product_id = int(product_id)
        self.items = [item for item in self.items if item["id"] != product_id]
        self.save()
        return self

    def update_qty(self, product_id, delta):
        product_id = int(product_id)
        for item in self.items:
            if item["id"] == product_id:
                item["qty"] += int(delta)
        self.items = [item for item in self.items if item["qty"] > 0]
        self.save()
        return self

    def increment(self, product_id):
        return self.update_qty(product_id, 1)

    def decrement(self, product_id):
        return self.update_qty(product_id, -1)

    def open(self):
        self.is_open = True
        self.save()

    def close(self):
        self.is_open = False
        self.save()

    def reset(self):
        self.items = []
        self.is_open = False
        self.session.pop(CHECKOUT_KEY, None)
        self.save()

    def fixed_items(self):
        return [item for item in self.items if item["price_type"] == "fixed"]

    def quote_items(self):
        return [item for item in self.items if item["price_type"] == "quote"]

    @property
    def total(self):
        total = Decimal("0")
        for item in self.fixed_items():
            price = _price(item.get("price"))
            if price is not None:
                total += price * item["qty"]
        return total

    @property
    def fixed_items_count(self):
        return len(self.fixed_items())

    @property
    def quote_items_count(self):
        return len(self.quote_items())

    @property
    def item_count(self):
        return sum(item["qty"] for item in self.items)

    def line_total(self, item):
        price = _price(item.get("price"))
        return price * item["qty"] if price is not None else None

    def order_items(self):
        return [
            OrderItemSchema(product_id=item["id"], quantity=item["qty"])
            for item in self.fixed_items()
        ]

    def to_dict(self):
        return {
            "items": self.items,
            "open": self.is_open,
            "total": str(self.total),
            "item_count": self.item_count,
            "fixed_items_count": self.fixed_items_count,
            "quote_items_count": self.quote_items_count,
        }
