from decimal import Decimal, InvalidOperation

from .cart import CHECKOUT_KEY

CART, DECISION, FORM, SUCCESS = "cart", "decision", "form", "success"
STEPS = (CART, DECISION, FORM, SUCCESS)

# mixed carts: pay the fixed lines and quote the rest, or quote everything
SPLIT, COMBINED = "split", "combined"
MODES = (SPLIT, COMBINED)


class CheckoutError(Exception):
    pass


def format_price(price):
    if price is None:
        return "$0.00"
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        return "$0.00"
    if not value.is_finite():
        return "$0.00"
    return f"${value:.2f}"


class Checkout:
    """Linear wizard: cart -> decision (mixed carts only) -> form -> success."""

    def __init__(self, cart):
        self.cart = cart
        self.session = cart.session
        state = self.session.get(CHECKOUT_KEY) or {}
        self.step = state.get("step") if state.get("step") in STEPS else CART
        self.mode = state.get("mode") if state.get("mode") in MODES else COMBINED

    def save(self):
        self.session[CHECKOUT_KEY] = {"step": self.step, "mode": self.mode}
        self.session.modified = True

    @property
    def title(self):
        return {
            CART: "Your Cart",
            DECISION: "How would you like to proceed?",
            FORM: "Checkout",
            SUCCESS: "Order Confirmed",
        }[self.step]

    @property
    def pays_online(self):
        return self.mode == SPLIT and self.cart.fixed_items_count > 0

    def proceed(self):
        if not self.cart:
            raise CheckoutError("Your cart is empty.")
        if self.cart.fixed_items_count and self.cart.quote_items_count:
            self.step = DECISION
        else:
            self.mode = SPLIT if self.cart.fixed_items_count else COMBINED
            self.step = FORM
        self.save()
        return self.step

    def choose_mode(self, mode):
        if self.step != DECISION:
            raise CheckoutError("Checkout mode can only be chosen for mixed carts.")
        if mode not in MODES:
            raise CheckoutError(f"Unknown checkout mode: {mode}")
        self.mode = mode
        self.step = FORM
        self.save()
        return self.step

    def back(self):
        self.step = CART
        self.save()
        return self.step

    def items_to_quote(self):
        if self.mode == SPLIT:
            return self.cart.quote_items()
        return list(self.cart.items)

    def complete(self):
        self.cart.reset()
        self.step = SUCCESS
        self.save()
        return self.step
