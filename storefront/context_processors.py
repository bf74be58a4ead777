from django.conf import settings

from .utils.cart import Cart
from .utils.checkout import Checkout
from .utils.quotes import RequestQuote


def storefront(request):
    """Cart, checkout step, signed-in user and open quote form for every template."""
    cart = Cart(request.session)
    return {
        "cart": cart,
        "checkout": Checkout(cart),
        "quote": RequestQuote(request.session),
        "shop_user": getattr(request, "shop_user", None),
        "merchant_name": settings.STOREFRONT_MERCHANT_NAME,
    }
