from django import template
from django.urls import reverse

from ..utils.checkout import format_price
from ..utils.images import get_image_url

register = template.Library()


@register.filter
def price(value):
    return format_price(value)


@register.filter
def image_url(path):
    return get_image_url(path)


@register.filter
def line_total(item, cart):
    return format_price(cart.line_total(item))


@register.filter
def product_url(product):
    slug = product.get("slug") if isinstance(product, dict) else product.slug
    product_id = product.get("id") if isinstance(product, dict) else product.id
    ref = f"{product_id}-{slug}" if slug else str(product_id)
    return reverse("product_detail", kwargs={"product_ref": ref})
