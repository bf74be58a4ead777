from fnmatch import fnmatch
from urllib.parse import urlsplit

from django.conf import settings
from django.templatetags.static import static

PLACEHOLDER = "storefront/placeholder.svg"


def is_allowed_host(url):
    hosts = settings.STOREFRONT_IMAGE_HOSTS
    if not hosts:
        return True
    hostname = urlsplit(url).hostname or ""
    return any(fnmatch(hostname, pattern) for pattern in hosts)


def get_image_url(path):
    """Backend media path ("/media/products/abc.jpg") or CDN URL -> full URL."""
    if not path:
        return static(PLACEHOLDER)
    if path.startswith(("http://", "https://")):
        return path if is_allowed_host(path) else static(PLACEHOLDER)
    return f"{settings.STOREFRONT_API_URL.rstrip('/')}/{path.lstrip('/')}"
