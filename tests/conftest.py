"""Pytest configuration and fixtures"""
import json

import httpx
import pytest

from storefront.api.schemas import ProductSchema

PRODUCTS = [
    {
        "id": 1,
        "name": "McAfee Endpoint Security",
        "slug": "mcafee-endpoint-security",
        "description": "Complete enterprise protection bundle for 50-100 nodes.",
        "category": "Software",
        "price": "1240.00",
        "price_type": "fixed",
        "images": ["/media/products/mcafee-front.png", "/media/products/mcafee-dashboard.png"],
        "features": ["Centralised console"],
        "specs": {"Nodes": "50-100"},
        "rating": 4.8,
        "reviews": 124,
    },
    {
        "id": 2,
        "name": "BlackBox 4K LTE",
        "slug": "blackbox-4k-lte",
        "description": "Cloud connected dashcam with night vision and parking mode.",
        "category": "Hardware",
        "price": "289.00",
        "price_type": "fixed",
        "images": ["https://placehold.co/600x400.png?text=Dashcam"],
    },
    {
        "id": 3,
        "name": "Unity Pro Enterprise",
        "slug": "unity-pro-enterprise",
        "description": "Annual multi-seat development license with priority support.",
        "category": "Software",
        "price": None,
        "price_type": "quote",
        "images": [],
    },
]

USER = {
    "id": 7,
    "email": "asha@example.com",
    "first_name": "Asha",
    "last_name": "Verma",
    "company_name": "Acme Labs",
}


class FakeSession(dict):
    """Dict with the ``modified`` flag Django sessions carry."""

    modified = False


class FakeBackend:
    """In-process stand-in for the REST backend, served through httpx.MockTransport."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, status=200, json=None, handler=None):
        if handler is None:
            def handler(request, status=status, payload=json):
                return httpx.Response(status, json=payload)
        self.routes[(method, path)] = handler

    def handle(self, request):
        # the auth flow re-sends the same Request object with new headers,
        # so keep a copy of what went over the wire
        self.calls.append(httpx.Request(
            request.method, request.url, headers=request.headers.copy(), content=request.read()
        ))
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        return handler(request)

    def called(self, method, path):
        return [r for r in self.calls if r.method == method and r.url.path == path]

    def body(self, method, path, index=-1):
        return json.loads(self.called(method, path)[index].content)

    @property
    def transport(self):
        return httpx.MockTransport(self.handle)

    def with_catalog(self):
        self.add("GET", "/api/products/", json=PRODUCTS)
        for product in PRODUCTS:
            self.add("GET", f"/api/products/{product['id']}", json=product)
        return self


@pytest.fixture(autouse=True)
def storefront_settings(settings):
    settings.SESSION_ENGINE = "django.contrib.sessions.backends.cache"
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False
    settings.STOREFRONT_API_URL = "http://api.test"
    settings.STOREFRONT_IMAGE_HOSTS = ["api.test", "placehold.co", "*.nip.io"]
    return settings


@pytest.fixture
def backend(settings):
    fake = FakeBackend().with_catalog()
    settings.STOREFRONT_API_TRANSPORT = fake.transport
    return fake


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def products():
    return {p["id"]: ProductSchema.model_validate(p) for p in PRODUCTS}


@pytest.fixture
def signed_in(client):
    session = client.session
    session["access_token"] = "access-1"
    session["refresh_token"] = "refresh-1"
    session["user"] = USER
    session.save()
    return client
