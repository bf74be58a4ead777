"""
Typed client for the backend REST API.

One method per backend operation. Request bodies and responses are
validated with the pydantic schemas in ``storefront.api.schemas``; every
failure (HTTP error, transport error, unexpected payload) surfaces as
``ApiError``.
"""
import logging
from typing import Any, List, Optional, Type

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .auth import REFRESH_PATH, MemoryTokens, TokenRefreshAuth
from .errors import ApiError
from .schemas import (
    AuthResponseSchema,
    OrderCreateSchema,
    OrderInitSchema,
    PaymentVerifySchema,
    ProductSchema,
    QuoteInputSchema,
    QuoteSuccessSchema,
    SavedAddressSchema,
    TokenObtainPairInputSchema,
    TokenObtainPairOutputSchema,
    TokenRefreshInputSchema,
    TokenRefreshOutputSchema,
    TokenVerifyInputSchema,
    UserOutSchema,
    UserRegisterSchema,
)

logger = logging.getLogger(__name__)

# operationIds of the backend document implemented below
OPERATIONS = {
    "product_api_list_products": "list_products",
    "product_api_get_product": "get_product",
    "user_api_register_user": "register_user",
    "user_api_get_me": "get_me",
    "quotes_api_create_quote_request": "create_quote_request",
    "order_api_initiate_order": "initiate_order",
    "order_api_get_my_addresses": "get_my_addresses",
    "order_api_verify_payment": "verify_payment",
    "token_obtain_pair": "obtain_token",
    "token_refresh": "refresh_token",
    "token_verify": "verify_token",
}


class ApiClient:
    def __init__(
        self,
        base_url: str,
        tokens=None,
        on_logout=None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens if tokens is not None else MemoryTokens()
        self.auth = TokenRefreshAuth(
            self.tokens, self.base_url + REFRESH_PATH, on_logout=on_logout
        )
        self._http = httpx.Client(
            base_url=self.base_url,
            auth=self.auth,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[BaseModel] = None,
        schema: Optional[Type[BaseModel]] = None,
        many: bool = False,
    ) -> Any:
        url = self.base_url + path
        payload = body.model_dump(mode="json") if body is not None else None
        try:
            response = self._http.request(method, path, json=payload)
        except httpx.TransportError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiError(method, url, 0, str(exc) or exc.__class__.__name__) from exc

        logger.debug("%s %s -> %s", method, path, response.status_code)
        if response.is_error:
            raise ApiError(
                method, url, response.status_code, response.reason_phrase, _body(response)
            )

        data = response.json() if response.content else None
        if schema is None:
            return data
        try:
            if many:
                return TypeAdapter(List[schema]).validate_python(data)
            return schema.model_validate(data)
        except ValidationError as exc:
            logger.error("Unexpected payload from %s %s: %s", method, path, exc)
            raise ApiError(
                method, url, response.status_code, "Invalid response", data
            ) from exc

    # ------------------------------------------------------------
    # Products
    # ------------------------------------------------------------

    def list_products(self) -> List[ProductSchema]:
        return self._request("GET", "/api/products/", schema=ProductSchema, many=True)

    def get_product(self, product_id: int) -> ProductSchema:
        return self._request(
            "GET", f"/api/products/{int(product_id)}", schema=ProductSchema
        )

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    def register_user(self, body: UserRegisterSchema) -> AuthResponseSchema:
        return self._request(
            "POST", "/api/auth/register", body, schema=AuthResponseSchema
        )

    def get_me(self) -> UserOutSchema:
        """Who am I? Used after login and on every new page load."""
        return self._request("GET", "/api/auth/me", schema=UserOutSchema)

    # ------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------

    def create_quote_request(self, body: QuoteInputSchema) -> QuoteSuccessSchema:
        return self._request(
            "POST", "/api/quotes/request", body, schema=QuoteSuccessSchema
        )

    # ------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------

    def initiate_order(self, body: OrderCreateSchema) -> OrderInitSchema:
        return self._request("POST", "/api/order/initiate", body, schema=OrderInitSchema)

    def get_my_addresses(self) -> List[SavedAddressSchema]:
        return self._request(
            "GET", "/api/order/my-addresses", schema=SavedAddressSchema, many=True
        )

    def verify_payment(self, body: PaymentVerifySchema) -> Any:
        return self._request("POST", "/api/order/verify", body)

    # ------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------

    def obtain_token(self, body: TokenObtainPairInputSchema) -> TokenObtainPairOutputSchema:
        return self._request(
            "POST", "/api/token/pair", body, schema=TokenObtainPairOutputSchema
        )

    def refresh_token(self, body: TokenRefreshInputSchema) -> TokenRefreshOutputSchema:
        return self._request(
            "POST", REFRESH_PATH, body, schema=TokenRefreshOutputSchema
        )

    def verify_token(self, body: TokenVerifyInputSchema) -> Any:
        return self._request("POST", "/api/token/verify", body)


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
