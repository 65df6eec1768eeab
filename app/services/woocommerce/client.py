"""WooCommerce REST feed client.

Reads products, product variations and orders from one storefront,
100 records per page, authenticated with HTTP Basic (consumer key/secret).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import requests
from requests.auth import HTTPBasicAuth

from app.core.config import StorefrontConfig, settings

__logger__ = logging.getLogger(__name__)

# Called after every page with (page_number, records_found_so_far)
PageCallback = Callable[[int, int], None]


class WooCommerceAPIError(Exception):
    """Non-2xx answer from a storefront listing endpoint."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"WooCommerce API error ({status_code}): {body}")


def format_modified_after(value: datetime) -> str:
    """ISO8601 UTC timestamp as expected by ``modified_after``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class StorefrontFeedClient:
    """Paginated reader for one storefront's REST API."""

    def __init__(
        self,
        storefront: StorefrontConfig,
        session: Optional[requests.Session] = None,
        page_size: Optional[int] = None,
        timeout: Optional[int] = None,
        verify_ssl: Optional[bool] = None,
    ):
        self.storefront = storefront
        self.api_base = storefront.base_url if storefront.base_url.endswith("/") else f"{storefront.base_url}/"
        self.page_size = page_size or settings.wc_page_size
        self.timeout = timeout or settings.wc_request_timeout
        self.verify_ssl = settings.wc_verify_ssl if verify_ssl is None else verify_ssl
        self.session = session or requests.Session()
        self.session.auth = HTTPBasicAuth(storefront.consumer_key, storefront.consumer_secret)

    def _get(self, path: str, params: Dict[str, Any]) -> requests.Response:
        url = f"{self.api_base}{path}"
        __logger__.debug(f"WC Request: GET {url} with params: {params}")
        return self.session.get(
            url,
            params=params,
            timeout=self.timeout,
            verify=self.verify_ssl,
            headers={"Cache-Control": "no-store"},
        )

    def fetch_collection(
        self,
        resource: str,
        modified_after: Optional[datetime] = None,
        on_page: Optional[PageCallback] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every record of ``resource`` ("products" or "orders").

        Pages are requested in increasing order until a page is empty,
        not a JSON array, or shorter than the page size.

        Raises:
            WooCommerceAPIError: on any non-2xx page
            requests.RequestException: on network failure
        """
        records: List[Dict[str, Any]] = []
        page = 1
        while True:
            if on_page:
                on_page(page, len(records))

            params: Dict[str, Any] = {"per_page": self.page_size, "page": page}
            if modified_after:
                params["modified_after"] = format_modified_after(modified_after)

            response = self._get(resource, params)
            if not response.ok:
                __logger__.error(
                    f"WooCommerce GET error on {resource} page {page} "
                    f"({self.storefront.name}): {response.status_code} - {response.text}"
                )
                raise WooCommerceAPIError(response.status_code, response.text)

            data = response.json()
            if not isinstance(data, list) or not data:
                break

            records.extend(data)
            if on_page:
                on_page(page, len(records))
            if len(data) < self.page_size:
                break
            page += 1

        __logger__.info(f"Fetched {len(records)} {resource} from {self.storefront.name} in {page} page(s)")
        return records

    def fetch_products(
        self,
        modified_after: Optional[datetime] = None,
        on_page: Optional[PageCallback] = None,
    ) -> List[Dict[str, Any]]:
        return self.fetch_collection("products", modified_after, on_page)

    def fetch_orders(
        self,
        modified_after: Optional[datetime] = None,
        on_page: Optional[PageCallback] = None,
    ) -> List[Dict[str, Any]]:
        return self.fetch_collection("orders", modified_after, on_page)

    def fetch_variations(self, product_id: int) -> List[Dict[str, Any]]:
        """
        Variations of one variable product.

        Never raises: any failure degrades to an empty list so the parent
        product can still be stored.
        """
        try:
            response = self._get(f"products/{product_id}/variations", {"per_page": self.page_size})
            if not response.ok:
                __logger__.warning(
                    f"Variations of product {product_id} ({self.storefront.name}) "
                    f"unavailable: {response.status_code}"
                )
                return []
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            __logger__.warning(f"Variations of product {product_id} ({self.storefront.name}) failed: {e}")
            return []
        return data if isinstance(data, list) else []
