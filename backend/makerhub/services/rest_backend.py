"""
PostgREST storage backend (Supabase REST, httpx)

Only the table endpoints are used: reads go through query-string filters,
writes through POST/PATCH/DELETE with ``Prefer`` headers. Aggregations that
need joins are not available here and return empty results; engagement
writes raise ``UnsupportedOperationError``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from makerhub.models.category import Category, CategoryWithCount
from makerhub.models.developer import (
    Developer,
    DeveloperCenterStats,
    DeveloperPopularity,
    DeveloperWithFollowers,
)
from makerhub.models.product import (
    CreateProductRequest,
    Product,
    ProductQuery,
    UpdateProductRequest,
)
from makerhub.services.backend_base import DirectoryBackend
from makerhub.services.errors import RestBackendError, UnsupportedOperationError
from makerhub.services.query_compiler import compile_product_rest_params
from makerhub.services.row_mapper import (
    map_category_row,
    map_developer_row,
    map_product_row,
)

logger = logging.getLogger(__name__)

Params = Sequence[Tuple[str, str]]


def parse_content_range_total(value: Optional[str]) -> int:
    """``0-0/42`` -> 42, ``*/0`` -> 0; unknown totals (``*/*``) count as 0."""
    if not value or '/' not in value:
        return 0
    total = value.rsplit('/', 1)[1].strip()
    try:
        return int(total)
    except ValueError:
        return 0


class RestBackend(DirectoryBackend):
    """PostgREST-backed store"""

    name = 'rest'

    def __init__(
        self,
        base_url: str,
        api_key: str,
        include_pending: bool = False,
        connect_timeout: float = 3.0,
        timeout: float = 8.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(include_pending=include_pending)
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
        )

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            'apikey': self.api_key,
            'Authorization': f"Bearer {self.api_key}",
            'Accept': 'application/json',
        }
        if prefer:
            headers['Prefer'] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        action: str,
        params: Optional[Params] = None,
        json: Any = None,
        prefer: Optional[str] = None,
        allow_not_found: bool = False,
    ) -> Optional[httpx.Response]:
        response = await self._client.request(
            method,
            self._url(table),
            params=list(params) if params else None,
            json=json,
            headers=self._headers(prefer),
        )
        if allow_not_found and response.status_code == 404:
            return None
        if response.is_error:
            logger.warning("REST %s %s failed status=%s", method, table, response.status_code)
            raise RestBackendError(action, response.status_code, response.reason_phrase, response.text)
        return response

    @staticmethod
    def _rows(response: Optional[httpx.Response]) -> List[Dict[str, Any]]:
        if response is None or not response.content:
            return []
        payload = response.json()
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            return [payload]
        return []

    async def _count(self, table: str, params: Params) -> int:
        response = await self._request(
            'GET', table, f"fetch count from {table}",
            params=list(params) + [('limit', '1')],
            prefer='count=exact',
        )
        return parse_content_range_total(response.headers.get('content-range'))

    def _unsupported(self, operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(operation, self.name)

    async def close(self) -> None:
        await self._client.aclose()

    # ---- products ----

    async def list_products(self, query: ProductQuery) -> List[Product]:
        response = await self._request(
            'GET', 'products', 'fetch products',
            params=compile_product_rest_params(query, self.include_pending),
        )
        return [map_product_row(row) for row in self._rows(response)]

    async def list_favorite_products(self, user_id: str, language: Optional[str], limit: int) -> List[Product]:
        return []

    async def get_product(self, product_id: str) -> Optional[Product]:
        response = await self._request(
            'GET', 'products', 'fetch product',
            params=[('id', f"eq.{product_id}")],
            allow_not_found=True,
        )
        rows = self._rows(response)
        return map_product_row(rows[0]) if rows else None

    async def create_product(self, payload: CreateProductRequest) -> Product:
        body = payload.to_dict()
        body['status'] = 'pending'
        response = await self._request(
            'POST', 'products', 'create product',
            json=body,
            prefer='return=representation',
        )
        rows = self._rows(response)
        if not rows:
            raise RestBackendError('create product', response.status_code, response.reason_phrase, 'empty representation')
        return map_product_row(rows[0])

    async def update_product(self, product_id: str, updates: UpdateProductRequest) -> Optional[Product]:
        columns = updates.to_columns()
        if not columns:
            return await self.get_product(product_id)
        columns['updated_at'] = datetime.now(timezone.utc).isoformat()

        response = await self._request(
            'PATCH', 'products', 'update product',
            params=[('id', f"eq.{product_id}")],
            json=columns,
            prefer='return=representation',
            allow_not_found=True,
        )
        rows = self._rows(response)
        return map_product_row(rows[0]) if rows else None

    async def delete_product(self, product_id: str) -> bool:
        response = await self._request(
            'DELETE', 'products', 'delete product',
            params=[('id', f"eq.{product_id}")],
            prefer='return=representation',
            allow_not_found=True,
        )
        return bool(self._rows(response))

    async def count_products(self) -> int:
        return await self._count('products', [('select', 'id')])

    # ---- categories ----

    async def list_categories(self) -> List[Category]:
        response = await self._request(
            'GET', 'categories', 'fetch categories',
            params=[('order', 'id.asc')],
        )
        return [map_category_row(row) for row in self._rows(response)]

    async def upsert_categories(self, categories: List[Category]) -> int:
        response = await self._request(
            'POST', 'categories', 'upsert categories',
            params=[('on_conflict', 'id')],
            json=[category.to_dict() for category in categories],
            prefer='resolution=merge-duplicates,return=representation',
        )
        return len(self._rows(response))

    async def delete_category(self, category_id: str) -> bool:
        response = await self._request(
            'DELETE', 'categories', 'delete category',
            params=[('id', f"eq.{category_id}")],
            prefer='return=representation',
            allow_not_found=True,
        )
        return bool(self._rows(response))

    async def top_categories_by_product_count(self, limit: int) -> List[CategoryWithCount]:
        return []

    # ---- developers ----

    async def get_developer(self, email: str) -> Optional[Developer]:
        response = await self._request(
            'GET', 'developers', 'fetch developer',
            params=[('select', 'email,name,avatar_url,website'), ('email', f"eq.{email}")],
        )
        rows = self._rows(response)
        return map_developer_row(rows[0]) if rows else None

    async def search_developers(self, query: str, limit: int) -> List[Developer]:
        return []

    async def top_developers_by_followers(self, limit: int) -> List[DeveloperWithFollowers]:
        return []

    async def recent_developers(self, limit: int) -> List[DeveloperWithFollowers]:
        return []

    async def developer_popularity_last_month(self, limit: int) -> List[DeveloperPopularity]:
        return []

    async def developer_popularity_last_week(self, limit: int) -> List[DeveloperPopularity]:
        return []

    async def developer_center_stats(self, email: str) -> DeveloperCenterStats:
        followers = await self._count(
            'developer_follows',
            [('select', 'id'), ('developer_email', f"eq.{email}")],
        )
        total_likes = await self._count(
            'product_likes',
            [('select', 'id,products!inner(maker_email)'), ('products.maker_email', f"eq.{email}")],
        )
        total_favorites = await self._count(
            'product_favorites',
            [('select', 'id,products!inner(maker_email)'), ('products.maker_email', f"eq.{email}")],
        )
        return DeveloperCenterStats(
            followers=followers,
            total_likes=total_likes,
            total_favorites=total_favorites,
        )

    # ---- engagement ----

    async def follow_developer(self, email: str, user_id: str) -> None:
        raise self._unsupported('follow_developer')

    async def unfollow_developer(self, email: str, user_id: str) -> None:
        raise self._unsupported('unfollow_developer')

    async def like_product(self, product_id: str, user_id: str) -> None:
        raise self._unsupported('like_product')

    async def unlike_product(self, product_id: str, user_id: str) -> None:
        raise self._unsupported('unlike_product')

    async def favorite_product(self, product_id: str, user_id: str) -> None:
        raise self._unsupported('favorite_product')

    async def unfavorite_product(self, product_id: str, user_id: str) -> None:
        raise self._unsupported('unfavorite_product')
