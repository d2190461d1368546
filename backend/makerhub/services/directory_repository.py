"""
Directory repository: the single entry point for product/category/developer data.

``DirectoryRepository`` owns exactly one backend, chosen once from
``DatabaseSettings``:

1. ``DATABASE_URL`` set -> PostgreSQL (asyncpg)
2. ``SUPABASE_URL`` + ``SUPABASE_KEY`` set -> PostgREST (httpx)
3. neither -> ``DatabaseNotConfiguredError``

There is no fallback between backends at call time. Every free-text input
is NUL-stripped here, once, and limits are clamped here before dispatch.
"""

import logging
from typing import List, Optional

from makerhub.config import DatabaseSettings
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
from makerhub.services.errors import DatabaseNotConfiguredError
from makerhub.services.sanitizer import (
    sanitize_categories,
    sanitize_create_request,
    sanitize_update_request,
    strip_nul,
    strip_nul_optional,
)

logger = logging.getLogger(__name__)

FAVORITES_MAX_LIMIT = 200
LISTING_MAX_LIMIT = 50


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, int(value)))


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = strip_nul(value)
    return value if value.strip() else None


class DirectoryRepository:
    """产品目录数据访问门面"""

    def __init__(self, backend: DirectoryBackend):
        self.backend = backend

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> 'DirectoryRepository':
        if settings.has_database_url:
            from makerhub.services.postgres_backend import PostgresBackend

            backend: DirectoryBackend = PostgresBackend(
                settings.database_url,
                include_pending=settings.include_pending_in_approved,
                max_size=settings.pool_max_size,
                statement_timeout_ms=settings.statement_timeout_ms,
                acquire_timeout=settings.acquire_timeout_seconds,
            )
        elif settings.has_rest_credentials:
            from makerhub.services.rest_backend import RestBackend

            backend = RestBackend(
                settings.rest_url,
                settings.rest_key,
                include_pending=settings.include_pending_in_approved,
                connect_timeout=settings.rest_connect_timeout_seconds,
                timeout=settings.rest_timeout_seconds,
            )
        else:
            raise DatabaseNotConfiguredError()

        logger.info(
            "Data layer using %s backend (include_pending_in_approved=%s)",
            backend.name,
            settings.include_pending_in_approved,
        )
        return cls(backend)

    @property
    def backend_name(self) -> str:
        return self.backend.name

    async def close(self) -> None:
        await self.backend.close()

    # ---- products ----

    async def list_products(self, query: Optional[ProductQuery] = None) -> List[Product]:
        """最新优先的产品列表"""
        query = query or ProductQuery()
        cleaned = ProductQuery(
            category=_blank_to_none(query.category),
            tags=_blank_to_none(query.tags),
            language=_blank_to_none(query.language),
            status=_blank_to_none(query.status),
            search=_blank_to_none(query.search),
            limit=query.limit,
            offset=query.offset,
        )
        return await self.backend.list_products(cleaned)

    async def list_favorite_products(
        self,
        user_id: str,
        language: Optional[str] = None,
        limit: int = 50,
    ) -> List[Product]:
        return await self.backend.list_favorite_products(
            strip_nul(user_id),
            _blank_to_none(language),
            clamp(limit, 1, FAVORITES_MAX_LIMIT),
        )

    async def get_product(self, product_id: str) -> Optional[Product]:
        return await self.backend.get_product(strip_nul(product_id))

    async def create_product(self, payload: CreateProductRequest) -> Product:
        """提交新产品，初始状态总是待审核"""
        payload = sanitize_create_request(payload)
        payload.maker_email = payload.maker_email.strip().lower()
        return await self.backend.create_product(payload)

    async def update_product(self, product_id: str, updates: UpdateProductRequest) -> Optional[Product]:
        product_id = strip_nul(product_id)
        updates = sanitize_update_request(updates)
        if not updates.has_changes():
            return await self.backend.get_product(product_id)
        return await self.backend.update_product(product_id, updates)

    async def delete_product(self, product_id: str) -> bool:
        return await self.backend.delete_product(strip_nul(product_id))

    async def count_products(self) -> int:
        return await self.backend.count_products()

    # ---- categories ----

    async def list_categories(self) -> List[Category]:
        return await self.backend.list_categories()

    async def upsert_categories(self, categories: List[Category]) -> int:
        if not categories:
            return 0
        return await self.backend.upsert_categories(sanitize_categories(list(categories)))

    async def delete_category(self, category_id: str) -> bool:
        return await self.backend.delete_category(strip_nul(category_id))

    async def top_categories_by_product_count(self, limit: int = 10) -> List[CategoryWithCount]:
        return await self.backend.top_categories_by_product_count(clamp(limit, 1, LISTING_MAX_LIMIT))

    # ---- developers ----

    async def get_developer(self, email: str) -> Optional[Developer]:
        return await self.backend.get_developer(strip_nul(email).strip())

    async def search_developers(self, query: str, limit: int = 10) -> List[Developer]:
        return await self.backend.search_developers(
            strip_nul_optional(query) or '',
            clamp(limit, 1, LISTING_MAX_LIMIT),
        )

    async def top_developers_by_followers(self, limit: int = 10) -> List[DeveloperWithFollowers]:
        return await self.backend.top_developers_by_followers(clamp(limit, 1, LISTING_MAX_LIMIT))

    async def recent_developers(self, limit: int = 10) -> List[DeveloperWithFollowers]:
        return await self.backend.recent_developers(clamp(limit, 1, LISTING_MAX_LIMIT))

    async def developer_popularity_last_month(self, limit: int = 10) -> List[DeveloperPopularity]:
        return await self.backend.developer_popularity_last_month(clamp(limit, 1, LISTING_MAX_LIMIT))

    async def developer_popularity_last_week(self, limit: int = 10) -> List[DeveloperPopularity]:
        return await self.backend.developer_popularity_last_week(clamp(limit, 1, LISTING_MAX_LIMIT))

    async def developer_center_stats(self, email: str) -> DeveloperCenterStats:
        return await self.backend.developer_center_stats(strip_nul(email).strip())

    # ---- engagement ----

    async def follow_developer(self, email: str, user_id: str) -> None:
        await self.backend.follow_developer(strip_nul(email), strip_nul(user_id))

    async def unfollow_developer(self, email: str, user_id: str) -> None:
        await self.backend.unfollow_developer(strip_nul(email), strip_nul(user_id))

    async def like_product(self, product_id: str, user_id: str) -> None:
        await self.backend.like_product(strip_nul(product_id), strip_nul(user_id))

    async def unlike_product(self, product_id: str, user_id: str) -> None:
        await self.backend.unlike_product(strip_nul(product_id), strip_nul(user_id))

    async def favorite_product(self, product_id: str, user_id: str) -> None:
        await self.backend.favorite_product(strip_nul(product_id), strip_nul(user_id))

    async def unfavorite_product(self, product_id: str, user_id: str) -> None:
        await self.backend.unfavorite_product(strip_nul(product_id), strip_nul(user_id))
