"""
Storage backend interface: the capability set both storage backends provide.

Inputs arrive already sanitised and clamped by ``DirectoryRepository``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

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


class DirectoryBackend(ABC):
    """Abstract product/category/developer store."""

    name = 'abstract'

    def __init__(self, include_pending: bool = False):
        # Widen "approved" listings to approved + pending (dev deployments).
        self.include_pending = include_pending

    # ---- products ----

    @abstractmethod
    async def list_products(self, query: ProductQuery) -> List[Product]:
        ...

    @abstractmethod
    async def list_favorite_products(self, user_id: str, language: Optional[str], limit: int) -> List[Product]:
        ...

    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    async def create_product(self, payload: CreateProductRequest) -> Product:
        ...

    @abstractmethod
    async def update_product(self, product_id: str, updates: UpdateProductRequest) -> Optional[Product]:
        ...

    @abstractmethod
    async def delete_product(self, product_id: str) -> bool:
        ...

    @abstractmethod
    async def count_products(self) -> int:
        ...

    # ---- categories ----

    @abstractmethod
    async def list_categories(self) -> List[Category]:
        ...

    @abstractmethod
    async def upsert_categories(self, categories: List[Category]) -> int:
        ...

    @abstractmethod
    async def delete_category(self, category_id: str) -> bool:
        ...

    @abstractmethod
    async def top_categories_by_product_count(self, limit: int) -> List[CategoryWithCount]:
        ...

    # ---- developers ----

    @abstractmethod
    async def get_developer(self, email: str) -> Optional[Developer]:
        ...

    @abstractmethod
    async def search_developers(self, query: str, limit: int) -> List[Developer]:
        ...

    @abstractmethod
    async def top_developers_by_followers(self, limit: int) -> List[DeveloperWithFollowers]:
        ...

    @abstractmethod
    async def recent_developers(self, limit: int) -> List[DeveloperWithFollowers]:
        ...

    @abstractmethod
    async def developer_popularity_last_month(self, limit: int) -> List[DeveloperPopularity]:
        ...

    @abstractmethod
    async def developer_popularity_last_week(self, limit: int) -> List[DeveloperPopularity]:
        ...

    @abstractmethod
    async def developer_center_stats(self, email: str) -> DeveloperCenterStats:
        ...

    # ---- engagement ----

    @abstractmethod
    async def follow_developer(self, email: str, user_id: str) -> None:
        ...

    @abstractmethod
    async def unfollow_developer(self, email: str, user_id: str) -> None:
        ...

    @abstractmethod
    async def like_product(self, product_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    async def unlike_product(self, product_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    async def favorite_product(self, product_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    async def unfavorite_product(self, product_id: str, user_id: str) -> None:
        ...

    async def close(self) -> None:
        """Release pooled connections / HTTP clients."""
        return None
