"""
PostgreSQL storage backend (asyncpg)

The pool is created lazily on first use. ``statement_cache_size=0`` keeps it
usable behind transaction-mode poolers (PgBouncer, Supabase pooler), and
every connection runs with a server-side ``statement_timeout``.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

import asyncpg

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
from makerhub.services.query_compiler import (
    PRODUCT_COLUMNS,
    approved_status_clause,
    compile_product_sql,
)
from makerhub.services.row_mapper import (
    map_category_row,
    map_category_with_count_row,
    map_developer_center_stats_row,
    map_developer_popularity_row,
    map_developer_row,
    map_developer_with_followers_row,
    map_product_row,
)

logger = logging.getLogger(__name__)

DEVELOPER_COLUMNS = "d.email, d.name, d.avatar_url, d.website"

UPSERT_DEVELOPER_SQL = (
    "INSERT INTO developers (email, name, website) "
    "VALUES ($1, $2, $3) "
    "ON CONFLICT (email) DO UPDATE SET "
    "name = EXCLUDED.name, "
    "website = COALESCE(EXCLUDED.website, developers.website), "
    "updated_at = NOW()"
)

# Likes/favorites received per maker inside a created_at window.
_POPULARITY_CTE = (
    "WITH likes AS ("
    " SELECT p.maker_email AS email, COUNT(l.id) AS likes"
    " FROM products p JOIN product_likes l ON l.product_id = p.id"
    " WHERE {window}"
    " GROUP BY p.maker_email"
    "), favorites AS ("
    " SELECT p.maker_email AS email, COUNT(f.id) AS favorites"
    " FROM products p JOIN product_favorites f ON f.product_id = p.id"
    " WHERE {fav_window}"
    " GROUP BY p.maker_email"
    ") "
    f"SELECT {DEVELOPER_COLUMNS}, "
    "COALESCE(l.likes, 0) AS likes, "
    "COALESCE(f.favorites, 0) AS favorites, "
    "(COALESCE(l.likes, 0) + COALESCE(f.favorites, 0)) AS score "
    "FROM developers d "
    "LEFT JOIN likes l ON l.email = d.email "
    "LEFT JOIN favorites f ON f.email = d.email"
)

_POPULARITY_ORDER = " ORDER BY score DESC, favorites DESC, likes DESC, d.name ASC"


def last_month_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """[first instant of previous calendar month, first instant of current month) in UTC."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    end = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    start = (end - timedelta(days=1)).replace(day=1)
    return start, end


def last_week_since(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=7)


def _rows_affected(status: str) -> int:
    """``'DELETE 3'`` / ``'INSERT 0 2'`` -> 3 / 2."""
    try:
        return int(str(status).rsplit(' ', 1)[-1])
    except (TypeError, ValueError):
        return 0


class PostgresBackend(DirectoryBackend):
    """asyncpg-backed store"""

    name = 'postgres'

    def __init__(
        self,
        dsn: str,
        include_pending: bool = False,
        max_size: int = 15,
        statement_timeout_ms: int = 15000,
        acquire_timeout: float = 8.0,
        pool: Any = None,
    ):
        super().__init__(include_pending=include_pending)
        self.dsn = dsn
        self.max_size = max(1, max_size)
        self.statement_timeout_ms = statement_timeout_ms
        self.acquire_timeout = acquire_timeout
        self._pool = pool
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self):
        """Return the pool, creating it on first call."""
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=1,
                    max_size=self.max_size,
                    statement_cache_size=0,
                    server_settings={'statement_timeout': str(self.statement_timeout_ms)},
                )
                logger.info("PostgreSQL pool ready (max_size=%s)", self.max_size)
        return self._pool

    async def _fetch(self, sql: str, *args) -> List[Any]:
        pool = await self._get_pool()
        async with pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.fetch(sql, *args)

    async def _fetchrow(self, sql: str, *args) -> Optional[Any]:
        pool = await self._get_pool()
        async with pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.fetchrow(sql, *args)

    async def _execute(self, sql: str, *args) -> str:
        pool = await self._get_pool()
        async with pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.execute(sql, *args)

    async def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            logger.info("PostgreSQL pool closed")

    # ---- products ----

    async def list_products(self, query: ProductQuery) -> List[Product]:
        sql, values = compile_product_sql(query, self.include_pending)
        rows = await self._fetch(sql, *values)
        return [map_product_row(row) for row in rows]

    async def list_favorite_products(self, user_id: str, language: Optional[str], limit: int) -> List[Product]:
        values: List[Any] = [user_id]
        sql = (
            f"SELECT {PRODUCT_COLUMNS} "
            "FROM product_favorites pf "
            "JOIN products p ON p.id = pf.product_id "
            f"WHERE pf.user_id = $1 AND {approved_status_clause(self.include_pending)}"
        )
        if language:
            values.append(language)
            sql += f" AND p.language = ${len(values)}"
        values.append(limit)
        sql += f" ORDER BY pf.created_at DESC LIMIT ${len(values)}"

        rows = await self._fetch(sql, *values)
        return [map_product_row(row) for row in rows]

    async def get_product(self, product_id: str) -> Optional[Product]:
        row = await self._fetchrow(
            f"SELECT {PRODUCT_COLUMNS} FROM products p WHERE p.id::text = $1",
            product_id,
        )
        return map_product_row(row) if row is not None else None

    async def create_product(self, payload: CreateProductRequest) -> Product:
        row = await self._fetchrow(
            "INSERT INTO products AS p "
            "(name, slogan, description, website, logo_url, category, tags, "
            "maker_name, maker_email, maker_website, language, status) "
            "VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, 'pending') "
            f"RETURNING {PRODUCT_COLUMNS}",
            payload.name,
            payload.slogan,
            payload.description,
            payload.website,
            payload.logo_url,
            payload.category,
            list(payload.tags),
            payload.maker_name,
            payload.maker_email,
            payload.maker_website,
            payload.language,
        )
        await self._execute(
            UPSERT_DEVELOPER_SQL,
            payload.maker_email,
            payload.maker_name,
            payload.maker_website,
        )
        return map_product_row(row)

    async def update_product(self, product_id: str, updates: UpdateProductRequest) -> Optional[Product]:
        columns = updates.to_columns()
        if not columns:
            return await self.get_product(product_id)

        values: List[Any] = []
        assignments = []
        for column, value in columns.items():
            values.append(value)
            assignments.append(f"{column} = ${len(values)}")
        assignments.append("updated_at = NOW()")
        values.append(product_id)

        row = await self._fetchrow(
            f"UPDATE products AS p SET {', '.join(assignments)} "
            f"WHERE p.id::text = ${len(values)} "
            f"RETURNING {PRODUCT_COLUMNS}",
            *values,
        )
        return map_product_row(row) if row is not None else None

    async def delete_product(self, product_id: str) -> bool:
        status = await self._execute("DELETE FROM products WHERE id::text = $1", product_id)
        return _rows_affected(status) > 0

    async def count_products(self) -> int:
        row = await self._fetchrow("SELECT COUNT(*) AS total FROM products")
        return int(row['total']) if row is not None else 0

    # ---- categories ----

    async def list_categories(self) -> List[Category]:
        rows = await self._fetch(
            "SELECT id::text AS id, name_en, name_zh, icon, color FROM categories ORDER BY id"
        )
        return [map_category_row(row) for row in rows]

    async def upsert_categories(self, categories: List[Category]) -> int:
        values: List[Any] = []
        tuples = []
        for category in categories:
            start = len(values)
            values.extend([category.id, category.name_en, category.name_zh, category.icon, category.color])
            tuples.append('(' + ', '.join(f"${start + i}" for i in range(1, 6)) + ')')

        status = await self._execute(
            "INSERT INTO categories (id, name_en, name_zh, icon, color) "
            f"VALUES {', '.join(tuples)} "
            "ON CONFLICT (id) DO UPDATE SET "
            "name_en = EXCLUDED.name_en, "
            "name_zh = EXCLUDED.name_zh, "
            "icon = EXCLUDED.icon, "
            "color = EXCLUDED.color",
            *values,
        )
        return _rows_affected(status)

    async def delete_category(self, category_id: str) -> bool:
        status = await self._execute("DELETE FROM categories WHERE id = $1", category_id)
        return _rows_affected(status) > 0

    async def top_categories_by_product_count(self, limit: int) -> List[CategoryWithCount]:
        rows = await self._fetch(
            "SELECT c.id::text AS id, c.name_en, c.name_zh, c.icon, c.color, "
            "COUNT(p.id) AS product_count "
            "FROM categories c "
            "JOIN products p ON p.category = c.id "
            f"WHERE {approved_status_clause(self.include_pending)} "
            "GROUP BY c.id, c.name_en, c.name_zh, c.icon, c.color "
            "ORDER BY product_count DESC, c.id ASC "
            "LIMIT $1",
            limit,
        )
        return [map_category_with_count_row(row) for row in rows]

    # ---- developers ----

    async def get_developer(self, email: str) -> Optional[Developer]:
        row = await self._fetchrow(
            f"SELECT {DEVELOPER_COLUMNS} FROM developers d "
            "WHERE lower(d.email) = lower($1) "
            "ORDER BY d.updated_at DESC NULLS LAST "
            "LIMIT 1",
            email,
        )
        return map_developer_row(row) if row is not None else None

    async def search_developers(self, query: str, limit: int) -> List[Developer]:
        rows = await self._fetch(
            f"SELECT {DEVELOPER_COLUMNS} FROM developers d "
            "WHERE d.name ILIKE $1 OR d.email ILIKE $1 OR d.website ILIKE $1 "
            "ORDER BY d.name ASC "
            "LIMIT $2",
            f"%{query}%",
            limit,
        )
        return [map_developer_row(row) for row in rows]

    async def top_developers_by_followers(self, limit: int) -> List[DeveloperWithFollowers]:
        rows = await self._fetch(
            f"SELECT {DEVELOPER_COLUMNS}, COUNT(f.id) AS followers "
            "FROM developers d "
            "LEFT JOIN developer_follows f ON f.developer_email = d.email "
            "GROUP BY d.email, d.name, d.avatar_url, d.website "
            "HAVING COUNT(f.id) > 0 "
            "ORDER BY COUNT(f.id) DESC, d.name ASC "
            "LIMIT $1",
            limit,
        )
        return [map_developer_with_followers_row(row) for row in rows]

    async def recent_developers(self, limit: int) -> List[DeveloperWithFollowers]:
        rows = await self._fetch(
            f"SELECT {DEVELOPER_COLUMNS}, COUNT(f.id) AS followers "
            "FROM developers d "
            "LEFT JOIN developer_follows f ON f.developer_email = d.email "
            "GROUP BY d.email, d.name, d.avatar_url, d.website, d.created_at "
            "ORDER BY d.created_at DESC, d.name ASC "
            "LIMIT $1",
            limit,
        )
        return [map_developer_with_followers_row(row) for row in rows]

    async def developer_popularity_last_month(self, limit: int) -> List[DeveloperPopularity]:
        start, end = last_month_window()
        sql = _POPULARITY_CTE.format(
            window="l.created_at >= $1 AND l.created_at < $2",
            fav_window="f.created_at >= $1 AND f.created_at < $2",
        ) + _POPULARITY_ORDER + " LIMIT $3"
        rows = await self._fetch(sql, start, end, limit)
        return [map_developer_popularity_row(row) for row in rows]

    async def developer_popularity_last_week(self, limit: int) -> List[DeveloperPopularity]:
        since = last_week_since()
        sql = (
            _POPULARITY_CTE.format(window="l.created_at >= $1", fav_window="f.created_at >= $1")
            + " WHERE (COALESCE(l.likes, 0) + COALESCE(f.favorites, 0)) > 0"
            + _POPULARITY_ORDER
            + " LIMIT $2"
        )
        rows = await self._fetch(sql, since, limit)
        return [map_developer_popularity_row(row) for row in rows]

    async def developer_center_stats(self, email: str) -> DeveloperCenterStats:
        row = await self._fetchrow(
            "SELECT "
            "(SELECT COUNT(*) FROM developer_follows f "
            "WHERE lower(f.developer_email) = lower($1)) AS followers, "
            "(SELECT COUNT(*) FROM product_likes l JOIN products p ON p.id = l.product_id "
            "WHERE lower(p.maker_email) = lower($1)) AS total_likes, "
            "(SELECT COUNT(*) FROM product_favorites f2 JOIN products p2 ON p2.id = f2.product_id "
            "WHERE lower(p2.maker_email) = lower($1)) AS total_favorites",
            email,
        )
        if row is None:
            return DeveloperCenterStats()
        return map_developer_center_stats_row(row)

    # ---- engagement ----

    async def follow_developer(self, email: str, user_id: str) -> None:
        await self._execute(
            "INSERT INTO developer_follows (developer_email, user_id) VALUES ($1, $2) "
            "ON CONFLICT (developer_email, user_id) DO NOTHING",
            email,
            user_id,
        )

    async def unfollow_developer(self, email: str, user_id: str) -> None:
        await self._execute(
            "DELETE FROM developer_follows WHERE developer_email = $1 AND user_id = $2",
            email,
            user_id,
        )

    async def like_product(self, product_id: str, user_id: str) -> None:
        await self._execute(
            "INSERT INTO product_likes (product_id, user_id) VALUES ($1::uuid, $2) "
            "ON CONFLICT (product_id, user_id) DO NOTHING",
            product_id,
            user_id,
        )

    async def unlike_product(self, product_id: str, user_id: str) -> None:
        await self._execute(
            "DELETE FROM product_likes WHERE product_id = $1::uuid AND user_id = $2",
            product_id,
            user_id,
        )

    async def favorite_product(self, product_id: str, user_id: str) -> None:
        await self._execute(
            "INSERT INTO product_favorites (product_id, user_id) VALUES ($1::uuid, $2) "
            "ON CONFLICT (product_id, user_id) DO NOTHING",
            product_id,
            user_id,
        )

    async def unfavorite_product(self, product_id: str, user_id: str) -> None:
        await self._execute(
            "DELETE FROM product_favorites WHERE product_id = $1::uuid AND user_id = $2",
            product_id,
            user_id,
        )
