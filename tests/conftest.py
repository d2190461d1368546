"""
Shared fixtures: import path, a recording asyncpg pool, a fake backend.
"""

import os
import sys
from datetime import datetime, timezone

import pytest

# ---------------------------------------------------------------------------
# Ensure project paths are importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'backend'))

from makerhub.models.category import Category, CategoryWithCount  # noqa: E402
from makerhub.models.developer import (  # noqa: E402
    Developer,
    DeveloperCenterStats,
    DeveloperPopularity,
    DeveloperWithFollowers,
)
from makerhub.models.product import Product, ProductStatus  # noqa: E402
from makerhub.services.backend_base import DirectoryBackend  # noqa: E402

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def product_row(**overrides):
    row = {
        'id': '11111111-1111-1111-1111-111111111111',
        'name': 'Solo Notes',
        'slogan': 'Notes for one',
        'description': 'A note taking tool',
        'website': 'https://solonotes.dev',
        'logo_url': None,
        'category': 'productivity',
        'tags': ['notes', 'ai'],
        'maker_name': 'Ada',
        'maker_email': 'ada@example.com',
        'maker_website': None,
        'language': 'en',
        'status': 'approved',
        'created_at': NOW,
        'updated_at': NOW,
        'likes': 3,
        'favorites': 2,
    }
    row.update(overrides)
    return row


def make_product(**overrides) -> Product:
    fields = {
        'id': 'p1',
        'name': 'Solo Notes',
        'slogan': 'Notes for one',
        'description': 'A note taking tool',
        'website': 'https://solonotes.dev',
        'category': 'productivity',
        'maker_name': 'Ada',
        'maker_email': 'ada@example.com',
        'language': 'en',
        'status': ProductStatus.APPROVED,
        'created_at': NOW,
        'updated_at': NOW,
    }
    fields.update(overrides)
    return Product(**fields)


# ---------------------------------------------------------------------------
# Recording asyncpg stand-in
# ---------------------------------------------------------------------------

class FakeConnection:
    def __init__(self, pool):
        self.pool = pool

    async def fetch(self, sql, *args):
        self.pool.calls.append(('fetch', sql, args))
        return self.pool.next_result('fetch', [])

    async def fetchrow(self, sql, *args):
        self.pool.calls.append(('fetchrow', sql, args))
        return self.pool.next_result('fetchrow', None)

    async def execute(self, sql, *args):
        self.pool.calls.append(('execute', sql, args))
        return self.pool.next_result('execute', 'OK')


class _Acquire:
    def __init__(self, pool):
        self.pool = pool

    async def __aenter__(self):
        return FakeConnection(self.pool)

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakePool:
    """Records every statement; replies from per-method queues."""

    def __init__(self):
        self.calls = []
        self.results = {'fetch': [], 'fetchrow': [], 'execute': []}
        self.acquire_timeouts = []
        self.closed = False

    def queue(self, method, result):
        self.results[method].append(result)
        return self

    def next_result(self, method, default):
        queue = self.results[method]
        if not queue:
            return default
        result = queue.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def acquire(self, timeout=None):
        self.acquire_timeouts.append(timeout)
        return _Acquire(self)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_pool():
    return FakePool()


# ---------------------------------------------------------------------------
# In-memory backend used by facade and route tests
# ---------------------------------------------------------------------------

class FakeBackend(DirectoryBackend):
    """Records calls; returns canned values or raises ``self.error``."""

    name = 'fake'

    def __init__(self, include_pending=False):
        super().__init__(include_pending=include_pending)
        self.calls = []
        self.error = None
        self.products = [make_product()]
        self.product = make_product()
        self.deleted = True
        self.categories = [Category('ai', 'AI Tools', 'AI 工具', '🤖', 'from-purple-500 to-pink-500')]
        self.developer = Developer('ada@example.com', 'Ada')
        self.closed = False

    async def _record(self, name, *args, result=None):
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error
        return result

    async def list_products(self, query):
        return await self._record('list_products', query, result=list(self.products))

    async def list_favorite_products(self, user_id, language, limit):
        return await self._record('list_favorite_products', user_id, language, limit, result=list(self.products))

    async def get_product(self, product_id):
        return await self._record('get_product', product_id, result=self.product)

    async def create_product(self, payload):
        product = make_product(
            name=payload.name,
            maker_email=payload.maker_email,
            status=ProductStatus.PENDING,
        )
        return await self._record('create_product', payload, result=product)

    async def update_product(self, product_id, updates):
        return await self._record('update_product', product_id, updates, result=self.product)

    async def delete_product(self, product_id):
        return await self._record('delete_product', product_id, result=self.deleted)

    async def count_products(self):
        return await self._record('count_products', result=len(self.products))

    async def list_categories(self):
        return await self._record('list_categories', result=list(self.categories))

    async def upsert_categories(self, categories):
        return await self._record('upsert_categories', categories, result=len(categories))

    async def delete_category(self, category_id):
        return await self._record('delete_category', category_id, result=True)

    async def top_categories_by_product_count(self, limit):
        result = [CategoryWithCount('ai', 'AI Tools', 'AI 工具', '🤖', 'c', product_count=4)]
        return await self._record('top_categories_by_product_count', limit, result=result)

    async def get_developer(self, email):
        return await self._record('get_developer', email, result=self.developer)

    async def search_developers(self, query, limit):
        return await self._record('search_developers', query, limit, result=[self.developer])

    async def top_developers_by_followers(self, limit):
        result = [DeveloperWithFollowers('ada@example.com', 'Ada', followers=5)]
        return await self._record('top_developers_by_followers', limit, result=result)

    async def recent_developers(self, limit):
        result = [DeveloperWithFollowers('ada@example.com', 'Ada', followers=0)]
        return await self._record('recent_developers', limit, result=result)

    async def developer_popularity_last_month(self, limit):
        result = [DeveloperPopularity('ada@example.com', 'Ada', likes=2, favorites=1, score=3)]
        return await self._record('developer_popularity_last_month', limit, result=result)

    async def developer_popularity_last_week(self, limit):
        return await self._record('developer_popularity_last_week', limit, result=[])

    async def developer_center_stats(self, email):
        result = DeveloperCenterStats(followers=1, total_likes=2, total_favorites=3)
        return await self._record('developer_center_stats', email, result=result)

    async def follow_developer(self, email, user_id):
        return await self._record('follow_developer', email, user_id)

    async def unfollow_developer(self, email, user_id):
        return await self._record('unfollow_developer', email, user_id)

    async def like_product(self, product_id, user_id):
        return await self._record('like_product', product_id, user_id)

    async def unlike_product(self, product_id, user_id):
        return await self._record('unlike_product', product_id, user_id)

    async def favorite_product(self, product_id, user_id):
        return await self._record('favorite_product', product_id, user_id)

    async def unfavorite_product(self, product_id, user_id):
        return await self._record('unfavorite_product', product_id, user_id)

    async def close(self):
        self.closed = True

    def call_names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def fake_backend():
    return FakeBackend()
