"""
Tests for the DirectoryRepository facade: selection, sanitising, clamping.

Run:
    cd <project-root>
    python -m pytest tests/test_directory_repository.py -v
"""

import asyncio

import pytest

from conftest import FakeBackend, product_row
from makerhub.config import DatabaseSettings
from makerhub.models.category import Category
from makerhub.models.product import CreateProductRequest, ProductQuery, UpdateProductRequest
from makerhub.services.directory_repository import DirectoryRepository
from makerhub.services.errors import DatabaseNotConfiguredError
from makerhub.services.postgres_backend import PostgresBackend
from makerhub.services.rest_backend import RestBackend


def _payload(**overrides):
    fields = dict(
        name='Solo\x00 Notes',
        slogan='s',
        description='d',
        website='https://w',
        category='ai',
        maker_name='Ada',
        maker_email='  Ada@Example.COM ',
        maker_website='https://ada.dev',
    )
    fields.update(overrides)
    return CreateProductRequest(**fields)


# ===================================================================
# Backend selection
# ===================================================================

class TestFromSettings:

    def test_database_url_wins(self):
        settings = DatabaseSettings(
            database_url='postgres://db',
            rest_url='https://abc.supabase.co',
            rest_key='key',
            include_pending_in_approved=True,
        )

        repository = DirectoryRepository.from_settings(settings)

        assert isinstance(repository.backend, PostgresBackend)
        assert repository.backend_name == 'postgres'
        assert repository.backend.include_pending is True

    def test_rest_when_only_credentials(self):
        repository = DirectoryRepository.from_settings(
            DatabaseSettings(rest_url='https://abc.supabase.co', rest_key='key'),
        )

        assert isinstance(repository.backend, RestBackend)
        assert repository.backend.include_pending is False
        asyncio.run(repository.close())

    def test_rest_needs_both_values(self):
        with pytest.raises(DatabaseNotConfiguredError):
            DirectoryRepository.from_settings(DatabaseSettings(rest_url='https://abc.supabase.co'))

    def test_nothing_configured(self):
        with pytest.raises(DatabaseNotConfiguredError):
            DirectoryRepository.from_settings(DatabaseSettings())


# ===================================================================
# Products
# ===================================================================

def test_create_product_sanitises_and_normalises_email(fake_backend):
    repository = DirectoryRepository(fake_backend)

    product = asyncio.run(repository.create_product(_payload()))

    name, (payload,) = fake_backend.calls[0]
    assert name == 'create_product'
    assert payload.name == 'Solo Notes'
    assert payload.maker_email == 'ada@example.com'
    assert product.status.value == 'pending'


def test_create_request_ignores_status_in_input():
    payload = CreateProductRequest.from_dict({
        'name': 'x', 'slogan': 's', 'description': 'd', 'website': 'w',
        'category': 'ai', 'maker_name': 'Ada', 'maker_email': 'a@b.c',
        'status': 'approved',
    })
    assert 'status' not in payload.to_dict()


def test_update_without_changes_reads_only(fake_backend):
    repository = DirectoryRepository(fake_backend)

    product = asyncio.run(repository.update_product('p1', UpdateProductRequest()))

    assert fake_backend.call_names() == ['get_product']
    assert product is fake_backend.product


def test_update_with_changes_sanitises(fake_backend):
    repository = DirectoryRepository(fake_backend)

    asyncio.run(repository.update_product('p\x001', UpdateProductRequest(description='a\x00b')))

    name, (product_id, updates) = fake_backend.calls[0]
    assert name == 'update_product'
    assert product_id == 'p1'
    assert updates.description == 'ab'


def test_list_products_treats_empty_strings_as_absent(fake_backend):
    repository = DirectoryRepository(fake_backend)

    asyncio.run(repository.list_products(ProductQuery(category='', tags='  ', search='so\x00lo', limit=5)))

    _, (query,) = fake_backend.calls[0]
    assert query.category is None
    assert query.tags is None
    assert query.search == 'solo'
    assert query.limit == 5


@pytest.mark.parametrize('requested,expected', [(0, 1), (-5, 1), (50, 50), (500, 200)])
def test_favorites_limit_clamped(fake_backend, requested, expected):
    repository = DirectoryRepository(fake_backend)

    asyncio.run(repository.list_favorite_products('user-1', '', requested))

    _, (user_id, language, limit) = fake_backend.calls[0]
    assert (user_id, language, limit) == ('user-1', None, expected)


@pytest.mark.parametrize('method', [
    'top_categories_by_product_count',
    'top_developers_by_followers',
    'recent_developers',
    'developer_popularity_last_month',
    'developer_popularity_last_week',
])
@pytest.mark.parametrize('requested,expected', [(0, 1), (10, 10), (51, 50), (10_000, 50)])
def test_listing_limits_clamped(fake_backend, method, requested, expected):
    repository = DirectoryRepository(fake_backend)

    asyncio.run(getattr(repository, method)(requested))

    _, args = fake_backend.calls[0]
    assert args == (expected,)


def test_search_developers_clamped_and_cleaned(fake_backend):
    repository = DirectoryRepository(fake_backend)

    asyncio.run(repository.search_developers('a\x00da', 99))

    assert fake_backend.calls[0] == ('search_developers', ('ada', 50))


# ===================================================================
# Categories
# ===================================================================

def test_empty_upsert_skips_backend(fake_backend):
    repository = DirectoryRepository(fake_backend)

    assert asyncio.run(repository.upsert_categories([])) == 0
    assert fake_backend.calls == []


def test_upsert_sanitises_categories(fake_backend):
    repository = DirectoryRepository(fake_backend)

    written = asyncio.run(repository.upsert_categories([Category('a\x00i', 'AI', 'AI', 'i', 'c')]))

    _, (categories,) = fake_backend.calls[0]
    assert categories[0].id == 'ai'
    assert written == 1


# ===================================================================
# Engagement, errors, lifecycle
# ===================================================================

def test_engagement_identifiers_are_cleaned(fake_backend):
    repository = DirectoryRepository(fake_backend)

    asyncio.run(repository.like_product('p\x001', 'u\x001'))
    asyncio.run(repository.follow_developer('ada@\x00example.com', 'u1'))

    assert fake_backend.calls == [
        ('like_product', ('p1', 'u1')),
        ('follow_developer', ('ada@example.com', 'u1')),
    ]


def test_errors_propagate_unchanged(fake_backend):
    fake_backend.error = RuntimeError('boom')
    repository = DirectoryRepository(fake_backend)

    with pytest.raises(RuntimeError, match='boom'):
        asyncio.run(repository.list_categories())


def test_close_delegates(fake_backend):
    asyncio.run(DirectoryRepository(fake_backend).close())
    assert fake_backend.closed is True


def test_postgres_create_upserts_developer_with_clean_values(fake_pool):
    fake_pool.queue('fetchrow', product_row(status='pending'))
    repository = DirectoryRepository(PostgresBackend('postgres://test', pool=fake_pool))

    asyncio.run(repository.create_product(_payload(maker_name='A\x00da')))

    _, upsert_sql, upsert_args = fake_pool.calls[1]
    assert upsert_sql.startswith('INSERT INTO developers')
    assert upsert_args == ('ada@example.com', 'Ada', 'https://ada.dev')


def test_fake_backend_is_a_directory_backend():
    assert FakeBackend().name == 'fake'
