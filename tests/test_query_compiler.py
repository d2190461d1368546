"""
Tests for ProductQuery compilation to SQL and PostgREST filters.

Run:
    cd <project-root>
    python -m pytest tests/test_query_compiler.py -v
"""

from makerhub.models.product import ProductQuery
from makerhub.services.query_compiler import (
    compile_product_rest_params,
    compile_product_sql,
)


def _tail(sql: str) -> str:
    """Everything after the FROM clause."""
    return sql.split(' FROM products p', 1)[1]


class TestCompileProductSql:

    def test_empty_query_has_no_where_and_no_limit(self):
        sql, values = compile_product_sql(ProductQuery())

        assert _tail(sql) == ' ORDER BY p.created_at DESC'
        assert values == []

    def test_clause_order_and_placeholders(self):
        query = ProductQuery(
            category='ai',
            tags='notes, ai',
            language='en',
            status='rejected',
            search='solo',
            limit=10,
            offset=20,
        )

        sql, values = compile_product_sql(query)

        assert _tail(sql) == (
            " WHERE p.category = $1"
            " AND p.language = $2"
            " AND p.status::text = $3"
            " AND p.tags @> ARRAY[$4]::text[]"
            " AND (p.name ILIKE $5 OR p.slogan ILIKE $5 OR p.description ILIKE $5"
            " OR p.maker_name ILIKE $5 OR p.maker_email ILIKE $5)"
            " ORDER BY p.created_at DESC LIMIT $6 OFFSET $7"
        )
        assert values == ['ai', 'en', 'rejected', 'notes', '%solo%', 10, 20]

    def test_first_clause_uses_where_even_when_it_is_search(self):
        sql, values = compile_product_sql(ProductQuery(search='x'))

        assert ' WHERE (p.name ILIKE $1' in sql
        assert ' AND ' not in _tail(sql)
        assert values == ['%x%']

    def test_only_first_tag_is_used(self):
        _, values = compile_product_sql(ProductQuery(tags=' first , second'))
        assert values == ['first']

    def test_empty_tag_token_adds_no_clause(self):
        sql, values = compile_product_sql(ProductQuery(tags=',second'))
        assert 'tags @>' not in sql
        assert values == []

    def test_approved_widened_in_dev_mode(self):
        sql, values = compile_product_sql(ProductQuery(status='approved'), include_pending=True)

        assert "p.status::text IN ('approved','pending')" in sql
        assert values == []

    def test_approved_not_widened_by_default(self):
        sql, values = compile_product_sql(ProductQuery(status='approved'))

        assert 'p.status::text = $1' in sql
        assert values == ['approved']

    def test_other_statuses_never_widened(self):
        sql, values = compile_product_sql(ProductQuery(status='pending'), include_pending=True)
        assert 'p.status::text = $1' in sql
        assert values == ['pending']

    def test_limit_and_offset_are_not_clamped(self):
        sql, values = compile_product_sql(ProductQuery(limit=5000, offset=0))
        assert sql.endswith(' LIMIT $1 OFFSET $2')
        assert values == [5000, 0]

    def test_select_list_includes_engagement_counters(self):
        sql, _ = compile_product_sql(ProductQuery())
        assert 'FROM product_likes l WHERE l.product_id = p.id) AS likes' in sql
        assert 'FROM product_favorites f WHERE f.product_id = p.id) AS favorites' in sql


class TestCompileProductRestParams:

    def test_empty_query_only_orders(self):
        assert compile_product_rest_params(ProductQuery()) == [('order', 'created_at.desc')]

    def test_full_query(self):
        query = ProductQuery(
            category='ai',
            tags='notes,other',
            language='zh',
            status='pending',
            search='solo',
            limit=5,
            offset=10,
        )

        assert compile_product_rest_params(query) == [
            ('category', 'eq.ai'),
            ('language', 'eq.zh'),
            ('status', 'eq.pending'),
            ('tags', 'cs.{notes}'),
            ('name', 'ilike.%solo%'),
            ('slogan', 'ilike.%solo%'),
            ('description', 'ilike.%solo%'),
            ('limit', '5'),
            ('offset', '10'),
            ('order', 'created_at.desc'),
        ]

    def test_widened_status(self):
        params = compile_product_rest_params(ProductQuery(status='approved'), include_pending=True)
        assert ('status', 'in.(approved,pending)') in params

    def test_search_does_not_cover_maker_fields(self):
        keys = [key for key, _ in compile_product_rest_params(ProductQuery(search='ada'))]
        assert 'maker_name' not in keys
        assert 'maker_email' not in keys
