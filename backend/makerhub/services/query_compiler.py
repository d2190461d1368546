"""
Product query compilation: one ``ProductQuery``, two targets.

- ``compile_product_sql``: a single parameterised PostgreSQL statement.
- ``compile_product_rest_params``: PostgREST query-string filters.

Filter order is fixed (category, language, status, tags, search) on both
targets. REST search only covers name/slogan/description; the SQL search
also matches the maker fields.
"""

from typing import Any, List, Tuple

from makerhub.models.product import ProductQuery

# Product columns plus engagement counters, shared by every product read.
PRODUCT_COLUMNS = (
    "p.id::text AS id, "
    "p.name, "
    "p.slogan, "
    "p.description, "
    "p.website, "
    "p.logo_url, "
    "p.category, "
    "COALESCE(p.tags, ARRAY[]::text[]) AS tags, "
    "p.maker_name, "
    "p.maker_email, "
    "p.maker_website, "
    "p.language, "
    "p.status::text AS status, "
    "p.created_at, "
    "p.updated_at, "
    "(SELECT COUNT(*) FROM product_likes l WHERE l.product_id = p.id) AS likes, "
    "(SELECT COUNT(*) FROM product_favorites f WHERE f.product_id = p.id) AS favorites"
)

WIDENED_APPROVED_SQL = "p.status::text IN ('approved','pending')"
WIDENED_APPROVED_REST = 'in.(approved,pending)'


def approved_status_clause(include_pending: bool) -> str:
    """SQL predicate for "approved" listings, widened in dev mode."""
    if include_pending:
        return WIDENED_APPROVED_SQL
    return "p.status::text = 'approved'"


def _widens(status: str, include_pending: bool) -> bool:
    return include_pending and status.strip().lower() == 'approved'


class _SqlParams:
    """Collects bind values and hands out ``$n`` placeholders."""

    def __init__(self):
        self.values: List[Any] = []

    def bind(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


def compile_product_sql(query: ProductQuery, include_pending: bool = False) -> Tuple[str, List[Any]]:
    params = _SqlParams()
    clauses: List[str] = []

    if query.category:
        clauses.append(f"p.category = {params.bind(query.category)}")

    if query.language:
        clauses.append(f"p.language = {params.bind(query.language)}")

    if query.status:
        if _widens(query.status, include_pending):
            clauses.append(WIDENED_APPROVED_SQL)
        else:
            clauses.append(f"p.status::text = {params.bind(query.status)}")

    tag = query.first_tag()
    if tag:
        clauses.append(f"p.tags @> ARRAY[{params.bind(tag)}]::text[]")

    if query.search:
        term = params.bind(f"%{query.search}%")
        clauses.append(
            f"(p.name ILIKE {term} OR p.slogan ILIKE {term} OR p.description ILIKE {term} "
            f"OR p.maker_name ILIKE {term} OR p.maker_email ILIKE {term})"
        )

    sql = f"SELECT {PRODUCT_COLUMNS} FROM products p"
    for index, clause in enumerate(clauses):
        sql += (" WHERE " if index == 0 else " AND ") + clause

    sql += " ORDER BY p.created_at DESC"

    if query.limit is not None:
        sql += f" LIMIT {params.bind(int(query.limit))}"
    if query.offset is not None:
        sql += f" OFFSET {params.bind(int(query.offset))}"

    return sql, params.values


def compile_product_rest_params(query: ProductQuery, include_pending: bool = False) -> List[Tuple[str, str]]:
    params: List[Tuple[str, str]] = []

    if query.category:
        params.append(('category', f"eq.{query.category}"))

    if query.language:
        params.append(('language', f"eq.{query.language}"))

    if query.status:
        if _widens(query.status, include_pending):
            params.append(('status', WIDENED_APPROVED_REST))
        else:
            params.append(('status', f"eq.{query.status}"))

    tag = query.first_tag()
    if tag:
        params.append(('tags', f"cs.{{{tag}}}"))

    if query.search:
        for column in ('name', 'slogan', 'description'):
            params.append((column, f"ilike.%{query.search}%"))

    if query.limit is not None:
        params.append(('limit', str(int(query.limit))))
    if query.offset is not None:
        params.append(('offset', str(int(query.offset))))

    params.append(('order', 'created_at.desc'))
    return params
