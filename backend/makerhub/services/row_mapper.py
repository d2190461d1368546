"""
Row -> model mapping shared by both backends.

asyncpg ``Record`` objects and PostgREST JSON objects are both read through
the ``Mapping`` interface, so one set of mappers serves both paths.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from makerhub.models.category import Category, CategoryWithCount
from makerhub.models.developer import (
    Developer,
    DeveloperCenterStats,
    DeveloperPopularity,
    DeveloperWithFollowers,
)
from makerhub.models.product import Product, ProductStatus
from makerhub.services.sanitizer import strip_nul, strip_nul_optional


def parse_status(raw: Any) -> ProductStatus:
    """Total: anything other than approved/rejected (any case) is pending."""
    if isinstance(raw, ProductStatus):
        return raw
    token = str(raw).lower() if raw is not None else ''
    if token == 'approved':
        return ProductStatus.APPROVED
    if token == 'rejected':
        return ProductStatus.REJECTED
    return ProductStatus.PENDING


def serialize_status(status: ProductStatus) -> str:
    return {
        ProductStatus.PENDING: 'pending',
        ProductStatus.APPROVED: 'approved',
        ProductStatus.REJECTED: 'rejected',
    }[ProductStatus(status)]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO timestamps from REST rows; datetimes pass through."""
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def map_product_row(row: Mapping[str, Any]) -> Product:
    tags = row.get('tags')
    return Product(
        id=str(row['id']),
        name=row['name'],
        slogan=row['slogan'],
        description=row['description'],
        website=row['website'],
        logo_url=row.get('logo_url'),
        category=row['category'],
        tags=list(tags) if tags is not None else [],
        maker_name=row['maker_name'],
        maker_email=row['maker_email'],
        maker_website=row.get('maker_website'),
        language=row['language'],
        status=parse_status(row.get('status')),
        created_at=parse_timestamp(row.get('created_at')),
        updated_at=parse_timestamp(row.get('updated_at')),
        likes=_to_int(row.get('likes')),
        favorites=_to_int(row.get('favorites')),
    )


def map_category_row(row: Mapping[str, Any]) -> Category:
    name_en = row['name_en']
    name_zh = row.get('name_zh')
    return Category(
        id=str(row['id']),
        name_en=name_en,
        name_zh=name_zh if name_zh is not None else name_en,
        icon=row['icon'],
        color=row['color'],
    )


def map_category_with_count_row(row: Mapping[str, Any]) -> CategoryWithCount:
    category = map_category_row(row)
    return CategoryWithCount(
        id=category.id,
        name_en=category.name_en,
        name_zh=category.name_zh,
        icon=category.icon,
        color=category.color,
        product_count=_to_int(row.get('product_count')),
    )


def _developer_fields(row: Mapping[str, Any]) -> dict:
    return {
        'email': strip_nul(row['email']),
        'name': strip_nul(row['name']),
        'avatar_url': strip_nul_optional(row.get('avatar_url')),
        'website': strip_nul_optional(row.get('website')),
    }


def map_developer_row(row: Mapping[str, Any]) -> Developer:
    return Developer(**_developer_fields(row))


def map_developer_with_followers_row(row: Mapping[str, Any]) -> DeveloperWithFollowers:
    return DeveloperWithFollowers(
        **_developer_fields(row),
        followers=_to_int(row.get('followers')),
    )


def map_developer_popularity_row(row: Mapping[str, Any]) -> DeveloperPopularity:
    return DeveloperPopularity(
        **_developer_fields(row),
        likes=_to_int(row.get('likes')),
        favorites=_to_int(row.get('favorites')),
        score=_to_int(row.get('score')),
    )


def map_developer_center_stats_row(row: Mapping[str, Any]) -> DeveloperCenterStats:
    return DeveloperCenterStats(
        followers=_to_int(row.get('followers')),
        total_likes=_to_int(row.get('total_likes')),
        total_favorites=_to_int(row.get('total_favorites')),
    )
