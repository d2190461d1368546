"""
Text cleaning: strips NUL characters before anything reaches a backend.

PostgreSQL rejects ``\\x00`` in text values and the REST backend cannot strip
it on our behalf, so the facade cleans every free-text field once, before it
picks a backend.
"""

from typing import Iterable, List, Optional

from makerhub.models.category import Category
from makerhub.models.product import CreateProductRequest, UpdateProductRequest

NUL = '\x00'


def strip_nul(value: str) -> str:
    """Remove every NUL character; text without one is returned as-is."""
    if not value or NUL not in value:
        return value
    return value.replace(NUL, '')


def strip_nul_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return strip_nul(value)


def strip_nul_list(values: Iterable[str]) -> List[str]:
    return [strip_nul(v) for v in values]


def sanitize_create_request(product: CreateProductRequest) -> CreateProductRequest:
    product.name = strip_nul(product.name)
    product.slogan = strip_nul(product.slogan)
    product.description = strip_nul(product.description)
    product.website = strip_nul(product.website)
    product.logo_url = strip_nul_optional(product.logo_url)
    product.category = strip_nul(product.category)
    product.tags = strip_nul_list(product.tags or [])
    product.maker_name = strip_nul(product.maker_name)
    product.maker_email = strip_nul(product.maker_email)
    product.maker_website = strip_nul_optional(product.maker_website)
    product.language = strip_nul(product.language)
    return product


def sanitize_update_request(updates: UpdateProductRequest) -> UpdateProductRequest:
    """Only fields present in the partial update are touched."""
    for name in ('name', 'slogan', 'description', 'website', 'logo_url', 'category'):
        value = getattr(updates, name)
        if value is not None:
            setattr(updates, name, strip_nul(value))
    if updates.tags is not None:
        updates.tags = strip_nul_list(updates.tags)
    return updates


def sanitize_categories(categories: List[Category]) -> List[Category]:
    for category in categories:
        category.id = strip_nul(category.id)
        category.name_en = strip_nul(category.name_en)
        category.name_zh = strip_nul(category.name_zh)
        category.icon = strip_nul(category.icon)
        category.color = strip_nul(category.color)
    return categories
