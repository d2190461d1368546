from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ProductStatus(str, Enum):
    """产品审核状态"""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass
class Product:
    """产品模型"""
    id: str
    name: str
    slogan: str
    description: str
    website: str
    category: str
    maker_name: str
    maker_email: str
    language: str
    status: ProductStatus
    created_at: datetime
    updated_at: datetime
    logo_url: Optional[str] = None
    maker_website: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    likes: int = 0
    favorites: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'id': self.id,
            'name': self.name,
            'slogan': self.slogan,
            'description': self.description,
            'website': self.website,
            'logo_url': self.logo_url,
            'category': self.category,
            'tags': list(self.tags),
            'maker_name': self.maker_name,
            'maker_email': self.maker_email,
            'maker_website': self.maker_website,
            'language': self.language,
            'status': self.status.value,
            'created_at': _isoformat(self.created_at),
            'updated_at': _isoformat(self.updated_at),
            'likes': self.likes,
            'favorites': self.favorites,
        }


@dataclass
class CreateProductRequest:
    """Product submission payload. There is deliberately no status field."""
    name: str
    slogan: str
    description: str
    website: str
    category: str
    maker_name: str
    maker_email: str
    language: str = 'en'
    logo_url: Optional[str] = None
    maker_website: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'CreateProductRequest':
        """从字典创建提交请求 (忽略 status 字段)"""
        return CreateProductRequest(
            name=str(data.get('name') or ''),
            slogan=str(data.get('slogan') or ''),
            description=str(data.get('description') or ''),
            website=str(data.get('website') or ''),
            category=str(data.get('category') or ''),
            maker_name=str(data.get('maker_name') or ''),
            maker_email=str(data.get('maker_email') or ''),
            language=str(data.get('language') or 'en'),
            logo_url=_optional_text(data.get('logo_url')),
            maker_website=_optional_text(data.get('maker_website')),
            tags=[str(tag) for tag in (data.get('tags') or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'slogan': self.slogan,
            'description': self.description,
            'website': self.website,
            'logo_url': self.logo_url,
            'category': self.category,
            'tags': list(self.tags),
            'maker_name': self.maker_name,
            'maker_email': self.maker_email,
            'maker_website': self.maker_website,
            'language': self.language,
        }


# Columns an update may touch, in statement order.
UPDATABLE_FIELDS = (
    'name', 'slogan', 'description', 'website', 'logo_url', 'category', 'tags', 'status',
)


@dataclass
class UpdateProductRequest:
    """Partial product update; ``None`` means "leave unchanged"."""
    name: Optional[str] = None
    slogan: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[ProductStatus] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'UpdateProductRequest':
        # row_mapper imports this module
        from makerhub.services.row_mapper import parse_status

        tags = data.get('tags')
        status = data.get('status')
        return UpdateProductRequest(
            name=_optional_text(data.get('name')),
            slogan=_optional_text(data.get('slogan')),
            description=_optional_text(data.get('description')),
            website=_optional_text(data.get('website')),
            logo_url=_optional_text(data.get('logo_url')),
            category=_optional_text(data.get('category')),
            tags=[str(tag) for tag in tags] if tags is not None else None,
            status=parse_status(status) if status is not None else None,
        )

    def has_changes(self) -> bool:
        return any(getattr(self, name) is not None for name in UPDATABLE_FIELDS)

    def to_columns(self) -> Dict[str, Any]:
        """Only the supplied fields, status serialised to its lowercase token."""
        columns: Dict[str, Any] = {}
        for name in UPDATABLE_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if name == 'status':
                value = ProductStatus(value).value
            elif name == 'tags':
                value = list(value)
            columns[name] = value
        return columns


@dataclass
class ProductQuery:
    """Shared product filter for both backends. Empty strings count as absent."""
    category: Optional[str] = None
    tags: Optional[str] = None
    language: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def first_tag(self) -> str:
        """Only the first comma-separated tag token is used for filtering."""
        if not self.tags:
            return ''
        return self.tags.split(',')[0].strip()
