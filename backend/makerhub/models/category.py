from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Category:
    """分类模型"""
    id: str
    name_en: str
    name_zh: str
    icon: str
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name_en': self.name_en,
            'name_zh': self.name_zh,
            'icon': self.icon,
            'color': self.color,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Category':
        name_en = str(data.get('name_en') or '')
        name_zh: Optional[str] = data.get('name_zh')
        return Category(
            id=str(data.get('id') or ''),
            name_en=name_en,
            name_zh=str(name_zh) if name_zh is not None else name_en,
            icon=str(data.get('icon') or ''),
            color=str(data.get('color') or ''),
        )


@dataclass
class CategoryWithCount:
    id: str
    name_en: str
    name_zh: str
    icon: str
    color: str
    product_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name_en': self.name_en,
            'name_zh': self.name_zh,
            'icon': self.icon,
            'color': self.color,
            'product_count': self.product_count,
        }
