from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Developer:
    """开发者 (以邮箱标识)"""
    email: str
    name: str
    avatar_url: Optional[str] = None
    website: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'email': self.email,
            'name': self.name,
            'avatar_url': self.avatar_url,
            'website': self.website,
        }


@dataclass
class DeveloperWithFollowers(Developer):
    followers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['followers'] = self.followers
        return data


@dataclass
class DeveloperPopularity(Developer):
    likes: int = 0
    favorites: int = 0
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'likes': self.likes,
            'favorites': self.favorites,
            'score': self.score,
        })
        return data


@dataclass
class DeveloperCenterStats:
    """开发者中心统计"""
    followers: int = 0
    total_likes: int = 0
    total_favorites: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'followers': self.followers,
            'total_likes': self.total_likes,
            'total_favorites': self.total_favorites,
        }
