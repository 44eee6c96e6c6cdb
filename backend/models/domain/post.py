"""
Post (album) domain models

An album is a post node with one collection of ordered pictures:

    (seller)-[:HAS_A]->(post)-[:HAS_A]->(collection)-[:HAS_A]->(picture)

Sent pictures reuse the picture label with tipAmount/isPaid instead of order.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from utils.datetime_utils import neo4j_datetime_to_python
from utils.id_generator import generate_id


@dataclass
class Post:
    """
    Album for sale (ID format: po_xxxxxxxx)

    views/likes start at 0 and only move by one per request.
    """
    id: str
    title: str
    description: str = ""
    price: float = 0.0
    is_with_preview: bool = False
    views: int = 0
    likes: int = 0
    category_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('post')

    @classmethod
    def from_neo4j(cls, props: dict) -> 'Post':
        return cls(
            id=props['id'],
            title=props.get('title', ''),
            description=props.get('description') or '',
            price=float(props.get('price') or 0),
            is_with_preview=bool(props.get('isWithPreview', False)),
            views=int(props.get('views') or 0),
            likes=int(props.get('likes') or 0),
            category_id=props.get('categoryId'),
            created_at=neo4j_datetime_to_python(props.get('createdAt')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'price': self.price,
            'isWithPreview': self.is_with_preview,
            'views': self.views,
            'likes': self.likes,
            'categoryId': self.category_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class Collection:
    """Picture container owned by one post (ID format: co_xxxxxxxx)"""
    id: str

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('collection')

    @classmethod
    def from_neo4j(cls, props: dict) -> 'Collection':
        return cls(id=props['id'])

    def to_dict(self) -> dict:
        return {'id': self.id}


@dataclass
class Picture:
    """Album picture or picture sent in chat (ID format: pi_xxxxxxxx)"""
    id: str
    url: str
    description: Optional[str] = None
    order: Optional[int] = None

    # Sent pictures only
    tip_amount: Optional[float] = None
    is_paid: Optional[bool] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('picture')

    @classmethod
    def from_neo4j(cls, props: dict) -> 'Picture':
        tip = props.get('tipAmount')
        return cls(
            id=props['id'],
            url=props.get('url', ''),
            description=props.get('description'),
            order=props.get('order'),
            tip_amount=float(tip) if tip is not None else None,
            is_paid=props.get('isPaid'),
        )

    def to_dict(self) -> dict:
        data = {'id': self.id, 'url': self.url}
        if self.tip_amount is not None:
            data['tipAmount'] = self.tip_amount
            data['isPaid'] = bool(self.is_paid)
        else:
            data['description'] = self.description
            data['order'] = self.order
        return data


@dataclass
class Category:
    id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_neo4j(cls, props: dict) -> 'Category':
        return cls(
            id=props['id'],
            name=props.get('name', ''),
            description=props.get('description'),
        )

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'description': self.description}
