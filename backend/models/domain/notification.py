"""
Notification domain model
"""
from dataclasses import dataclass, field

from utils.datetime_utils import now_millis
from utils.id_generator import generate_id


@dataclass
class Notification:
    """
    Stored notification (ID format: no_xxxxxxxx)

    time is epoch milliseconds, rendered as relative text on read.
    """
    id: str
    title: str
    body: str
    time: int = field(default_factory=now_millis)
    read: bool = False

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('notification')

    @classmethod
    def from_neo4j(cls, props: dict) -> 'Notification':
        return cls(
            id=props['id'],
            title=props.get('title', ''),
            body=props.get('body', ''),
            time=int(props.get('time') or 0),
            read=bool(props.get('read', False)),
        )

    def to_neo4j(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'body': self.body,
            'time': self.time,
            'read': self.read,
        }

    def to_dict(self) -> dict:
        return self.to_neo4j()
