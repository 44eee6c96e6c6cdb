"""
Shared pydantic building blocks for request bodies
"""
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataEnvelope(BaseModel, Generic[T]):
    """Request body of the form {"data": {...}}"""
    data: T
