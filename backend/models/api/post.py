"""
Pydantic models for albums
"""

from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional


class CreateAlbumData(BaseModel):
    """
    Album creation payload.

    Accepts the older postTitle/postDescription names as well.
    """
    title: str = Field(
        min_length=3,
        max_length=100,
        validation_alias=AliasChoices("title", "postTitle"),
    )
    description: str = Field(
        default="",
        max_length=1000,
        validation_alias=AliasChoices("description", "postDescription"),
    )
    price: float = Field(ge=0)
    categoryId: Optional[str] = None
    planId: Optional[str] = None
    isWithPreview: bool = False

    model_config = {"populate_by_name": True}

    @field_validator("isWithPreview", mode="before")
    @classmethod
    def parse_bool_string(cls, v):
        """Multipart forms send "true"/"false" strings"""
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v


class LikeRequest(BaseModel):
    userId: str = Field(min_length=1)
