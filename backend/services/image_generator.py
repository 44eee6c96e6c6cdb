"""
AI picture generation (OpenAI images API)
"""
import logging
from typing import List, Optional

from openai import AsyncOpenAI

from config.settings import Settings

logger = logging.getLogger(__name__)

PICTURE_COUNT = 5
PICTURE_SIZE = "256x256"


def build_prompt(color: str, category: str) -> str:
    return f"attractive feet with {color} nailpolish and {category}"


class ImageGenerator:
    """Generates sample pictures from a nail-polish color and a category"""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.api_key = settings.openai_api_key
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Created lazily: AsyncOpenAI refuses to start without a key
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key or None)
        return self._client

    async def generate(self, color: str, category: str) -> List[str]:
        """
        Returns:
            URLs of the generated pictures
        """
        response = await self.client.images.generate(
            prompt=build_prompt(color, category),
            n=PICTURE_COUNT,
            size=PICTURE_SIZE,
        )
        urls = [image.url for image in response.data if image.url]
        logger.info(f"🎨 Generated {len(urls)} pictures for '{color}' / '{category}'")
        return urls
