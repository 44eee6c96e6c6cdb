"""
Post service - albums, likes, views and picture uploads

Every album is mirrored by a Stripe product whose id is the post id and
whose metadata.sellerId is the seller's user id; checkout looks prices up
through it.
"""
import logging
from typing import Dict, List, Optional

from fastapi import UploadFile

from middleware.errors import NotFoundError, wrap_unexpected
from models.api.post import CreateAlbumData
from models.domain.post import Picture, Post
from repositories.post_repository import PostRepository
from repositories.user_repository import UserRepository
from services.media_storage import MediaStorage
from services.notification_service import NotificationService
from services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

RANDOM_PAGE_LIMIT = 20

LIKE_TITLE = "New like"


class PostService:
    """Album listings and album lifecycle"""

    def __init__(
        self,
        post_repo: PostRepository,
        user_repo: UserRepository,
        stripe_gateway: StripeGateway,
        storage: MediaStorage,
        notifications: NotificationService,
    ):
        self.posts = post_repo
        self.users = user_repo
        self.stripe = stripe_gateway
        self.storage = storage
        self.notifications = notifications

    # =========================================================================
    # LISTINGS
    # =========================================================================

    async def get_popular_albums(self, user_id: str) -> Dict:
        with wrap_unexpected("get popular albums", user_id=user_id):
            albums = await self.posts.find_popular(user_id)
            return {"albums": albums, "total": len(albums)}

    async def get_random_albums(self, page: int, user_id: str) -> Dict:
        """Feed of subscribed sellers' albums; hasMore when a full page came back"""
        with wrap_unexpected("get random albums", page=page, user_id=user_id):
            albums = await self.posts.find_random(page, user_id)
            return {
                "albums": albums,
                "page": page,
                "hasMore": len(albums) == RANDOM_PAGE_LIMIT,
            }

    async def get_album_by_category(self, category_id: str) -> Dict:
        with wrap_unexpected("get albums by category", category_id=category_id):
            albums = await self.posts.find_by_category(category_id)
            return {"albums": albums, "total": len(albums)}

    async def get_seller_albums(self, user_id: str) -> Dict:
        with wrap_unexpected("get seller albums", user_id=user_id):
            albums = await self.posts.find_by_seller(user_id)
            return {"albums": albums, "sellerId": user_id, "total": len(albums)}

    async def get_all_albums(self, user_id: str) -> Dict:
        """Every album except the user's own"""
        with wrap_unexpected("get all albums", user_id=user_id):
            albums = await self.posts.find_all_excluding_user(user_id)
            return {"albums": albums, "total": len(albums)}

    async def get_categories(self) -> Dict:
        with wrap_unexpected("get categories"):
            categories = [c.to_dict() for c in await self.posts.find_all_categories()]
            return {"categories": categories, "total": len(categories)}

    # =========================================================================
    # ALBUM DETAILS
    # =========================================================================

    async def get_album_plan(self, album_id: str) -> Dict:
        with wrap_unexpected("get album plan", album_id=album_id):
            plan = await self.posts.get_plan_for_album(album_id)
            return {"plan": plan.to_dict(), "albumId": album_id}

    async def get_post_pictures(self, post_id: str) -> Dict:
        with wrap_unexpected("get post pictures", post_id=post_id):
            pictures = await self.posts.get_pictures(post_id)
            return {"pictures": [p.to_dict() for p in pictures], "postId": post_id}

    async def update_views(self, post_id: str) -> int:
        with wrap_unexpected("update views", post_id=post_id):
            return await self.posts.increment_views(post_id)

    async def delete_album(self, post_id: str) -> str:
        with wrap_unexpected("delete album", post_id=post_id):
            if not await self.posts.delete(post_id):
                raise NotFoundError(f"Post with ID {post_id} not found")
            logger.info(f"🗑️ Deleted album {post_id}")
            return post_id

    # =========================================================================
    # CREATE / LIKE / UPLOAD
    # =========================================================================

    async def create_post(self, user_id: str, data: CreateAlbumData) -> Dict:
        """
        Create an album and its Stripe product.

        Args:
            user_id: Seller's user id
            data: album payload

        Returns:
            {albumData, collection}

        Raises:
            NotFoundError: user missing or not a seller
        """
        with wrap_unexpected("create post", user_id=user_id):
            await self.users.find_by_id_or_fail(user_id)

            post = Post(
                id='',
                title=data.title,
                description=data.description,
                price=data.price,
                is_with_preview=data.isWithPreview,
                category_id=data.categoryId,
            )
            created, collection = await self.posts.create(user_id, post, plan_id=data.planId)

            await self.stripe.create_product(
                created.title,
                product_id=created.id,
                metadata={"sellerId": user_id},
                default_price=created.price,
            )

            return {"albumData": created.to_dict(), "collection": collection.to_dict()}

    async def like_post(self, album_id: str, user_id: str) -> Dict:
        """Toggle the user's like; the seller is notified on like, not on unlike"""
        with wrap_unexpected("like post", album_id=album_id, user_id=user_id):
            liked, total = await self.posts.like(album_id, user_id)

        if liked:
            await self._notify_like(album_id, user_id)

        return {
            "message": "post liked successfully" if liked else "post unliked successfully",
            "liked": liked,
            "totalLikes": total,
        }

    async def _notify_like(self, album_id: str, user_id: str) -> None:
        try:
            seller_id = await self.posts.get_seller_id(album_id)
            if not seller_id or seller_id == user_id:
                return
            liker = await self.users.find_by_id(user_id)
            name = liker.user_name if liker else "Someone"
            await self.notifications.push_seller_notifications(
                seller_id, LIKE_TITLE, f"{name} liked one of your albums"
            )
        except Exception as e:
            logger.warning(f"⚠️ Like notification for album {album_id} failed: {e}")

    async def upload_post_pictures(self, files: List[UploadFile], post_id: str) -> List[Picture]:
        """
        Store album pictures and attach them after the existing ones.

        Raises:
            NotFoundError: album missing
        """
        with wrap_unexpected("upload post pictures", post_id=post_id):
            await self.posts.find_by_id_or_fail(post_id)
            offset = len(await self.posts.get_pictures(post_id))

            pictures = []
            for index, file in enumerate(files):
                url = await self.storage.save(file, "albums", f"{post_id}-{offset + index}")
                picture = Picture(
                    id='',
                    url=url,
                    description=_description_for(file.filename),
                    order=offset + index,
                )
                pictures.append(await self.posts.add_picture(post_id, picture))

            logger.info(f"🖼️ Uploaded {len(pictures)} pictures to album {post_id}")
            return pictures


def _description_for(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return filename.rsplit(".", 1)[0]
