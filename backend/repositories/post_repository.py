"""
Post Repository - Neo4j storage for albums

Storage: Neo4j
- (seller)-[:HAS_A]->(post)-[:HAS_A]->(collection)-[:HAS_A]->(picture)
- (post)-[:IS_OF]->(plan), (post)-[:OF_A]->(category)
- (user)-[:LIKED]->(post), (user)-[:BOUGHT_A]->(post)

Listing queries return album details:
    {albumData: {...post}, user: {...seller user}, pictures: [...]}

ID format: po_xxxxxxxx (posts), co_xxxxxxxx (collections)
"""
import logging
from typing import Dict, List, Optional, Tuple

from middleware.errors import NotFoundError
from models.domain.post import Category, Collection, Picture, Post
from models.domain.seller import Plan
from repositories.base_repository import BaseRepository
from utils.id_generator import generate_id

logger = logging.getLogger(__name__)

# Shared tail for album listings: one row per post with its seller user and pictures
_ALBUM_RETURN = """
    OPTIONAL MATCH (post)-[:HAS_A]->(:collection)-[:HAS_A]->(picture:picture)
    WITH post, user, picture
    ORDER BY picture.order
    WITH post, user, collect(picture) AS pictures
    RETURN post, user, pictures
"""


def _public_user(props: Optional[Dict]) -> Optional[Dict]:
    if props is None:
        return None
    return {
        'id': props.get('id'),
        'name': props.get('name'),
        'email': props.get('email'),
        'userName': props.get('userName'),
        'avatar': props.get('avatar'),
        'followers': int(props.get('followers') or 0),
        'followings': int(props.get('followings') or 0),
    }


class PostRepository(BaseRepository):
    """
    Repository for Post (album) domain model

    Handles albums, their pictures, likes, views and purchases.
    """

    def _to_albums(self, records) -> List[Dict]:
        albums = []
        for row in self.get_records(records):
            albums.append({
                'albumData': Post.from_neo4j(row['post']).to_dict(),
                'user': _public_user(row.get('user')),
                'pictures': [Picture.from_neo4j(p).to_dict() for p in row.get('pictures') or []],
            })
        return albums

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def find_by_id(self, post_id: str) -> Optional[Post]:
        """
        Retrieve post by ID.

        Args:
            post_id: Post ID (po_xxxxxxxx)

        Returns:
            Post model or None
        """
        records = await self.execute_read("""
            MATCH (post:post {id: $postId})
            RETURN post
        """, {'postId': post_id})

        props = self.get_node(records, 'post')
        return Post.from_neo4j(props) if props else None

    async def find_by_id_or_fail(self, post_id: str) -> Post:
        post = await self.find_by_id(post_id)
        if not post:
            raise NotFoundError(f"Post with ID {post_id} not found")
        return post

    async def find_popular(self, user_id: Optional[str] = None) -> List[Dict]:
        """
        Most viewed albums, excluding the requesting user's own albums.

        Returns:
            Up to 20 album details, views DESC
        """
        records = await self.execute_read("""
            MATCH (post:post)<-[:HAS_A]-(:seller)<-[:IS_A]-(user:user)
            WHERE $userId IS NULL OR user.id <> $userId
            WITH post, user
            ORDER BY post.views DESC
            LIMIT 20
        """ + _ALBUM_RETURN + """
            ORDER BY post.views DESC
        """, {'userId': user_id})
        return self._to_albums(records)

    async def find_random(self, page: int, user_id: str) -> List[Dict]:
        """
        Albums of sellers the user subscribes to, paged by 10.

        Args:
            page: zero-based page (skips page * 10 rows)
            user_id: subscribing user

        Returns:
            Up to 20 album details, likes DESC
        """
        records = await self.execute_read("""
            MATCH (me:user {id: $userId})-[sub:SUBSCRIBED_TO]->(s:seller)
            WHERE coalesce(sub.active, true)
            MATCH (s)-[:HAS_A]->(post:post), (user:user)-[:IS_A]->(s)
            WITH post, user
            ORDER BY post.likes DESC
            SKIP $skip
            LIMIT 20
        """ + _ALBUM_RETURN + """
            ORDER BY post.likes DESC
        """, {'userId': user_id, 'skip': max(0, int(page)) * 10})
        return self._to_albums(records)

    async def find_by_category(self, category_id: str) -> List[Dict]:
        """Albums in a category, newest first"""
        records = await self.execute_read("""
            MATCH (:category {id: $categoryId})<-[:OF_A]-(post:post)<-[:HAS_A]-(:seller)<-[:IS_A]-(user:user)
            WITH post, user
        """ + _ALBUM_RETURN + """
            ORDER BY post.createdAt DESC
        """, {'categoryId': category_id})
        return self._to_albums(records)

    async def find_by_seller(self, user_id: str) -> List[Dict]:
        """Albums owned by the seller with this user id, views DESC"""
        records = await self.execute_read("""
            MATCH (user:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(post:post)
            WITH post, user
        """ + _ALBUM_RETURN + """
            ORDER BY post.views DESC
        """, {'userId': user_id})
        return self._to_albums(records)

    async def find_all_excluding_user(self, user_id: str) -> List[Dict]:
        """Every album not owned by this user, views DESC"""
        records = await self.execute_read("""
            MATCH (post:post)<-[:HAS_A]-(:seller)<-[:IS_A]-(user:user)
            WHERE user.id <> $userId
            WITH post, user
        """ + _ALBUM_RETURN + """
            ORDER BY post.views DESC
        """, {'userId': user_id})
        return self._to_albums(records)

    async def get_pictures(self, post_id: str) -> List[Picture]:
        """Album pictures ordered by their order property"""
        records = await self.execute_read("""
            MATCH (:post {id: $postId})-[:HAS_A]->(:collection)-[:HAS_A]->(picture:picture)
            RETURN picture
            ORDER BY picture.order
        """, {'postId': post_id})
        return [Picture.from_neo4j(p) for p in self.get_nodes(records, 'picture')]

    async def find_all_categories(self) -> List[Category]:
        records = await self.execute_read("""
            MATCH (category:category)
            RETURN category
            ORDER BY category.name
        """)
        return [Category.from_neo4j(c) for c in self.get_nodes(records, 'category')]

    async def get_plan_for_album(self, album_id: str) -> Plan:
        """
        Subscription plan an album belongs to.

        Raises:
            NotFoundError: album has no plan
        """
        records = await self.execute_read("""
            MATCH (:post {id: $albumId})-[:IS_OF]->(plan:plan)
            RETURN plan
        """, {'albumId': album_id})

        props = self.get_node(records, 'plan')
        if not props:
            raise NotFoundError(f"No plan found for album {album_id}")
        return Plan.from_neo4j(props)

    async def get_seller_id(self, post_id: str) -> Optional[str]:
        """User id of the seller owning the post"""
        records = await self.execute_read("""
            MATCH (user:user)-[:IS_A]->(:seller)-[:HAS_A]->(:post {id: $postId})
            RETURN user.id AS sellerId
        """, {'postId': post_id})
        return self.get_value(records, 'sellerId')

    async def check_user_purchased(self, user_id: str, post_id: str) -> bool:
        records = await self.execute_read("""
            RETURN EXISTS {
                MATCH (:user {id: $userId})-[:BOUGHT_A]->(:post {id: $postId})
            } AS purchased
        """, {'userId': user_id, 'postId': post_id})
        return bool(self.get_value(records, 'purchased'))

    # =========================================================================
    # CREATE OPERATION
    # =========================================================================

    async def create(
        self,
        user_id: str,
        post: Post,
        plan_id: Optional[str] = None,
    ) -> Tuple[Post, Collection]:
        """
        Create an album (post + empty collection) for a seller.

        The plan and category links are only created when those nodes exist.

        Args:
            user_id: Seller's user id
            post: Post model (views/likes are forced to 0)
            plan_id: Stripe price id of the plan the album belongs to

        Returns:
            (created post, its collection)

        Raises:
            NotFoundError: user is not a seller
        """
        collection = Collection(id=generate_id('collection'))

        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)
            CREATE (seller)-[:HAS_A]->(post:post {
                id: $postId,
                title: $title,
                description: $description,
                price: $price,
                isWithPreview: $isWithPreview,
                categoryId: $categoryId,
                views: 0,
                likes: 0,
                createdAt: datetime().epochMillis
            })
            CREATE (post)-[:HAS_A]->(collection:collection {id: $collectionId})
            WITH post, collection
            OPTIONAL MATCH (plan:plan {id: $planId})
            FOREACH (_ IN CASE WHEN plan IS NULL THEN [] ELSE [1] END |
                CREATE (post)-[:IS_OF]->(plan)
            )
            WITH post, collection
            OPTIONAL MATCH (category:category {id: $categoryId})
            FOREACH (_ IN CASE WHEN category IS NULL THEN [] ELSE [1] END |
                CREATE (post)-[:OF_A]->(category)
            )
            RETURN post, collection
        """, {
            'userId': user_id,
            'postId': post.id,
            'title': post.title,
            'description': post.description,
            'price': post.price,
            'isWithPreview': post.is_with_preview,
            'categoryId': post.category_id,
            'collectionId': collection.id,
            'planId': plan_id,
        })

        props = self.get_node(records, 'post')
        if not props:
            raise NotFoundError(f"Seller with user ID {user_id} not found")

        logger.info(f"📸 Created album {post.id} for seller {user_id}")
        return Post.from_neo4j(props), Collection.from_neo4j(self.get_node(records, 'collection'))

    async def add_picture(self, post_id: str, picture: Picture) -> Picture:
        """Attach a picture to the album's collection"""
        records = await self.execute_write("""
            MATCH (:post {id: $postId})-[:HAS_A]->(collection:collection)
            CREATE (collection)-[:HAS_A]->(picture:picture {
                id: $id,
                url: $url,
                description: $description,
                order: $order
            })
            RETURN picture
        """, {
            'postId': post_id,
            'id': picture.id,
            'url': picture.url,
            'description': picture.description,
            'order': picture.order,
        })

        props = self.get_node(records, 'picture')
        if not props:
            raise NotFoundError(f"Post with ID {post_id} not found")
        return Picture.from_neo4j(props)

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def update(self, post_id: str, fields: Dict) -> Post:
        """
        Update title/description/price.

        Args:
            post_id: Post ID
            fields: subset of {'title', 'description', 'price'}; None values ignored

        Returns:
            Updated post
        """
        allowed = {k: v for k, v in fields.items() if k in ('title', 'description', 'price') and v is not None}
        if not allowed:
            return await self.find_by_id_or_fail(post_id)

        records = await self.execute_write("""
            MATCH (post:post {id: $postId})
            SET post += $fields
            RETURN post
        """, {'postId': post_id, 'fields': allowed})

        props = self.get_node(records, 'post')
        if not props:
            raise NotFoundError(f"Post with ID {post_id} not found")
        return Post.from_neo4j(props)

    async def like(self, post_id: str, user_id: str) -> Tuple[bool, int]:
        """
        Toggle a like in one query.

        Returns:
            (liked, total_likes) where liked is the state after the toggle

        Raises:
            NotFoundError: post or user missing
        """
        records = await self.execute_write("""
            MATCH (post:post {id: $postId}), (user:user {id: $userId})
            OPTIONAL MATCH (user)-[existing:LIKED]->(post)
            WITH post, user, existing, existing IS NULL AS shouldLike
            FOREACH (_ IN CASE WHEN shouldLike THEN [1] ELSE [] END |
                CREATE (user)-[:LIKED]->(post)
                SET post.likes = coalesce(post.likes, 0) + 1
            )
            FOREACH (_ IN CASE WHEN NOT shouldLike THEN [1] ELSE [] END |
                DELETE existing
                SET post.likes = coalesce(post.likes, 1) - 1
            )
            RETURN shouldLike AS liked, post.likes AS totalLikes
        """, {'postId': post_id, 'userId': user_id})

        if not records:
            raise NotFoundError(f"Post with ID {post_id} not found")

        liked = bool(self.get_value(records, 'liked'))
        total = int(self.to_number(self.get_value(records, 'totalLikes')))
        return liked, total

    async def increment_views(self, post_id: str) -> int:
        """Add one view and return the new count"""
        records = await self.execute_write("""
            MATCH (post:post {id: $postId})
            SET post.views = coalesce(post.views, 0) + 1
            RETURN post.views AS views
        """, {'postId': post_id})

        if not records:
            raise NotFoundError(f"Post with ID {post_id} not found")
        return int(self.to_number(self.get_value(records, 'views')))

    async def record_purchase(self, user_id: str, post_id: str) -> None:
        """Record a purchase edge (idempotent)"""
        await self.execute_write("""
            MATCH (user:user {id: $userId}), (post:post {id: $postId})
            MERGE (user)-[bought:BOUGHT_A]->(post)
            ON CREATE SET bought.createdAt = datetime().epochMillis
        """, {'userId': user_id, 'postId': post_id})

    # =========================================================================
    # DELETE OPERATION
    # =========================================================================

    async def delete(self, post_id: str) -> bool:
        """
        Delete an album with its collection and pictures.

        Returns:
            True if the post existed
        """
        records = await self.execute_write("""
            MATCH (post:post {id: $postId})
            OPTIONAL MATCH (post)-[:HAS_A]->(collection:collection)
            OPTIONAL MATCH (collection)-[:HAS_A]->(picture:picture)
            WITH post, collection, collect(picture) AS pictures
            FOREACH (picture IN pictures | DETACH DELETE picture)
            DETACH DELETE collection, post
            RETURN true AS deleted
        """, {'postId': post_id})
        return bool(records)
