"""
User Repository - Neo4j storage for user accounts

Storage: Neo4j
- (user)-[:IS_A]->(seller|buyer)        exactly one role edge
- (user)-[:logged_in_with]->(deviceToken)
- (seller)-[:HAS_A]->(wallet)           created with the seller
- (user)-[:SUBSCRIBED_TO]->(seller)     followers/followings counters on user

Users are soft-deleted (desactivated = true); delete() is for admin cleanup.
"""
import logging
from typing import Dict, List, Optional

from middleware.errors import NotFoundError
from models.domain.user import User, UserRole
from repositories.base_repository import BaseRepository
from utils.id_generator import generate_id

logger = logging.getLogger(__name__)

# Properties a profile update may touch
UPDATABLE_FIELDS = ('name', 'userName', 'avatar', 'phone', 'email', 'password', 'confirmed', 'verified')


class UserRepository(BaseRepository):
    """
    Repository for User domain model

    Handles accounts, roles, device tokens and follow relations.
    """

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """
        Retrieve user by ID.

        Args:
            user_id: Stripe customer id

        Returns:
            User model or None
        """
        records = await self.execute_read("""
            MATCH (user:user {id: $userId})
            RETURN user
        """, {'userId': user_id})

        props = self.get_node(records, 'user')
        return User.from_neo4j(props) if props else None

    async def find_by_id_or_fail(self, user_id: str) -> User:
        user = await self.find_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        records = await self.execute_read("""
            MATCH (user:user {email: $email})
            RETURN user
        """, {'email': email})

        props = self.get_node(records, 'user')
        return User.from_neo4j(props) if props else None

    async def find_by_user_name(self, user_name: str) -> Optional[User]:
        records = await self.execute_read("""
            MATCH (user:user {userName: $userName})
            RETURN user
        """, {'userName': user_name})

        props = self.get_node(records, 'user')
        return User.from_neo4j(props) if props else None

    async def exists_by_email(self, email: str) -> bool:
        records = await self.execute_read("""
            RETURN EXISTS { MATCH (:user {email: $email}) } AS exists
        """, {'email': email})
        return bool(self.get_value(records, 'exists'))

    async def get_user_role(self, user_id: str) -> Optional[UserRole]:
        """Seller/Buyer from the IS_A edge, or None"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(role)
            RETURN labels(role) AS labels
        """, {'userId': user_id})

        labels = self.get_value(records, 'labels') or []
        if 'seller' in labels:
            return UserRole.SELLER
        if 'buyer' in labels:
            return UserRole.BUYER
        return None

    async def get_device_tokens(self, user_id: str) -> List[str]:
        """Non-empty device tokens for push notifications"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:logged_in_with]->(device:deviceToken)
            WHERE device.token IS NOT NULL AND device.token <> ''
            RETURN device.token AS token
        """, {'userId': user_id})
        return [row['token'] for row in self.get_records(records)]

    async def get_followed_sellers(self, user_id: str) -> List[User]:
        """Seller users this user is subscribed to"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(seller:user)
            WHERE coalesce(sub.active, true)
            RETURN DISTINCT seller
            ORDER BY seller.userName
        """, {'userId': user_id})
        return [User.from_neo4j(props) for props in self.get_nodes(records, 'seller')]

    async def get_subscribers(self, user_id: str) -> List[User]:
        """Users subscribed to the seller with this user id"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)<-[sub:SUBSCRIBED_TO]-(subscriber:user)
            WHERE coalesce(sub.active, true)
            RETURN DISTINCT subscriber
            ORDER BY subscriber.userName
        """, {'userId': user_id})
        return [User.from_neo4j(props) for props in self.get_nodes(records, 'subscriber')]

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    def _create_params(self, user: User, device_token: Optional[str]) -> Dict:
        return {
            'id': user.id,
            'email': user.email,
            'password': user.password,
            'name': user.name,
            'userName': user.user_name,
            'avatar': user.avatar or '',
            'phone': user.phone or '',
            'token': device_token or '',
        }

    async def create_buyer(self, user: User, device_token: Optional[str] = None) -> User:
        """
        Create a buyer account: user + buyer role + device token.

        Args:
            user: User model (id is the Stripe customer id)
            device_token: FCM token from the signing-up device

        Returns:
            Created user
        """
        params = self._create_params(user, device_token)
        params['roleId'] = generate_id('buyer')

        records = await self.execute_write("""
            CREATE (user:user {
                id: $id,
                email: $email,
                password: $password,
                name: $name,
                userName: $userName,
                avatar: $avatar,
                phone: $phone,
                confirmed: false,
                verified: false,
                desactivated: false,
                followers: 0,
                followings: 0,
                createdAt: datetime().epochMillis
            })
            CREATE (user)-[:IS_A]->(:buyer {id: $roleId})
            CREATE (user)-[:logged_in_with]->(:deviceToken {token: $token})
            RETURN user
        """, params)

        logger.info(f"👤 Created buyer {user.id}")
        return User.from_neo4j(self.get_node(records, 'user'))

    async def create_seller(self, user: User, device_token: Optional[str] = None) -> User:
        """
        Create a seller account: user + seller role + wallet + device token.

        The wallet is created in the same write so a seller never exists
        without one.
        """
        params = self._create_params(user, device_token)
        params['roleId'] = generate_id('seller')
        params['walletId'] = generate_id('wallet')

        records = await self.execute_write("""
            CREATE (user:user {
                id: $id,
                email: $email,
                password: $password,
                name: $name,
                userName: $userName,
                avatar: $avatar,
                phone: $phone,
                confirmed: false,
                verified: false,
                desactivated: false,
                followers: 0,
                followings: 0,
                createdAt: datetime().epochMillis
            })
            CREATE (user)-[:IS_A]->(seller:seller {id: $roleId, verified: false})
            CREATE (seller)-[:HAS_A]->(:wallet {id: $walletId, amount: 0.0})
            CREATE (user)-[:logged_in_with]->(:deviceToken {token: $token})
            RETURN user
        """, params)

        logger.info(f"🛍️ Created seller {user.id}")
        return User.from_neo4j(self.get_node(records, 'user'))

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def update(self, user_id: str, fields: Dict) -> User:
        """
        Update profile properties.

        Args:
            user_id: User ID
            fields: graph property names -> values; None values and
                    unknown names are ignored

        Returns:
            Updated user

        Raises:
            NotFoundError: no such user
        """
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        if not changes:
            return await self.find_by_id_or_fail(user_id)

        records = await self.execute_write("""
            MATCH (user:user {id: $userId})
            SET user += $changes
            RETURN user
        """, {'userId': user_id, 'changes': changes})

        props = self.get_node(records, 'user')
        if not props:
            raise NotFoundError(f"User with ID {user_id} not found")
        return User.from_neo4j(props)

    async def set_avatar(self, user_id: str, avatar: str) -> User:
        return await self.update(user_id, {'avatar': avatar})

    async def confirm_email(self, user_id: str) -> User:
        records = await self.execute_write("""
            MATCH (user:user {id: $userId})
            SET user.confirmed = true
            RETURN user
        """, {'userId': user_id})

        props = self.get_node(records, 'user')
        if not props:
            raise NotFoundError(f"User with ID {user_id} not found")
        return User.from_neo4j(props)

    async def soft_delete(self, user_id: str) -> None:
        await self.execute_write("""
            MATCH (user:user {id: $userId})
            SET user.desactivated = true
        """, {'userId': user_id})

    async def set_device_token(self, user_id: str, token: str) -> None:
        """Make token the user's single device token (login)"""
        await self.execute_write("""
            MATCH (user:user {id: $userId})
            MERGE (user)-[:logged_in_with]->(device:deviceToken)
            SET device.token = $token
        """, {'userId': user_id, 'token': token})

    async def add_device_token(self, user_id: str, token: str) -> None:
        """Register an extra device token (no duplicates)"""
        await self.execute_write("""
            MATCH (user:user {id: $userId})
            MERGE (user)-[:logged_in_with]->(:deviceToken {token: $token})
        """, {'userId': user_id, 'token': token})

    async def clear_device_tokens(self, user_id: str) -> None:
        """Blank every device token so no pushes reach a logged-out device"""
        await self.execute_write("""
            MATCH (:user {id: $userId})-[:logged_in_with]->(device:deviceToken)
            SET device.token = ''
        """, {'userId': user_id})

    async def adjust_follow_counters(self, user_id: str, seller_user_id: str, delta: int) -> None:
        """Move followings of user and followers of seller by delta (never below 0)"""
        await self.execute_write("""
            MATCH (user:user {id: $userId}), (seller:user {id: $sellerId})
            SET user.followings = CASE
                    WHEN coalesce(user.followings, 0) + $delta < 0 THEN 0
                    ELSE coalesce(user.followings, 0) + $delta END,
                seller.followers = CASE
                    WHEN coalesce(seller.followers, 0) + $delta < 0 THEN 0
                    ELSE coalesce(seller.followers, 0) + $delta END
        """, {'userId': user_id, 'sellerId': seller_user_id, 'delta': delta})

    # =========================================================================
    # DELETE OPERATION
    # =========================================================================

    async def delete(self, user_id: str) -> None:
        """Remove the user, its role node, wallet and device tokens"""
        await self.execute_write("""
            MATCH (user:user {id: $userId})
            OPTIONAL MATCH (user)-[:IS_A]->(role)
            OPTIONAL MATCH (role)-[:HAS_A]->(wallet:wallet)
            OPTIONAL MATCH (user)-[:logged_in_with]->(device:deviceToken)
            DETACH DELETE wallet, device, role, user
        """, {'userId': user_id})
