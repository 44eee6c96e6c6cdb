"""
Test: Domain Repositories
=========================

Repositories run against a scripted Neo4j service: each query gets the
next list of records, and the Cypher plus parameters are recorded.

Key behaviors tested:
- Like toggles (like -> unlike) and reports the running total
- New albums start with zero views and likes
- Purchase check flips once the purchase edge is written
- Subscription MERGE reports whether the edge was created
- Missing nodes surface as NotFoundError
"""

import pytest

from conftest import FakeNeo4jService
from middleware.errors import NotFoundError
from models.domain.post import Post
from models.domain.subscription import Subscription
from models.domain.user import User, UserRole
from repositories.post_repository import PostRepository
from repositories.subscription_repository import SubscriptionRepository
from repositories.user_repository import UserRepository
from repositories.wallet_repository import WalletRepository


class TestPostRepository:

    async def test_like_then_unlike(self):
        neo4j = FakeNeo4jService(responses=[
            [{'liked': True, 'totalLikes': 1}],
            [{'liked': False, 'totalLikes': 0}],
        ])
        repo = PostRepository(neo4j)

        assert await repo.like('po_abcdefgh', 'cus_buyer') == (True, 1)
        assert await repo.like('po_abcdefgh', 'cus_buyer') == (False, 0)

        query, params = neo4j.queries[0]
        assert "OPTIONAL MATCH (user)-[existing:LIKED]->(post)" in query
        assert params == {'postId': 'po_abcdefgh', 'userId': 'cus_buyer'}

    async def test_like_missing_post(self):
        repo = PostRepository(FakeNeo4jService(responses=[[]]))

        with pytest.raises(NotFoundError, match="po_missing0"):
            await repo.like('po_missing0', 'cus_buyer')

    async def test_create_starts_with_zero_counters(self):
        neo4j = FakeNeo4jService(responses=[[{
            'post': {
                'id': 'po_abcdefgh',
                'title': 'Summer',
                'description': 'Beach set',
                'price': 12.5,
                'isWithPreview': False,
                'views': 0,
                'likes': 0,
            },
            'collection': {'id': 'co_abcdefgh'},
        }]])
        repo = PostRepository(neo4j)

        post, collection = await repo.create(
            'cus_seller',
            Post(id='', title='Summer', description='Beach set', price=12.5),
            plan_id='price_123',
        )

        assert post.views == 0
        assert post.likes == 0
        assert post.id == 'po_abcdefgh'
        assert collection.id == 'co_abcdefgh'

        query, params = neo4j.queries[0]
        assert "views: 0" in query and "likes: 0" in query
        assert params['userId'] == 'cus_seller'
        assert params['planId'] == 'price_123'

    async def test_create_for_non_seller(self):
        repo = PostRepository(FakeNeo4jService(responses=[[]]))

        with pytest.raises(NotFoundError):
            await repo.create('cus_buyer', Post(id='', title='Summer'))

    async def test_purchase_check_flips_after_purchase(self):
        neo4j = FakeNeo4jService(responses=[
            [{'purchased': False}],
            [],
            [{'purchased': True}],
        ])
        repo = PostRepository(neo4j)

        assert await repo.check_user_purchased('cus_buyer', 'po_abcdefgh') is False
        await repo.record_purchase('cus_buyer', 'po_abcdefgh')
        assert await repo.check_user_purchased('cus_buyer', 'po_abcdefgh') is True

        assert "MERGE (user)-[bought:BOUGHT_A]->(post)" in neo4j.queries[1][0]

    async def test_increment_views_missing_post(self):
        repo = PostRepository(FakeNeo4jService(responses=[[]]))

        with pytest.raises(NotFoundError):
            await repo.increment_views('po_missing0')

    async def test_find_by_id_or_fail(self):
        repo = PostRepository(FakeNeo4jService(responses=[[]]))

        with pytest.raises(NotFoundError, match="Post with ID po_missing0 not found"):
            await repo.find_by_id_or_fail('po_missing0')


class TestUserRepository:

    async def test_find_by_id(self):
        repo = UserRepository(FakeNeo4jService(responses=[[{
            'user': {'id': 'cus_1', 'email': 'a@example.com', 'name': 'A', 'userName': 'aa', 'followers': 2},
        }]]))

        user = await repo.find_by_id('cus_1')

        assert isinstance(user, User)
        assert user.user_name == 'aa'
        assert user.followers == 2

    async def test_find_by_id_missing(self):
        repo = UserRepository(FakeNeo4jService(responses=[[]]))

        assert await repo.find_by_id('cus_404') is None
        with pytest.raises(NotFoundError):
            await UserRepository(FakeNeo4jService(responses=[[]])).find_by_id_or_fail('cus_404')

    @pytest.mark.parametrize("labels,expected", [
        (['seller'], UserRole.SELLER),
        (['buyer'], UserRole.BUYER),
        ([], None),
    ])
    async def test_user_role(self, labels, expected):
        repo = UserRepository(FakeNeo4jService(responses=[[{'labels': labels}]]))

        assert await repo.get_user_role('cus_1') == expected

    async def test_update_ignores_unknown_and_none_fields(self):
        neo4j = FakeNeo4jService(responses=[[{
            'user': {'id': 'cus_1', 'email': 'a@example.com', 'name': 'New', 'userName': 'aa'},
        }]])
        repo = UserRepository(neo4j)

        user = await repo.update('cus_1', {'name': 'New', 'userName': None, 'role': 'Seller'})

        assert user.name == 'New'
        assert neo4j.queries[0][1]['changes'] == {'name': 'New'}

    async def test_seller_signup_creates_wallet_in_same_write(self):
        neo4j = FakeNeo4jService(responses=[[{
            'user': {'id': 'cus_s', 'email': 's@example.com', 'name': 'S', 'userName': 'ss'},
        }]])
        repo = UserRepository(neo4j)

        await repo.create_seller(User(id='cus_s', email='s@example.com', name='S', user_name='ss'))

        assert len(neo4j.queries) == 1
        query = neo4j.queries[0][0]
        assert "(seller)-[:HAS_A]->(:wallet" in query
        assert "followers: 0" in query


class TestSubscriptionRepository:

    def _subscription(self):
        return Subscription(
            id='sub_1', user_id='cus_buyer', seller_id='cus_seller',
            plan_id='price_1', plan_name='Gold', plan_price=9.99,
        )

    async def test_create_reports_created(self):
        neo4j = FakeNeo4jService(responses=[[{
            'sub': {'id': 'sub_1', 'planName': 'Gold', 'planPrice': 9.99, 'active': True},
            'userId': 'cus_buyer',
            'sellerId': 'cus_seller',
            'created': True,
        }]])
        repo = SubscriptionRepository(neo4j)

        stored, created = await repo.create(self._subscription())

        assert created is True
        assert stored.id == 'sub_1'
        assert stored.seller_id == 'cus_seller'
        assert "MERGE (user)-[sub:SUBSCRIBED_TO]->(seller)" in neo4j.queries[0][0]

    async def test_create_existing_edge(self):
        repo = SubscriptionRepository(FakeNeo4jService(responses=[[{
            'sub': {'id': 'sub_0', 'planName': 'Gold', 'planPrice': 9.99, 'active': True},
            'userId': 'cus_buyer',
            'sellerId': 'cus_seller',
            'created': False,
        }]]))

        stored, created = await repo.create(self._subscription())

        assert created is False
        assert stored.id == 'sub_0'

    async def test_create_missing_endpoints(self):
        repo = SubscriptionRepository(FakeNeo4jService(responses=[[]]))

        with pytest.raises(NotFoundError):
            await repo.create(self._subscription())

    async def test_check_active(self):
        repo = SubscriptionRepository(FakeNeo4jService(responses=[[{'active': True}]]))

        assert await repo.check_active('cus_buyer', 'cus_seller') is True


class TestWalletRepository:

    async def test_balance_string_is_coerced(self):
        repo = WalletRepository(FakeNeo4jService(responses=[[{'amount': '40.5'}]]))

        assert await repo.get_balance('cus_seller') == 40.5

    async def test_balance_without_wallet(self):
        repo = WalletRepository(FakeNeo4jService(responses=[[]]))

        assert await repo.get_balance('cus_buyer') is None
