# Shared pytest configuration and fixtures for all test types
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from api.main import create_app
from common.core.config import Settings
from common.db.base import Base
from packages.auth.services.api_key_service import ApiKeyService
from packages.billing.catalog import DEFAULT_PLANS, PlanCatalog
from packages.billing.models.database import (  # noqa: F401
    StripeEventEntity,
    SubscriptionItemEntity,
    UsageAlertEntity,
    UsageEventEntity,
)
from packages.billing.models.domain.entitlements import SubscriberContext
from packages.billing.models.domain.enums import (
    BillingPeriod,
    PlanType,
    SubscriptionStatus,
)
from packages.billing.models.domain.plans import PlanDefinition
from packages.teams.models.database.team import TeamEntity, TeamMemberEntity
from packages.teams.models.domain.team import Team
from packages.users.models.database.user import UserEntity
from packages.users.models.domain.user import User

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_API_KEY = "tm_test_api_key"
OTHER_API_KEY = "tm_other_api_key"

# Fixed-cap plan used by alert and limit tests; the default catalog has none
STARTER_PLAN = PlanDefinition(
    id="starter_100",
    name="Starter",
    description="Small monthly allowance.",
    price=9,
    billing_period=BillingPeriod.MONTH,
    token_limit=100,
    features=("API access", "Basic support"),
)


@pytest.fixture
def test_settings():
    """Settings with no rate limits, no Stripe key and no retry delays."""
    return Settings(
        _env_file=None,
        stripe_secret_key="",
        stripe_webhook_secret="whsec_test",
        rate_limit_defaults=[],
        webhook_owner_retry_delay_seconds=0,
        meter_report_initial_delay_seconds=0,
        recent_usage_limit=20,
    )


@pytest.fixture
def plan_catalog():
    return PlanCatalog(
        DEFAULT_PLANS + (STARTER_PLAN,),
        individual_plan_ids=[
            PlanType.PAY_AS_YOU_GO.value,
            PlanType.PRO_UNLIMITED.value,
            STARTER_PLAN.id,
        ],
        team_plan_ids=[PlanType.TEAM.value, PlanType.ENTERPRISE.value],
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so nested transaction()
    calls create savepoints instead of real nested transactions.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch the session factory to use the test database.

    This allows real transaction() and get_session() to run with proper
    commit/rollback/ContextVar semantics while using the test database.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)


@pytest.fixture
def app(test_settings, plan_catalog):
    application = create_app(test_settings)
    application.state.plan_catalog = plan_catalog
    return application


@pytest_asyncio.fixture(scope="function")
async def client(app, sample_user_entity):
    """Test client authenticated as sample_user_entity."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"x-api-key": TEST_API_KEY},
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def anonymous_client(app):
    """Test client without an API key."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def sample_user_entity(test_db: AsyncSession):
    """A user with an API key and no plan of its own."""
    user = UserEntity(
        email="test@example.com",
        full_name="Test User",
        api_key_hash=ApiKeyService.hash_api_key(TEST_API_KEY),
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def other_user_entity(test_db: AsyncSession):
    """A second user, outside the sample team."""
    user = UserEntity(
        email="other@example.com",
        full_name="Other User",
        api_key_hash=ApiKeyService.hash_api_key(OTHER_API_KEY),
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def sample_team_entity(test_db: AsyncSession, sample_user_entity):
    """An active starter_100 team with sample_user_entity as its only member."""
    team = TeamEntity(
        name="Test Team",
        owner_id=sample_user_entity.id,
        seat_count=1,
        stripe_customer_id="cus_team123",
        plan_type=STARTER_PLAN.id,
        subscription_status=SubscriptionStatus.ACTIVE.value,
    )
    test_db.add(team)
    await test_db.commit()
    await test_db.refresh(team)

    member = TeamMemberEntity(
        team_id=team.id, user_id=sample_user_entity.id, role="owner"
    )
    test_db.add(member)
    await test_db.commit()
    return team


@pytest.fixture
def user_context(sample_user_entity):
    """Subscriber context for the sample user without a team."""
    return SubscriberContext(user=User.model_validate(sample_user_entity))


@pytest.fixture
def team_context(sample_user_entity, sample_team_entity):
    """Subscriber context for the sample user as a member of the sample team."""
    return SubscriberContext(
        user=User.model_validate(sample_user_entity),
        team=Team.model_validate(sample_team_entity),
    )


@pytest.fixture
def assign_user_plan(test_db: AsyncSession):
    """Assign a plan directly on a user row; returns the refreshed entity."""

    async def _assign(
        user: UserEntity,
        plan_type,
        subscription_status=SubscriptionStatus.ACTIVE.value,
        stripe_customer_id=None,
    ):
        user.plan_type = plan_type
        user.subscription_status = subscription_status
        if stripe_customer_id is not None:
            user.stripe_customer_id = stripe_customer_id
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user

    return _assign
