import pytest

from packages.billing.catalog import PlanCatalog
from packages.billing.dependencies import get_payment_provider_dependency
from packages.billing.models.domain.subscription import (
    ProviderSubscription,
    ProviderSubscriptionItem,
)


ACCESS_URL = "/api/v1/billing/access"
PLANS_URL = "/api/v1/billing/plans"


@pytest.mark.asyncio
class TestAccessInfo:
    async def test_requires_api_key(self, anonymous_client):
        response = await anonymous_client.get(ACCESS_URL)

        assert response.status_code == 401

    async def test_without_plan(self, client):
        response = await client.get(ACCESS_URL)

        assert response.status_code == 200
        body = response.json()
        assert body["hasAccess"] is False
        assert body["status"] == "none"
        assert body["planType"] is None
        assert body["needsUpgrade"] is True
        assert body["isBlocked"] is True
        assert body["tokens"] == {"limit": 0, "remaining": 0, "used": 0, "percentage": 0.0}

    async def test_team_plan_usage_flags(self, client, sample_team_entity):
        await client.post("/api/v1/tokens/consume", json={"action": "chat", "tokens": 85})

        response = await client.get(ACCESS_URL)

        body = response.json()
        assert body["hasAccess"] is True
        assert body["planType"] == "starter_100"
        assert body["planName"] == "Starter"
        assert body["tokens"] == {"limit": 100, "remaining": 15, "used": 85, "percentage": 85.0}
        assert body["showUsageWarning"] is True
        assert body["showUsageCritical"] is False
        assert body["isBlocked"] is False

    async def test_unlimited_plan_is_never_blocked(
        self, client, sample_user_entity, assign_user_plan
    ):
        await assign_user_plan(sample_user_entity, "pro_unlimited")

        body = (await client.get(ACCESS_URL)).json()

        assert body["planType"] == "pro_unlimited"
        assert body["isBlocked"] is False
        assert body["tokens"]["used"] == 0


@pytest.mark.asyncio
class TestPlans:
    async def test_plans_are_public(self, anonymous_client):
        response = await anonymous_client.get(PLANS_URL)

        assert response.status_code == 200
        body = response.json()
        assert [p["id"] for p in body["individual"]] == [
            "pay_as_you_go",
            "pro_unlimited",
            "starter_100",
        ]
        assert [p["id"] for p in body["team"]] == ["team", "enterprise"]

    async def test_plan_shape(self, anonymous_client):
        body = (await anonymous_client.get(PLANS_URL)).json()
        starter = next(p for p in body["individual"] if p["id"] == "starter_100")

        assert starter["tokenLimit"] == 100
        assert starter["billingPeriod"] == "month"
        assert starter["features"][0]["name"] == "API access"


CHECKOUT_URL = "/api/v1/billing/checkout"
PORTAL_URL = "/api/v1/billing/portal"
SWITCH_URL = "/api/v1/billing/switch"
CANCEL_URL = "/api/v1/billing/cancel"
SUBSCRIPTION_URL = "/api/v1/billing/subscription"


@pytest.fixture
def payment_provider(app, test_settings, mock_payment_provider):
    """Priced catalog and a mocked payment provider on the app under test."""
    app.state.plan_catalog = PlanCatalog.from_settings(test_settings)
    app.dependency_overrides[get_payment_provider_dependency] = lambda: mock_payment_provider
    yield mock_payment_provider
    app.dependency_overrides.clear()


@pytest.mark.asyncio
class TestSubscriptionManagement:
    @pytest.mark.parametrize(
        "method, url",
        [
            ("post", CHECKOUT_URL),
            ("post", PORTAL_URL),
            ("post", SWITCH_URL),
            ("post", CANCEL_URL),
            ("get", SUBSCRIPTION_URL),
        ],
    )
    async def test_requires_api_key(self, anonymous_client, payment_provider, method, url):
        response = await getattr(anonymous_client, method)(url)

        assert response.status_code == 401

    async def test_checkout_returns_url(self, client, payment_provider, sample_user_entity):
        response = await client.post(CHECKOUT_URL, json={"planType": "pro_unlimited"})

        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.test/c/cs_123"}
        kwargs = payment_provider.create_checkout_session.await_args.kwargs
        assert kwargs["client_reference_id"] == str(sample_user_entity.id)
        assert kwargs["subscription_metadata"]["planType"] == "pro_unlimited"

    async def test_checkout_unknown_plan_is_bad_request(self, client, payment_provider):
        response = await client.post(CHECKOUT_URL, json={"planType": "platinum"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid plan type: platinum"}

    async def test_checkout_provider_failure(self, client, payment_provider):
        payment_provider.create_checkout_session.side_effect = RuntimeError("stripe down")

        response = await client.post(CHECKOUT_URL, json={"planType": "pro_unlimited"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create checkout session"}

    async def test_portal_without_customer_is_forbidden(self, client, payment_provider):
        response = await client.post(PORTAL_URL)

        assert response.status_code == 403
        assert response.json() == {"error": "No active subscription found"}

    async def test_portal_for_team(self, client, payment_provider, sample_team_entity):
        response = await client.post(PORTAL_URL)

        assert response.status_code == 200
        assert response.json() == {"url": "https://billing.stripe.test/p/session_123"}

    async def test_switch_without_subscription_requires_checkout(
        self, client, payment_provider
    ):
        response = await client.post(SWITCH_URL, json={"planType": "pro_unlimited"})

        assert response.status_code == 200
        assert response.json() == {
            "outcome": "checkout_required",
            "planType": "pro_unlimited",
            "checkoutRequired": True,
        }

    async def test_switch_in_place(
        self, client, payment_provider, sample_user_entity, test_db
    ):
        sample_user_entity.stripe_subscription_id = "sub_user"
        test_db.add(sample_user_entity)
        await test_db.commit()
        payment_provider.retrieve_subscription.return_value = ProviderSubscription(
            id="sub_user",
            customer_id="cus_user",
            status="active",
            created=1760000000,
            items=[ProviderSubscriptionItem(id="si_user", price_id="price_old")],
        )

        response = await client.post(SWITCH_URL, json={"planType": "pay_as_you_go"})

        assert response.status_code == 200
        assert response.json()["outcome"] == "updated"
        assert response.json()["checkoutRequired"] is False
        payment_provider.update_subscription_price.assert_awaited_once()

    async def test_cancel_without_subscription(self, client, payment_provider):
        response = await client.post(CANCEL_URL)

        assert response.status_code == 403

    async def test_cancel_at_period_end(
        self, client, payment_provider, sample_user_entity, test_db
    ):
        sample_user_entity.stripe_subscription_id = "sub_user"
        test_db.add(sample_user_entity)
        await test_db.commit()

        response = await client.post(CANCEL_URL)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "subscriptionId": "sub_user",
            "cancelAtPeriodEnd": True,
        }
        payment_provider.cancel_subscription_at_period_end.assert_awaited_once_with("sub_user")

    async def test_subscription_is_null_without_team(self, client, payment_provider):
        response = await client.get(SUBSCRIPTION_URL)

        assert response.status_code == 200
        assert response.json() == {"subscription": None}

    async def test_team_subscription(
        self, client, payment_provider, sample_team_entity, test_db
    ):
        sample_team_entity.stripe_subscription_id = "sub_team"
        test_db.add(sample_team_entity)
        await test_db.commit()
        payment_provider.retrieve_subscription.return_value = ProviderSubscription(
            id="sub_team",
            customer_id="cus_team123",
            status="active",
            created=1760000000,
            items=[ProviderSubscriptionItem(id="si_seat", price_id="price_seat", quantity=4)],
            current_period_end=1762600000,
        )

        response = await client.get(SUBSCRIPTION_URL)

        assert response.status_code == 200
        assert response.json() == {
            "subscription": {
                "quantity": 4,
                "status": "active",
                "currentPeriodEnd": 1762600000,
                "cancelAtPeriodEnd": False,
            }
        }
