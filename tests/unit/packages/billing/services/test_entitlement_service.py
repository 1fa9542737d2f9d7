"""
Unit tests for EntitlementService.

Covers plan source resolution (user over team), token limits per plan class
and the access info guard flags.
"""

import pytest
from datetime import datetime, timezone

from packages.billing.exceptions import (
    FeatureUnavailableError,
    SubscriptionRequiredError,
    TokensExhaustedError,
)
from packages.billing.models.domain.entitlements import (
    SubscriberContext,
    SubscriberRef,
    resolve_plan_source,
)
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.services.alert_service import AlertService
from packages.billing.services.entitlement_service import UNBOUNDED, EntitlementService
from packages.billing.services.usage_service import UsageService
from packages.teams.models.domain.team import Team
from packages.users.models.domain.user import User


NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _user(**overrides) -> User:
    data = {"id": 1, "email": "u@example.com", "created_at": NOW}
    data.update(overrides)
    return User(**data)


def _team(**overrides) -> Team:
    data = {"id": 10, "name": "Team", "created_at": NOW}
    data.update(overrides)
    return Team(**data)


class TestResolvePlanSource:
    def test_user_plan_overrides_team_plan(self):
        ctx = SubscriberContext(
            user=_user(plan_type="pro_unlimited", subscription_status="active"),
            team=_team(plan_type="team", subscription_status="active"),
        )

        assignment = resolve_plan_source(ctx)

        assert assignment.plan_type == "pro_unlimited"
        assert assignment.source == SubscriberRef.for_user(1)

    def test_team_plan_used_when_user_has_none(self):
        ctx = SubscriberContext(
            user=_user(),
            team=_team(plan_type="team", subscription_status="trialing"),
        )

        assignment = resolve_plan_source(ctx)

        assert assignment.plan_type == "team"
        assert assignment.status == SubscriptionStatus.TRIALING
        assert assignment.source == SubscriberRef.for_team(10)

    def test_status_resolved_independently(self):
        ctx = SubscriberContext(
            user=_user(subscription_status="incomplete"),
            team=_team(plan_type="team", subscription_status="active"),
        )

        assignment = resolve_plan_source(ctx)

        assert assignment.plan_type == "team"
        assert assignment.status == SubscriptionStatus.INCOMPLETE

    def test_no_plan_anywhere(self):
        assignment = resolve_plan_source(SubscriberContext(user=_user()))

        assert assignment.plan_type is None
        assert assignment.status is None
        assert assignment.source == SubscriberRef.for_user(1)


class TestEntitlementChecks:
    def test_access_requires_active_or_trialing(self, plan_catalog):
        service = EntitlementService(plan_catalog)

        for status, expected in [
            ("active", True),
            ("trialing", True),
            ("past_due", False),
            ("canceled", False),
            ("incomplete", False),
        ]:
            ctx = SubscriberContext(
                user=_user(plan_type="pro_unlimited", subscription_status=status)
            )
            assert service.has_active_access(ctx) is expected

        assert service.subscription_status(SubscriberContext(user=_user())) == (
            SubscriptionStatus.NONE
        )

    def test_require_access_raises(self, plan_catalog):
        service = EntitlementService(plan_catalog)

        with pytest.raises(SubscriptionRequiredError) as exc_info:
            service.require_access(SubscriberContext(user=_user()))
        assert exc_info.value.status_code == 403

    def test_feature_access(self, plan_catalog):
        service = EntitlementService(plan_catalog)
        ctx = SubscriberContext(
            user=_user(plan_type="pro_unlimited", subscription_status="active")
        )

        assert service.has_feature_access(ctx, "Advanced analytics") is True
        assert service.has_feature_access(ctx, "SLA guarantee") is False
        with pytest.raises(FeatureUnavailableError):
            service.require_feature(ctx, "SLA guarantee")

    def test_feature_access_needs_active_status(self, plan_catalog):
        service = EntitlementService(plan_catalog)
        ctx = SubscriberContext(
            user=_user(plan_type="pro_unlimited", subscription_status="past_due")
        )

        assert service.has_feature_access(ctx, "Advanced analytics") is False

    def test_check_subscription(self, plan_catalog):
        service = EntitlementService(plan_catalog)

        denied = service.check_subscription(SubscriberContext(user=_user()))

        assert denied.allowed is False
        assert denied.reason == "Active subscription required"


@pytest.mark.asyncio
class TestTokenEntitlements:
    async def test_unlimited_plan_scenario(
        self, test_db, sample_user_entity, assign_user_plan, plan_catalog
    ):
        """pro_unlimited with 500 tokens used: unbounded, 0%, no alerts."""
        await assign_user_plan(sample_user_entity, "pro_unlimited")
        ctx = SubscriberContext(user=User.model_validate(sample_user_entity))
        usage = UsageService()
        await usage.record(sample_user_entity.id, None, 500, "bulk")
        service = EntitlementService(plan_catalog, usage_service=usage)

        assert await service.remaining_tokens(ctx) == UNBOUNDED
        assert await service.usage_percentage(ctx) == 0
        alerts = AlertService(plan_catalog, usage_service=usage)
        assert await alerts.evaluate(999, "pro_unlimited") == []

    async def test_metered_plan_is_unbounded(
        self, test_db, sample_user_entity, assign_user_plan, plan_catalog
    ):
        await assign_user_plan(sample_user_entity, "pay_as_you_go")
        ctx = SubscriberContext(user=User.model_validate(sample_user_entity))
        service = EntitlementService(plan_catalog)

        assert await service.remaining_tokens(ctx) == UNBOUNDED
        assert await service.usage_percentage(ctx) == 0

    async def test_no_plan_or_unknown_plan_has_no_tokens(
        self, test_db, sample_user_entity, assign_user_plan, plan_catalog
    ):
        service = EntitlementService(plan_catalog)
        ctx = SubscriberContext(user=User.model_validate(sample_user_entity))
        assert await service.remaining_tokens(ctx) == 0

        await assign_user_plan(sample_user_entity, "gold_legacy")
        ctx = SubscriberContext(user=User.model_validate(sample_user_entity))
        assert await service.remaining_tokens(ctx) == 0
        check = await service.check_tokens(ctx)
        assert check.allowed is False
        assert check.reason == "No tokens remaining"

    async def test_fixed_cap_counts_team_usage(
        self, test_db, team_context, other_user_entity, plan_catalog
    ):
        usage = UsageService()
        team_id = team_context.team.id
        await usage.record(team_context.user.id, team_id, 30, "chat")
        await usage.record(other_user_entity.id, team_id, 20, "chat")
        service = EntitlementService(plan_catalog, usage_service=usage)

        assert await service.remaining_tokens(team_context) == 50
        assert await service.usage_percentage(team_context) == 50.0
        assert await service.require_tokens(team_context) == 50

    async def test_fixed_cap_exhausted(self, test_db, team_context, plan_catalog):
        usage = UsageService()
        await usage.record(team_context.user.id, team_context.team.id, 120, "chat")
        service = EntitlementService(plan_catalog, usage_service=usage)

        assert await service.remaining_tokens(team_context) == 0
        assert await service.usage_percentage(team_context) == 100.0
        with pytest.raises(TokensExhaustedError) as exc_info:
            await service.require_tokens(team_context)
        assert exc_info.value.status_code == 429

    async def test_access_info_flags(self, test_db, team_context, plan_catalog):
        usage = UsageService()
        await usage.record(team_context.user.id, team_context.team.id, 96, "chat")
        service = EntitlementService(plan_catalog, usage_service=usage)

        info = await service.access_info(team_context)

        assert info.has_access is True
        assert info.plan_type == "starter_100"
        assert info.plan_name == "Starter"
        assert info.tokens.limit == 100
        assert info.tokens.used == 96
        assert info.tokens.remaining == 4
        assert info.show_usage_warning is True
        assert info.show_usage_critical is True
        assert info.is_blocked is False
        assert info.needs_upgrade is False

    async def test_access_info_without_plan(self, test_db, user_context, plan_catalog):
        service = EntitlementService(plan_catalog)

        info = await service.access_info(user_context)

        assert info.has_access is False
        assert info.status == SubscriptionStatus.NONE
        assert info.needs_upgrade is True
        assert info.is_blocked is True
        assert info.features == []
