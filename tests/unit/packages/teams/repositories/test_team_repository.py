import pytest

from packages.teams.models.database.team import TeamEntity
from packages.teams.repositories.team_repository import TeamRepository


class TestTeamRepository:
    @pytest.fixture
    async def repository(self):
        return TeamRepository()

    async def test_get_for_user(self, repository, sample_team_entity, sample_user_entity):
        team = await repository.get_for_user(sample_user_entity.id)

        assert team is not None
        assert team.id == sample_team_entity.id
        assert team.plan_type == "starter_100"

    async def test_get_for_user_without_membership(self, repository, other_user_entity):
        assert await repository.get_for_user(other_user_entity.id) is None

    async def test_get_for_user_excludes_deleted_team(
        self, repository, test_db, sample_team_entity, sample_user_entity
    ):
        sample_team_entity.deleted = True
        test_db.add(sample_team_entity)
        await test_db.commit()

        assert await repository.get_for_user(sample_user_entity.id) is None

    async def test_get_by_stripe_customer_id(
        self, repository, test_db, sample_team_entity, other_user_entity
    ):
        test_db.add(
            TeamEntity(
                name="Deleted",
                owner_id=other_user_entity.id,
                stripe_customer_id="cus_gone",
                deleted=True,
            )
        )
        await test_db.commit()

        found = await repository.get_by_stripe_customer_id("cus_team123")

        assert found.id == sample_team_entity.id
        assert await repository.get_by_stripe_customer_id("cus_gone") is None
