"""
Tests for common.db.scoped against a real (SQLite) database.

These run on their own engine rather than the savepoint-joined fixtures so
that commit and rollback are the real thing.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from common.core.exceptions import StorageError
from common.db.base import Base
from common.db.context import get_current_session, in_transaction
from common.db.scoped import get_session, transaction
from packages.billing.models.database.stripe_event import StripeEventEntity
from packages.billing.models.database.usage import UsageEventEntity
from packages.users.models.database.user import UserEntity


@pytest_asyncio.fixture
async def isolated_factory(monkeypatch, tmp_path):
    # File-backed so that concurrent sessions each get their own connection
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'scoped.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", factory)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def ledger_user(isolated_factory):
    async with isolated_factory() as session:
        user = UserEntity(email="ledger@example.com")
        session.add(user)
        await session.commit()
        return user.id


async def _ledger_actions(factory) -> list[str]:
    async with factory() as session:
        result = await session.execute(
            select(UsageEventEntity.action).order_by(UsageEventEntity.id)
        )
        return list(result.scalars().all())


async def _event_count(factory) -> int:
    async with factory() as session:
        result = await session.execute(select(func.count(StripeEventEntity.id)))
        return result.scalar_one()


def _usage(user_id: int, action: str, tokens: int = 1) -> UsageEventEntity:
    return UsageEventEntity(user_id=user_id, tokens=tokens, action=action)


class TestTransaction:
    async def test_commits_on_exit(self, isolated_factory, ledger_user):
        async with transaction() as session:
            session.add(_usage(ledger_user, "chat"))

        assert await _ledger_actions(isolated_factory) == ["chat"]

    async def test_rolls_back_on_error(self, isolated_factory, ledger_user):
        with pytest.raises(RuntimeError):
            async with transaction() as session:
                session.add(_usage(ledger_user, "chat"))
                await session.flush()
                raise RuntimeError("cap check failed")

        assert await _ledger_actions(isolated_factory) == []

    async def test_context_is_set_only_inside(self, isolated_factory):
        assert in_transaction() is False

        async with transaction() as session:
            assert get_current_session() is session
            assert in_transaction() is True

        assert get_current_session() is None
        assert in_transaction() is False

    async def test_nested_block_joins_outer_session(self, isolated_factory):
        async with transaction() as outer:
            async with transaction() as inner:
                assert inner is outer

    async def test_failure_in_nested_block_discards_outer_writes(
        self, isolated_factory, ledger_user
    ):
        """Idempotency record and state change commit or vanish together."""
        with pytest.raises(RuntimeError):
            async with transaction() as session:
                session.add(
                    StripeEventEntity(event_id="evt_1", event_type="customer.subscription.updated")
                )
                await session.flush()

                async with transaction() as inner:
                    inner.add(_usage(ledger_user, "sync"))
                    await inner.flush()
                    raise RuntimeError("apply failed")

        assert await _event_count(isolated_factory) == 0
        assert await _ledger_actions(isolated_factory) == []

    async def test_unconfigured_engine_raises_storage_error(self, monkeypatch):
        monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", None)

        with pytest.raises(StorageError):
            async with transaction():
                pass


class TestGetSession:
    async def test_standalone_session_commits(self, isolated_factory, ledger_user):
        async with get_session() as session:
            session.add(_usage(ledger_user, "embed"))

        assert await _ledger_actions(isolated_factory) == ["embed"]

    async def test_standalone_session_rolls_back_on_error(
        self, isolated_factory, ledger_user
    ):
        with pytest.raises(RuntimeError):
            async with get_session() as session:
                session.add(_usage(ledger_user, "embed"))
                await session.flush()
                raise RuntimeError("boom")

        assert await _ledger_actions(isolated_factory) == []

    async def test_joins_enclosing_transaction(self, isolated_factory, ledger_user):
        async with transaction() as tx_session:
            for action in ("a", "b", "c"):
                async with get_session() as session:
                    assert session is tx_session
                    session.add(_usage(ledger_user, action))

        assert await _ledger_actions(isolated_factory) == ["a", "b", "c"]


class TestConcurrentTransactions:
    async def test_failed_request_does_not_affect_siblings(
        self, isolated_factory, ledger_user
    ):
        async def consume(action: str, fail: bool):
            async with transaction() as session:
                session.add(_usage(ledger_user, action))
                if fail:
                    raise RuntimeError(action)

        results = await asyncio.gather(
            consume("first", fail=False),
            consume("second", fail=True),
            consume("third", fail=False),
            return_exceptions=True,
        )

        assert [type(r).__name__ for r in results] == ["NoneType", "RuntimeError", "NoneType"]
        assert sorted(await _ledger_actions(isolated_factory)) == ["first", "third"]
