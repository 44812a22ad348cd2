"""Tests for the UTC timestamp column type."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.models.user import User


async def _reload_created_at(db_session: AsyncSession, user: User) -> datetime:
    db_session.expunge(user)
    result = await db_session.execute(select(User.created_at).where(User.id == user.id))
    return result.scalar_one()


class TestUTCDateTime:
    """Timestamps read back from the database are timezone-aware UTC."""

    async def test_reloaded_timestamp_is_aware_utc(self, db_session: AsyncSession):
        created = datetime(2020, 5, 1, 9, 30, tzinfo=timezone.utc)
        user = User(username="tzuser", email="tz@example.com", created_at=created)
        db_session.add(user)
        await db_session.commit()

        reloaded = await _reload_created_at(db_session, user)

        assert reloaded.tzinfo is not None
        assert reloaded.utcoffset() == timedelta(0)
        assert reloaded == created

    async def test_other_offsets_are_normalised_to_utc(self, db_session: AsyncSession):
        plus_two = timezone(timedelta(hours=2))
        user = User(
            username="offsetuser",
            email="offset@example.com",
            created_at=datetime(2020, 5, 1, 11, 30, tzinfo=plus_two),
        )
        db_session.add(user)
        await db_session.commit()

        reloaded = await _reload_created_at(db_session, user)

        assert reloaded == datetime(2020, 5, 1, 9, 30, tzinfo=timezone.utc)
        assert reloaded.isoformat().endswith("+00:00")

    async def test_naive_values_are_stored_as_utc(self, db_session: AsyncSession):
        user = User(
            username="naiveuser",
            email="naive@example.com",
            created_at=datetime(2020, 5, 1, 9, 30),
        )
        db_session.add(user)
        await db_session.commit()

        reloaded = await _reload_created_at(db_session, user)

        assert reloaded == datetime(2020, 5, 1, 9, 30, tzinfo=timezone.utc)
