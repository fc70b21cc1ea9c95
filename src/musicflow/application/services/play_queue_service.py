"""Saved play queue (getPlayQueue / savePlayQueue)."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from musicflow.application.services.catalog_queries import load_songs_in_order
from musicflow.domain.exceptions import EntityNotFoundException
from musicflow.infrastructure.persistence.models import (
    PlayQueueModel,
    PlayQueueSongModel,
    SongModel,
    UserModel,
    utc_now,
)


class PlayQueueService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user: UserModel) -> tuple[PlayQueueModel, list[SongModel]] | None:
        result = await self.session.execute(
            select(PlayQueueModel)
            .options(selectinload(PlayQueueModel.entries))
            .where(PlayQueueModel.user_id == user.id)
            .execution_options(populate_existing=True)
        )
        queue = result.scalar_one_or_none()
        if queue is None:
            return None
        songs = await load_songs_in_order(self.session, [e.song_id for e in queue.entries])
        return queue, songs

    async def save(
        self,
        user: UserModel,
        song_ids: list[str],
        current: str | None,
        position: int,
        client: str | None,
    ) -> None:
        """Replace the user's queue; an empty id list clears it."""
        await self.session.execute(
            delete(PlayQueueModel).where(PlayQueueModel.user_id == user.id)
        )
        if not song_ids:
            return

        songs = await load_songs_in_order(self.session, song_ids)
        if len(songs) != len(song_ids):
            missing = sorted(set(song_ids) - {song.id for song in songs})
            raise EntityNotFoundException("Song", ", ".join(missing))
        if current is not None and current not in song_ids:
            raise EntityNotFoundException("Song", current)

        queue = PlayQueueModel(
            user_id=user.id,
            current_song_id=current,
            position=max(position, 0),
            changed_by=client,
            changed_at=utc_now(),
        )
        self.session.add(queue)
        await self.session.flush()
        for index, song in enumerate(songs):
            self.session.add(PlayQueueSongModel(user_id=user.id, position=index, song_id=song.id))
