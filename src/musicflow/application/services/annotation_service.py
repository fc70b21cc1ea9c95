"""Stars, ratings and scrobbles."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.application.services.catalog_queries import load_songs_in_order
from musicflow.domain.exceptions import (
    AuthorizationError,
    EntityNotFoundException,
    ValidationException,
)
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    RatingModel,
    ScrobbleModel,
    SongModel,
    StarredModel,
    UserModel,
    ensure_utc_aware,
)

logger = logging.getLogger(__name__)

NOW_PLAYING_WINDOW = timedelta(minutes=15)


def played_at_from_ms(time_ms: int) -> datetime:
    """Scrobble timestamps arrive as milliseconds since the epoch."""
    try:
        return datetime.fromtimestamp(time_ms / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise ValidationException(f"Invalid scrobble time: {time_ms}") from e


@dataclass
class Annotations:
    """Per-user star timestamps and ratings keyed by item id."""

    starred: dict[str, datetime] = field(default_factory=dict)
    ratings: dict[str, int] = field(default_factory=dict)


@dataclass
class NowPlayingEntry:
    song: SongModel
    username: str
    minutes_ago: int


class AnnotationService:
    """Per-user annotations on artists, albums and songs."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lookup(self, user_id: str, item_ids: Iterable[str]) -> Annotations:
        ids = set(item_ids)
        annotations = Annotations()
        if not ids:
            return annotations

        stars = await self.session.execute(
            select(StarredModel).where(
                StarredModel.user_id == user_id,
                (StarredModel.song_id.in_(ids))
                | (StarredModel.album_id.in_(ids))
                | (StarredModel.artist_id.in_(ids)),
            )
        )
        for star in stars.scalars().all():
            item_id = star.song_id or star.album_id or star.artist_id
            if item_id:
                annotations.starred[item_id] = star.created_at

        ratings = await self.session.execute(
            select(RatingModel.item_id, RatingModel.rating).where(
                RatingModel.user_id == user_id, RatingModel.item_id.in_(ids)
            )
        )
        annotations.ratings = {row[0]: row[1] for row in ratings.all()}
        return annotations

    async def star(
        self,
        user: UserModel,
        song_ids: list[str],
        album_ids: list[str],
        artist_ids: list[str],
    ) -> None:
        for column, model, ids in self._targets(song_ids, album_ids, artist_ids):
            for item_id in ids:
                if await self.session.get(model, item_id) is None:
                    raise EntityNotFoundException(model.__name__.removesuffix("Model"), item_id)
                existing = await self.session.execute(
                    select(StarredModel.id).where(
                        StarredModel.user_id == user.id, column == item_id
                    )
                )
                if existing.first() is None:
                    star = StarredModel(user_id=user.id)
                    setattr(star, column.key, item_id)
                    self.session.add(star)

    async def unstar(
        self,
        user: UserModel,
        song_ids: list[str],
        album_ids: list[str],
        artist_ids: list[str],
    ) -> None:
        for column, _model, ids in self._targets(song_ids, album_ids, artist_ids):
            if ids:
                await self.session.execute(
                    delete(StarredModel).where(
                        StarredModel.user_id == user.id, column.in_(ids)
                    )
                )

    @staticmethod
    def _targets(
        song_ids: list[str], album_ids: list[str], artist_ids: list[str]
    ) -> list[tuple]:
        return [
            (StarredModel.song_id, SongModel, song_ids),
            (StarredModel.album_id, AlbumModel, album_ids),
            (StarredModel.artist_id, ArtistModel, artist_ids),
        ]

    async def set_rating(self, user: UserModel, item_id: str, rating: int) -> None:
        """0 clears the rating, 1..5 sets it."""
        if rating < 0 or rating > 5:
            raise ValidationException(f"Rating must be between 0 and 5, got {rating}")

        existing = await self.session.execute(
            select(RatingModel).where(
                RatingModel.user_id == user.id, RatingModel.item_id == item_id
            )
        )
        current = existing.scalar_one_or_none()
        if rating == 0:
            if current is not None:
                await self.session.delete(current)
            return
        if current is None:
            self.session.add(RatingModel(user_id=user.id, item_id=item_id, rating=rating))
        else:
            current.rating = rating

    async def get_rating(self, user: UserModel, item_id: str) -> int:
        result = await self.session.execute(
            select(RatingModel.rating).where(
                RatingModel.user_id == user.id, RatingModel.item_id == item_id
            )
        )
        return int(result.scalar_one_or_none() or 0)

    async def scrobble(
        self,
        user: UserModel,
        song_ids: list[str],
        times_ms: list[int],
        submission: bool = True,
    ) -> int:
        """Record plays. Submissions also bump song and album play counts."""
        if not user.scrobbling_enabled:
            raise AuthorizationError("Scrobbling is disabled for this user")

        recorded = 0
        for index, song_id in enumerate(song_ids):
            song = await self.session.get(SongModel, song_id)
            if song is None:
                raise EntityNotFoundException("Song", song_id)

            played_at = datetime.now(UTC)
            if index < len(times_ms):
                played_at = played_at_from_ms(times_ms[index])
            self.session.add(
                ScrobbleModel(
                    user_id=user.id, song_id=song_id, time=played_at, submission=submission
                )
            )
            if submission:
                await self.session.execute(
                    update(SongModel)
                    .where(SongModel.id == song_id)
                    .values(play_count=SongModel.play_count + 1)
                    .execution_options(synchronize_session=False)
                )
                await self.session.execute(
                    update(AlbumModel)
                    .where(AlbumModel.id == song.album_id)
                    .values(play_count=AlbumModel.play_count + 1)
                    .execution_options(synchronize_session=False)
                )
            recorded += 1
        logger.debug(f"Recorded {recorded} scrobbles for {user.username}")
        return recorded

    async def now_playing(self) -> list[NowPlayingEntry]:
        """Latest non-submission scrobble per user within the last 15 minutes."""
        now = datetime.now(UTC)
        result = await self.session.execute(
            select(ScrobbleModel, UserModel.username)
            .join(UserModel, UserModel.id == ScrobbleModel.user_id)
            .where(
                ScrobbleModel.submission.is_(False),
                ScrobbleModel.time >= now - NOW_PLAYING_WINDOW,
            )
            .order_by(ScrobbleModel.time.desc(), ScrobbleModel.id.desc())
        )
        latest: dict[str, tuple[ScrobbleModel, str]] = {}
        for scrobble, username in result.all():
            latest.setdefault(scrobble.user_id, (scrobble, username))

        plays = list(latest.values())
        songs = await load_songs_in_order(self.session, [s.song_id for s, _ in plays])
        entries = []
        for (scrobble, username), song in zip(plays, songs, strict=True):
            elapsed = now - ensure_utc_aware(scrobble.time)
            entries.append(
                NowPlayingEntry(
                    song=song,
                    username=username,
                    minutes_ago=max(int(elapsed.total_seconds() // 60), 0),
                )
            )
        return entries
