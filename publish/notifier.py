from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from ingestion.db.models import Notification
from ingestion.models.domain import ArticleRef

NOTIFICATION_LINK = "/dashboard/content"
_SNIPPET_CHARS = 50


@dataclass(frozen=True)
class ArticleEvent:
    brand: str
    engine: str
    article: ArticleRef
    source_title: str


def build_notification(event: ArticleEvent) -> Notification:
    return Notification(
        type="article",
        title=f"AI Article: {event.article.title[:_SNIPPET_CHARS]}",
        message=(
            f"New {event.brand} article via {event.engine.upper()} "
            f'from "{event.source_title[:_SNIPPET_CHARS]}"'
        ),
        link=NOTIFICATION_LINK,
        brand=event.brand,
        read=False,
    )


class NotificationSink:
    """Writes one row to the admin notification feed per event."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def article_created(self, event: ArticleEvent) -> Notification:
        with self._session_factory() as session:
            entity = build_notification(event)
            session.add(entity)
            session.commit()
            return entity
