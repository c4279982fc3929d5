from __future__ import annotations

import json
import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from ingestion.db.models import Article, Notification
from ingestion.models.domain import ArticleStatus, CandidateSource, OutcomeStatus
from ingestion.repositories.articles import ArticleRepository
from ingestion.services.orchestrator import ContentPipeline, estimate_reading_time
from ingestion.utils.logging import configure_logging
from llm.pool import EnginePool
from llm.settings import EngineSettings
from publish.notifier import NotificationSink

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeSearch:
    def __init__(self, results: Dict[str, List[CandidateSource]] | List[CandidateSource]) -> None:
        self.results = results
        self.queries: List[str] = []

    def search(self, query: str, count: int) -> List[CandidateSource]:
        self.queries.append(query)
        if isinstance(self.results, dict):
            return list(self.results.get(query, []))
        return list(self.results)


class FakeEngine:
    """Chat-completions shaped provider returning a fixed answer."""

    def __init__(self, content: str) -> None:
        self.content = content
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(payload)
        return {"choices": [{"message": {"content": self.content}}]}


def _article_json(title: str = "X Launches Y — Here's What Changed") -> str:
    return json.dumps(
        {
            "title": title,
            "body": "word " * 450,
            "excerpt": "Short excerpt.",
            "tags": ["launch", "tech"],
        }
    )


def _source(n: int = 1) -> CandidateSource:
    return CandidateSource(title=f"Original story {n}", url=f"https://ex.com/story-{n}", description="desc")


def _pipeline(
    make_settings,
    session_factory,
    *,
    search: FakeSearch,
    engine: FakeEngine,
    repository: ArticleRepository | None = None,
    notifier: Any = None,
    brands: List[str] | None = None,
    slug_clock=None,
    rng: Any = None,
) -> ContentPipeline:
    settings = make_settings(enabled_brands=brands or ["saucewire"])
    pool = EnginePool.from_settings(EngineSettings(openai_api_key="sk-test"), openai_provider=engine)
    return ContentPipeline(
        settings,
        search=search,
        repository=repository or ArticleRepository(session_factory),
        engines=pool,
        notifier=notifier or NotificationSink(session_factory),
        rng=rng or random.Random(7),
        clock=lambda: FIXED_NOW,
        slug_clock=slug_clock,
    )


def test_estimate_reading_time():
    assert estimate_reading_time("") == 1
    assert estimate_reading_time("word " * 200) == 1
    assert estimate_reading_time("word " * 450) == 3


def test_created_end_to_end(make_settings, session_factory):
    engine = FakeEngine(_article_json())
    pipeline = _pipeline(make_settings, session_factory, search=FakeSearch([_source()]), engine=engine)

    run = pipeline.run()

    assert run.success is True
    assert run.engine == "openai"
    assert run.timestamp == FIXED_NOW
    [outcome] = run.results
    assert outcome.status is OutcomeStatus.CREATED
    assert outcome.brand == "saucewire"
    assert outcome.engine == "openai"
    assert outcome.source == "Original story 1"
    assert outcome.article is not None
    assert outcome.article.slug == "x-launches-y-here-s-what-changed"
    assert len(engine.calls) == 1

    with session_factory() as session:
        row = session.execute(select(Article)).scalars().one()
        assert row.status == ArticleStatus.PENDING_REVIEW
        assert row.source_url == "https://ex.com/story-1"
        assert row.reading_time_minutes == 3
        assert row.brand == "saucewire"
        assert row.meta["ai_pipeline"] is True
        assert row.meta["ai_engine"] == "openai"
        assert row.meta["source_title"] == "Original story 1"
        assert row.meta["search_query"] == outcome.query
        assert row.meta["generated_at"] == FIXED_NOW.isoformat()
        notes = session.execute(select(Notification)).scalars().all()
        assert len(notes) == 1
        assert notes[0].brand == "saucewire"


def test_no_results_when_search_is_empty(make_settings, session_factory):
    engine = FakeEngine(_article_json())
    pipeline = _pipeline(make_settings, session_factory, search=FakeSearch([]), engine=engine)

    [outcome] = pipeline.run().results

    assert outcome.status is OutcomeStatus.NO_RESULTS
    assert outcome.query
    assert engine.calls == []


def test_all_duplicates_skips_engine(make_settings, session_factory):
    first = _pipeline(make_settings, session_factory, search=FakeSearch([_source()]), engine=FakeEngine(_article_json()))
    assert first.run().results[0].status is OutcomeStatus.CREATED

    engine = FakeEngine(_article_json("Another title"))
    second = _pipeline(make_settings, session_factory, search=FakeSearch([_source()]), engine=engine)

    [outcome] = second.run().results

    assert outcome.status is OutcomeStatus.ALL_DUPLICATES
    assert engine.calls == []


def test_first_fresh_candidate_is_rewritten(make_settings, session_factory):
    _pipeline(make_settings, session_factory, search=FakeSearch([_source(1)]), engine=FakeEngine(_article_json())).run()

    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([_source(1), _source(2), _source(3)]),
        engine=FakeEngine(_article_json("Fresh take")),
    )

    [outcome] = pipeline.run().results

    assert outcome.status is OutcomeStatus.CREATED
    assert outcome.source == "Original story 2"


def test_taken_slug_gets_suffix(make_settings, session_factory):
    _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([_source(1)]),
        engine=FakeEngine(_article_json("Breaking News")),
    ).run()

    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([_source(2)]),
        engine=FakeEngine(_article_json("Breaking News")),
        slug_clock=lambda: 123456,
    )

    [outcome] = pipeline.run().results

    assert outcome.status is OutcomeStatus.CREATED
    assert outcome.article.slug == "breaking-news-2n9c"


def test_unparseable_answer_is_rewrite_failed(make_settings, session_factory):
    engine = FakeEngine("Sure, here's your article: not json")
    pipeline = _pipeline(make_settings, session_factory, search=FakeSearch([_source()]), engine=engine)

    [outcome] = pipeline.run().results

    assert outcome.status is OutcomeStatus.REWRITE_FAILED
    assert outcome.source == "Original story 1"
    assert outcome.engine == "openai"
    with session_factory() as session:
        assert session.execute(select(Article)).first() is None


def test_insert_race_is_insert_failed(make_settings, session_factory):
    class RacingRepository(ArticleRepository):
        def insert(self, draft):
            # another writer lands the same source between dedup and insert
            super().insert(draft.model_copy(update={"slug": "someone-else"}))
            return super().insert(draft)

    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([_source()]),
        engine=FakeEngine(_article_json()),
        repository=RacingRepository(session_factory),
    )

    [outcome] = pipeline.run().results

    assert outcome.status is OutcomeStatus.INSERT_FAILED
    assert "UNIQUE" in outcome.error
    assert outcome.engine == "openai"
    with session_factory() as session:
        assert session.execute(select(Notification)).first() is None


def test_dedup_failure_aborts_run(make_settings, session_factory):
    class BrokenRepository(ArticleRepository):
        def existing_source_urls(self, urls):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

    search = FakeSearch([_source()])
    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=search,
        engine=FakeEngine(_article_json()),
        repository=BrokenRepository(session_factory),
        brands=["saucewire", "trapglow"],
    )

    with pytest.raises(OperationalError):
        pipeline.run()
    assert len(search.queries) == 1


def test_brands_are_independent(make_settings, session_factory):
    settings = make_settings(enabled_brands=["saucewire", "trapglow"])
    wire_queries = set(settings.profile_for("saucewire").queries)
    search = FakeSearch({q: [_source(1)] for q in wire_queries})
    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=search,
        engine=FakeEngine(_article_json()),
        brands=["saucewire", "trapglow"],
    )

    run = pipeline.run()

    assert [r.brand for r in run.results] == ["saucewire", "trapglow"]
    assert [r.status for r in run.results] == [OutcomeStatus.CREATED, OutcomeStatus.NO_RESULTS]
    assert run.created_count == 1


def test_notifier_failure_keeps_created(make_settings, session_factory):
    class BrokenNotifier:
        def article_created(self, event):
            raise RuntimeError("feed unavailable")

    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([_source()]),
        engine=FakeEngine(_article_json()),
        notifier=BrokenNotifier(),
    )

    [outcome] = pipeline.run().results

    assert outcome.status is OutcomeStatus.CREATED
    with session_factory() as session:
        assert session.execute(select(Article)).scalars().one().slug == outcome.article.slug


def test_brand_without_profile_is_skipped(make_settings, session_factory):
    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([]),
        engine=FakeEngine(_article_json()),
        brands=["saucewire", "unknownbrand"],
    )

    run = pipeline.run()

    assert [r.brand for r in run.results] == ["saucewire"]


def test_engine_override_without_credential_is_rewrite_failed(make_settings, session_factory):
    engine = FakeEngine(_article_json())
    pipeline = _pipeline(make_settings, session_factory, search=FakeSearch([_source()]), engine=engine)

    run = pipeline.run(engine="gemini")

    assert run.engine == "gemini"
    [outcome] = run.results
    assert outcome.status is OutcomeStatus.REWRITE_FAILED
    assert outcome.engine == "gemini"
    assert engine.calls == []


def test_status_reports_credentials_and_recent(make_settings, session_factory):
    pipeline = _pipeline(make_settings, session_factory, search=FakeSearch([_source()]), engine=FakeEngine(_article_json()))
    pipeline.run()

    status = pipeline.status()

    assert status["enabled"] is True
    assert status["has_openai"] is True
    assert status["has_gemini"] is False
    assert status["has_brave_search"] is True
    assert status["active_engine"] == "openai"
    assert status["brands"]["saucewire"]["total_generated"] == 1
    assert status["brands"]["saucewire"]["recent"][0]["title"] == "X Launches Y — Here's What Changed"


class LastChoice:
    """Deterministic stand-in for random.Random picking the last entry."""

    def __init__(self) -> None:
        self.seen: List[list] = []

    def choice(self, seq):
        self.seen.append(list(seq))
        return seq[-1]


def test_injected_rng_drives_query_and_category(make_settings, session_factory):
    rng = LastChoice()
    search = FakeSearch([_source()])
    pipeline = _pipeline(make_settings, session_factory, search=search, engine=FakeEngine(_article_json()), rng=rng)

    [outcome] = pipeline.run().results

    profile = make_settings().profile_for("saucewire")
    assert rng.seen == [list(profile.queries), list(profile.categories)]
    assert outcome.query == "tech news AI social media today"
    assert search.queries == ["tech news AI social media today"]
    with session_factory() as session:
        row = session.execute(select(Article)).scalars().one()
        assert row.category == "Tech"
        assert row.meta["search_query"] == "tech news AI social media today"


@pytest.fixture()
def info_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    configure_logging("INFO", json_enabled=True)
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_run_completes_with_info_logging_enabled(info_logging, make_settings, session_factory):
    pipeline = _pipeline(
        make_settings,
        session_factory,
        search=FakeSearch([_source()]),
        engine=FakeEngine(_article_json()),
        brands=["saucewire", "trapglow"],
    )

    run = pipeline.run()

    assert [r.status for r in run.results] == [OutcomeStatus.CREATED, OutcomeStatus.ALL_DUPLICATES]
    assert run.created_count == 1
