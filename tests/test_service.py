"""Tests for the submission service.

Covers the read-fold-persist sequence end to end, including
concurrent submissions and snapshot import/export.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.orm import Session

from purity.core.errors import CorruptStateError, InvalidScoreError, PersistenceError
from purity.db import repo
from purity.service.submissions import (
    export_snapshot,
    get_stats,
    import_snapshot,
    submit_answers,
)


class TestSubmitAnswers:
    """Tests for submit_answers."""

    def test_returns_refreshed_report(self, session):
        """Report includes the new submission."""
        result = submit_answers(session, {"userId": "u", "score": 87, "checkedQuestions": [1, 5, 12]})

        assert result.total_submissions == 1
        assert result.average_score == "87.00"
        assert result.question_stats["5"] == "100.00"

    def test_invalid_score_does_not_mutate(self, session):
        """Rejected payloads leave the store untouched."""
        submit_answers(session, {"score": 50, "checkedQuestions": []})

        with pytest.raises(InvalidScoreError):
            submit_answers(session, {"score": "abc", "checkedQuestions": [1]})

        assert get_stats(session).total_submissions == 1
        assert repo.count_submissions(session) == 1

    def test_records_anonymous_user(self, session):
        """Missing userId is logged as anonymous."""
        submit_answers(session, {"score": 99, "checkedQuestions": [4]})

        assert repo.get_submissions(session)[0].user_id == "anonymous"

    def test_sum_is_exact(self, session):
        """Average reflects the exact sum of accepted scores."""
        for score in [0.5, -2.25, 10]:
            submit_answers(session, {"score": score, "checkedQuestions": []})

        aggregate = repo.get_aggregate(session)
        assert aggregate.sum_of_scores == 8.25
        assert get_stats(session).average_score == "2.75"

    def test_corrupt_state_propagates(self, session):
        """Corrupt aggregate surfaces as CorruptStateError."""
        get_stats(session)
        from purity.db.schema import AggregateStats

        session.get(AggregateStats, 1).question_counts_json = "null"
        session.commit()

        with pytest.raises(CorruptStateError):
            submit_answers(session, {"score": 1, "checkedQuestions": []})


class TestGetStats:
    """Tests for get_stats."""

    def test_fresh_store(self, session):
        """Fresh store reports zero submissions."""
        result = get_stats(session)

        assert result.total_submissions == 0
        assert result.average_score == 0

    def test_reads_are_idempotent(self, session):
        """Two reads with no write in between are identical."""
        submit_answers(session, {"score": 70, "checkedQuestions": [1, 2, 3]})

        assert get_stats(session) == get_stats(session)


class TestConcurrentSubmissions:
    """Concurrent submissions must not lose updates."""

    def test_all_submissions_counted(self, engine):
        """N concurrent submissions give totalSubmissions == N."""
        n = 40

        def submit_one(i):
            with Session(engine) as db_session:
                return submit_answers(
                    db_session,
                    {"userId": f"user-{i}", "score": i, "checkedQuestions": [1, i % 100 + 1]},
                )

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(submit_one, range(n)))

        with Session(engine) as db_session:
            result = get_stats(db_session)
            aggregate = repo.get_aggregate(db_session)
            sequences = [s.sequence for s in repo.get_submissions(db_session)]

        assert result.total_submissions == n
        assert aggregate.question_counts[1] >= n
        assert aggregate.sum_of_scores == sum(range(n))
        assert sequences == list(range(1, n + 1))


class TestSnapshot:
    """Tests for export_snapshot and import_snapshot."""

    def test_export_fresh_store(self, session):
        """Fresh export has no submissions and zeroed stats."""
        document = export_snapshot(session)

        assert document["submissions"] == []
        assert document["stats"]["totalSubmissions"] == 0
        assert set(document["stats"]["questionCounts"].values()) == {0}

    def test_export_then_import_into_new_store(self, session, engine):
        """Exported state imports into an empty store with the same stats."""
        submit_answers(session, {"userId": "a", "score": 87, "checkedQuestions": [1, 5, 12]})
        submit_answers(session, {"userId": "b", "score": 100, "checkedQuestions": []})
        document = export_snapshot(session)

        from sqlalchemy import create_engine
        from sqlalchemy.pool import StaticPool

        from purity.db.schema import Base

        other = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(other)
        with Session(other) as other_session:
            imported = import_snapshot(other_session, document)
            stats = get_stats(other_session)

        assert imported == get_stats(session)
        assert stats.average_score == "93.50"
        assert stats.question_stats["5"] == "50.00"

    def test_import_refuses_non_empty_store(self, session):
        """Import never merges into existing history."""
        submit_answers(session, {"score": 10, "checkedQuestions": []})
        document = export_snapshot(session)

        with pytest.raises(PersistenceError):
            import_snapshot(session, document)

        assert get_stats(session).total_submissions == 1

    def test_import_rejects_malformed_document(self, session):
        """Malformed documents are corrupt state."""
        with pytest.raises(CorruptStateError):
            import_snapshot(session, {"submissions": "nope", "stats": {}})
