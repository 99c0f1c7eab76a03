"""Tests for the profile state machine transitions."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from tutorx.models.profile import DifficultyLevel, SubscriptionTier, UserProfile
from tutorx.progress import state
from tutorx.progress.gating import Feature, is_feature_locked

NOW = datetime(2026, 3, 10, 14, 0, 0)


@pytest.fixture
def profile():
    return state.new_profile("learner@example.com", NOW - timedelta(hours=1))


def _record(profile, topic="Calculus", score=80, mastery=False, now=NOW):
    return state.record_activity(
        profile, topic, score, DifficultyLevel.BEGINNER, mastery, now
    )


class TestNewProfile:
    def test_counters_zeroed(self):
        p = state.new_profile("a@b.com", NOW, preferred_level="University", exam_type="SAT")
        assert p.tier == SubscriptionTier.FREE
        assert p.learning_progress == 0
        assert p.streak == 0
        assert p.daily_question_count == 0
        assert p.completed_topics == []
        assert p.quiz_scores == []
        assert p.weak_topics == []
        assert p.last_active_date is None
        assert p.last_question_reset_date == NOW
        assert p.preferred_level == "University"
        assert p.exam_type == "SAT"

    def test_blank_exam_type_becomes_none(self):
        assert state.new_profile("a@b.com", NOW, exam_type="").exam_type is None


class TestDailyQuota:
    def test_reset_after_window(self):
        p = UserProfile(
            email="q@example.com",
            daily_question_count=42,
            last_question_reset_date=NOW - timedelta(milliseconds=86_400_001),
        )
        reset = state.reset_daily_quota_if_expired(p, NOW)
        assert reset.daily_question_count == 0
        assert reset.last_question_reset_date == NOW
        # input untouched
        assert p.daily_question_count == 42

    def test_reset_exactly_at_window_boundary(self):
        p = UserProfile(
            email="q@example.com",
            daily_question_count=5,
            last_question_reset_date=NOW - timedelta(milliseconds=86_400_000),
        )
        assert state.reset_daily_quota_if_expired(p, NOW).daily_question_count == 0

    def test_no_reset_inside_window(self):
        p = UserProfile(
            email="q@example.com",
            daily_question_count=5,
            last_question_reset_date=NOW - timedelta(hours=23, minutes=59),
        )
        assert state.reset_daily_quota_if_expired(p, NOW) is p

    def test_never_reset_profile_is_expired(self):
        p = UserProfile(email="legacy@example.com", daily_question_count=7)
        assert state.reset_daily_quota_if_expired(p, NOW).daily_question_count == 0

    @pytest.mark.parametrize("elapsed_ms", [0, 1000, 86_399_999, 86_400_000, 200_000_000])
    def test_reset_is_idempotent(self, elapsed_ms):
        p = UserProfile(
            email="q@example.com",
            daily_question_count=12,
            last_question_reset_date=NOW - timedelta(milliseconds=elapsed_ms),
        )
        once = state.reset_daily_quota_if_expired(p, NOW)
        twice = state.reset_daily_quota_if_expired(once, NOW)
        assert twice == once

    def test_aware_timestamps_compare_with_naive_now(self):
        reset_at = (NOW - timedelta(days=2)).astimezone(timezone.utc)
        p = UserProfile(email="q@example.com", daily_question_count=3,
                        last_question_reset_date=reset_at)
        assert state.reset_daily_quota_if_expired(p, NOW).daily_question_count == 0

    def test_limit_reached_after_increment(self):
        p = UserProfile(
            email="free@example.com",
            tier=SubscriptionTier.FREE,
            daily_question_count=99,
            last_question_reset_date=NOW - timedelta(milliseconds=1000),
        )
        p = state.reset_daily_quota_if_expired(p, NOW)
        assert not is_feature_locked(p.tier, Feature.UNLIMITED_QUESTIONS, p.daily_question_count)

        p = state.increment_question_count(p)
        assert p.daily_question_count == 100
        assert is_feature_locked(p.tier, Feature.UNLIMITED_QUESTIONS, p.daily_question_count)

    def test_increment_has_no_upper_bound(self):
        p = UserProfile(email="x@example.com", daily_question_count=150)
        assert state.increment_question_count(p).daily_question_count == 151


class TestStreak:
    def test_first_activity_starts_streak(self, profile):
        assert _record(profile).streak == 1

    def test_next_day_increments_then_same_day_holds(self):
        p = UserProfile(
            email="s@example.com", streak=3, last_active_date=NOW - timedelta(days=1)
        )
        p = _record(p)
        assert p.streak == 4
        p = _record(p, now=NOW + timedelta(hours=3))
        assert p.streak == 4

    def test_calendar_day_not_elapsed_time(self):
        late = datetime(2026, 3, 9, 23, 59)
        early = datetime(2026, 3, 10, 0, 1)
        p = UserProfile(email="s@example.com", streak=2, last_active_date=late)
        assert _record(p, now=early).streak == 3

    def test_same_day_zero_streak_becomes_one(self):
        p = UserProfile(email="s@example.com", streak=0,
                        last_active_date=NOW - timedelta(hours=1))
        assert _record(p).streak == 1

    def test_gap_of_several_days_still_increments(self):
        p = UserProfile(email="s@example.com", streak=5,
                        last_active_date=NOW - timedelta(days=4))
        assert _record(p).streak == 6


class TestRecordActivity:
    def test_quiz_fields(self, profile):
        p = _record(profile, topic="Calculus", score=80)
        assert p.learning_progress == 5
        assert p.completed_topics == ["Calculus"]
        assert len(p.quiz_scores) == 1
        rec = p.quiz_scores[0]
        assert rec.topic == "Calculus"
        assert rec.score == 80
        assert rec.date == NOW
        assert rec.difficulty == DifficultyLevel.BEGINNER
        assert p.last_active_date == NOW

    def test_mastery_increment(self, profile):
        assert _record(profile, score=100, mastery=True).learning_progress == 2

    def test_input_not_mutated(self, profile):
        _record(profile)
        assert profile.quiz_scores == []
        assert profile.learning_progress == 0

    def test_completed_topics_deduplicated(self, profile):
        p = _record(profile, topic="Algebra")
        p = _record(p, topic="Algebra")
        assert p.completed_topics == ["Algebra"]
        assert len(p.quiz_scores) == 2

    def test_progress_clamped(self, profile):
        p = profile
        for i in range(40):
            p = _record(p, topic=f"T{i}", mastery=i % 3 == 0)
            assert p.learning_progress <= 100
        assert p.learning_progress == 100

    def test_completed_topics_cover_quiz_topics(self, profile):
        rng = random.Random(7)
        p = profile
        for _ in range(30):
            p = _record(p, topic=rng.choice(["A", "B", "C", "D"]), score=rng.randint(0, 100))
        assert {s.topic for s in p.quiz_scores} <= set(p.completed_topics)


class TestWeakTopics:
    def test_low_score_marks_weak_then_recovery_clears(self, profile):
        p = _record(profile, topic="Calculus", score=60)
        assert p.weak_topics == ["Calculus"]
        p = _record(p, topic="Calculus", score=90)
        assert p.weak_topics == []

    def test_middle_band_keeps_membership(self, profile):
        p = _record(profile, topic="Calculus", score=60)
        p = _record(p, topic="Calculus", score=75)
        assert p.weak_topics == ["Calculus"]

    def test_middle_band_does_not_add(self, profile):
        assert _record(profile, topic="Calculus", score=84).weak_topics == []

    def test_boundaries(self, profile):
        assert _record(profile, score=69).weak_topics == ["Calculus"]
        assert _record(profile, score=70).weak_topics == []
        p = _record(profile, score=10)
        assert _record(p, score=85).weak_topics == []

    def test_no_duplicates(self, profile):
        p = _record(profile, score=10)
        p = _record(p, score=20)
        assert p.weak_topics == ["Calculus"]

    def test_other_topics_unaffected(self, profile):
        p = _record(profile, topic="Calculus", score=10)
        p = _record(p, topic="Biology", score=95)
        assert p.weak_topics == ["Calculus"]

    @pytest.mark.parametrize(
        "scores",
        [
            [60],
            [90],
            [60, 75],
            [60, 85],
            [90, 50, 80, 72],
            [50, 95, 71, 40, 88],
            [75, 80, 70],
        ],
    )
    def test_weak_iff_last_decisive_score_is_low(self, profile, scores):
        p = profile
        for score in scores:
            p = _record(p, topic="Topic", score=score)
        decisive = [s for s in scores if s < 70 or s >= 85]
        expected = bool(decisive) and decisive[-1] < 70
        assert ("Topic" in p.weak_topics) == expected

    def test_random_sequences(self, profile):
        rng = random.Random(2026)
        for _ in range(50):
            p = profile
            history: dict[str, list[int]] = {}
            for _ in range(rng.randint(1, 12)):
                topic = rng.choice(["A", "B", "C"])
                score = rng.randint(0, 100)
                history.setdefault(topic, []).append(score)
                p = _record(p, topic=topic, score=score)
            for topic, scores in history.items():
                decisive = [s for s in scores if s < 70 or s >= 85]
                expected = bool(decisive) and decisive[-1] < 70
                assert (topic in p.weak_topics) == expected


class TestOtherTransitions:
    def test_upgrade_tier(self, profile):
        upgraded = state.upgrade_tier(profile, SubscriptionTier.PRO)
        assert upgraded.tier == SubscriptionTier.PRO
        assert profile.tier == SubscriptionTier.FREE

    def test_document_analysis_most_recent_first(self, profile):
        p = state.add_document_analysis(profile, "first.pdf", "one", NOW)
        p = state.add_document_analysis(p, "second.pdf", "two", NOW + timedelta(minutes=1))
        assert [d.file_name for d in p.uploaded_documents] == ["second.pdf", "first.pdf"]
