"""Profile state machine: pure transitions over a UserProfile.

Every function returns a new profile and leaves its input untouched, so the
caller decides when (and whether) the result is persisted.

Two temporal policies coexist and are deliberately distinct:
- the daily question quota uses an elapsed 24-hour window;
- the streak uses local calendar-day equality.
"""

from datetime import datetime, timedelta

from tutorx.models.profile import (
    DifficultyLevel,
    DocumentAnalysis,
    QuizScoreRecord,
    SubscriptionTier,
    UserProfile,
)

QUOTA_WINDOW = timedelta(milliseconds=86_400_000)

QUIZ_PROGRESS_INCREMENT = 5
MASTERY_PROGRESS_INCREMENT = 2

WEAK_SCORE_THRESHOLD = 70
RECOVERED_SCORE_THRESHOLD = 85


def _as_local(value: datetime) -> datetime:
    """Normalize timestamps to naive local time for comparison."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def new_profile(
    email: str,
    now: datetime,
    preferred_level: str = "High School",
    exam_type: str | None = None,
    display_name: str | None = None,
) -> UserProfile:
    """Create a freshly registered profile with every counter zeroed."""
    return UserProfile(
        email=email,
        display_name=display_name,
        preferred_level=preferred_level,
        exam_type=exam_type or None,
        last_question_reset_date=now,
    )


def is_quota_window_expired(profile: UserProfile, now: datetime) -> bool:
    return _as_local(now) - _as_local(profile.last_question_reset_date) >= QUOTA_WINDOW


def reset_daily_quota_if_expired(profile: UserProfile, now: datetime) -> UserProfile:
    """Zero the daily question counter once 24h have elapsed since the last reset.

    Returns the same profile object when the window is still active.
    """
    if not is_quota_window_expired(profile, now):
        return profile
    return profile.model_copy(
        update={"daily_question_count": 0, "last_question_reset_date": now},
        deep=True,
    )


def increment_question_count(profile: UserProfile) -> UserProfile:
    """Count one chat question. Limits are enforced by the caller's gating check."""
    return profile.model_copy(
        update={"daily_question_count": profile.daily_question_count + 1},
        deep=True,
    )


def is_new_day(last_active: datetime | None, now: datetime) -> bool:
    if last_active is None:
        return True
    return _as_local(last_active).date() != _as_local(now).date()


def update_weak_topics(weak_topics: list[str], topic: str, score: int) -> list[str]:
    """Apply one score to the weak-topic list.

    Scores in [70, 85) leave membership unchanged: a weak topic stays weak
    until it is recovered with a score of at least 85.
    """
    updated = list(weak_topics)
    if score < WEAK_SCORE_THRESHOLD:
        if topic not in updated:
            updated.append(topic)
    elif score >= RECOVERED_SCORE_THRESHOLD:
        updated = [t for t in updated if t != topic]
    return updated


def record_activity(
    profile: UserProfile,
    lesson_topic: str,
    score: int,
    difficulty: DifficultyLevel,
    is_mastery_only: bool,
    now: datetime,
) -> UserProfile:
    """Record a completed quiz or mastery acknowledgement for a lesson."""
    if is_new_day(profile.last_active_date, now):
        streak = profile.streak + 1
    else:
        streak = profile.streak or 1

    increment = MASTERY_PROGRESS_INCREMENT if is_mastery_only else QUIZ_PROGRESS_INCREMENT
    completed = list(profile.completed_topics)
    if lesson_topic not in completed:
        completed.append(lesson_topic)

    record = QuizScoreRecord(
        topic=lesson_topic, score=score, date=now, difficulty=difficulty
    )
    return profile.model_copy(
        update={
            "learning_progress": min(100, profile.learning_progress + increment),
            "completed_topics": completed,
            "quiz_scores": [*profile.quiz_scores, record],
            "weak_topics": update_weak_topics(profile.weak_topics, lesson_topic, score),
            "streak": streak,
            "last_active_date": now,
        },
        deep=True,
    )


def upgrade_tier(profile: UserProfile, target_tier: SubscriptionTier) -> UserProfile:
    """Set the subscription tier. Approval must already have been granted."""
    return profile.model_copy(update={"tier": target_tier}, deep=True)


def add_document_analysis(
    profile: UserProfile, file_name: str, analysis: str, now: datetime
) -> UserProfile:
    """Prepend a document analysis so the list stays most-recent-first."""
    doc = DocumentAnalysis(file_name=file_name, analysis=analysis, date=now)
    return profile.model_copy(
        update={"uploaded_documents": [doc, *profile.uploaded_documents]},
        deep=True,
    )
