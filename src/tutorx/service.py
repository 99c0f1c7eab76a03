"""Tutoring service: applies profile transitions around provider calls.

Profiles are always read from the store, transformed by the pure functions
in ``tutorx.progress.state`` and written back. A failed save raises
PersistenceError and nothing is kept in memory, so the caller sees the
failure and the stored profile stays the source of truth.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog

from tutorx.auth.accounts import AccountService, normalize_email
from tutorx.billing.entitlements import EntitlementApprover
from tutorx.errors import (
    AuthFailure,
    EntitlementDenied,
    FeatureLocked,
    InvalidRequest,
    NoActiveLesson,
    QuotaExceeded,
)
from tutorx.models.lesson import ChatTurn, LessonContent
from tutorx.models.profile import DifficultyLevel, SubscriptionTier, UserProfile
from tutorx.progress import insights, state
from tutorx.progress.gating import (
    DAILY_QUESTION_LIMIT,
    Feature,
    feature_matrix,
    is_difficulty_locked,
    is_feature_locked,
    questions_remaining,
)
from tutorx.storage.profile_store import ProfileStore
from tutorx.tutoring.documents import DocumentAnalyzer
from tutorx.tutoring.lesson_generator import LessonGenerator
from tutorx.tutoring.speech import SpeechSynthesizer, split_narration
from tutorx.tutoring.tutor_chat import TutorChat

logger = structlog.get_logger()


@dataclass
class ActiveLesson:
    content: LessonContent
    difficulty: DifficultyLevel


def grade_quiz(lesson: LessonContent, answers: list[str]) -> int:
    """Percentage of quiz answers matching the correct option.

    A lesson without questions grades as 100.
    """
    if len(answers) != len(lesson.quiz):
        raise InvalidRequest(
            f"Expected {len(lesson.quiz)} answers, got {len(answers)}"
        )
    if not lesson.quiz:
        return 100
    correct = sum(
        1
        for question, answer in zip(lesson.quiz, answers)
        if answer.strip() == question.correct_answer.strip()
    )
    return round(100 * correct / len(lesson.quiz))


class TutorService:
    """Entry point for every learner-facing operation.

    Args:
        store: Profile persistence port.
        accounts: Registration and login.
        approver: Payment/entitlement approval port.
        lessons: Lesson generation provider.
        chat: Tutor chat provider.
        speech: Speech synthesis provider.
        documents: Document analysis provider.
        clock: Returns the current time.
    """

    def __init__(
        self,
        store: ProfileStore,
        accounts: AccountService,
        approver: EntitlementApprover,
        lessons: LessonGenerator,
        chat: TutorChat,
        speech: SpeechSynthesizer,
        documents: DocumentAnalyzer,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.accounts = accounts
        self.approver = approver
        self.lessons = lessons
        self.chat = chat
        self.speech = speech
        self.documents = documents
        self.clock = clock
        self._active_lessons: dict[str, ActiveLesson] = {}

    def register(
        self,
        email: str,
        password: str,
        preferred_level: str = "High School",
        exam_type: str | None = None,
        display_name: str | None = None,
    ) -> tuple[UserProfile, str]:
        profile = self.accounts.register(
            email, password, preferred_level, exam_type, display_name, now=self.clock()
        )
        return profile, self.accounts.create_access_token(profile.email)

    def login(self, email: str, password: str) -> tuple[UserProfile, str]:
        profile = self.accounts.authenticate(email, password)
        profile = self._refresh_quota(profile)
        return profile, self.accounts.create_access_token(profile.email)

    def logout(self, email: str) -> None:
        """Forget the session's active lesson. The stored profile is kept."""
        self._active_lessons.pop(normalize_email(email), None)
        logger.info("logout", email=email)

    def _load(self, email: str) -> UserProfile:
        profile = self.store.load(normalize_email(email))
        if profile is None:
            raise AuthFailure()
        return profile

    def _refresh_quota(self, profile: UserProfile) -> UserProfile:
        refreshed = state.reset_daily_quota_if_expired(profile, self.clock())
        if refreshed is not profile:
            self.store.save(refreshed)
            logger.info("daily_quota_reset", email=profile.email)
        return refreshed

    def load_profile(self, email: str) -> UserProfile:
        return self._refresh_quota(self._load(email))

    def get_insights(self, email: str) -> dict:
        return insights.summarize(self.load_profile(email))

    def get_features(self, email: str) -> dict:
        profile = self.load_profile(email)
        return {
            "tier": profile.tier.value,
            "locked": feature_matrix(profile.tier, profile.daily_question_count),
            "questions_remaining": questions_remaining(
                profile.tier, profile.daily_question_count
            ),
        }

    def active_lesson(self, email: str) -> ActiveLesson:
        active = self._active_lessons.get(normalize_email(email))
        if active is None:
            raise NoActiveLesson()
        return active

    async def start_lesson(
        self, email: str, topic: str, difficulty: DifficultyLevel
    ) -> LessonContent:
        profile = self.load_profile(email)
        if is_difficulty_locked(profile.tier, difficulty):
            raise FeatureLocked(Feature.INTERMEDIATE_OR_ADVANCED_DIFFICULTY.value)

        lesson = await self.lessons.generate(topic, difficulty, profile)
        if lesson.exam_metadata is not None and is_feature_locked(
            profile.tier, Feature.EXAM_QUIZ
        ):
            lesson = lesson.model_copy(update={"exam_metadata": None})

        self._active_lessons[profile.email] = ActiveLesson(lesson, difficulty)
        return lesson

    async def ask_question(
        self, email: str, question: str, history: list[ChatTurn]
    ) -> tuple[str, UserProfile]:
        """Answer a chat question and count it against the daily quota.

        The quota check runs before the provider is called; a failed call
        leaves the counter untouched.
        """
        profile = self.load_profile(email)
        if is_feature_locked(
            profile.tier, Feature.UNLIMITED_QUESTIONS, profile.daily_question_count
        ):
            logger.info("question_quota_exceeded", email=profile.email)
            raise QuotaExceeded(DAILY_QUESTION_LIMIT)
        active = self.active_lesson(profile.email)

        answer = await self.chat.ask(question, active.content, history, profile)

        # Re-read so a concurrent update made during the call is not lost
        updated = state.increment_question_count(self.load_profile(profile.email))
        self.store.save(updated)
        return answer, updated

    def complete_quiz(self, email: str, answers: list[str]) -> tuple[int, UserProfile]:
        profile = self.load_profile(email)
        active = self.active_lesson(profile.email)
        score = grade_quiz(active.content, answers)
        updated = state.record_activity(
            profile,
            active.content.topic,
            score,
            active.difficulty,
            is_mastery_only=False,
            now=self.clock(),
        )
        self.store.save(updated)
        logger.info("quiz_completed", email=profile.email, topic=active.content.topic, score=score)
        return score, updated

    def mark_mastery(self, email: str) -> UserProfile:
        profile = self.load_profile(email)
        active = self.active_lesson(profile.email)
        updated = state.record_activity(
            profile,
            active.content.topic,
            100,
            active.difficulty,
            is_mastery_only=True,
            now=self.clock(),
        )
        self.store.save(updated)
        logger.info("mastery_marked", email=profile.email, topic=active.content.topic)
        return updated

    async def narrate_lesson(self, email: str, voice: str | None = None) -> list[bytes]:
        """Synthesize every paragraph of the active lesson, in order.

        The first failing chunk cancels the rest and its error is raised.
        """
        self.load_profile(email)
        active = self.active_lesson(email)
        chunks = split_narration(active.content.lesson)
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self.speech.synthesize(chunk, voice)) for chunk in chunks]
        except ExceptionGroup as eg:
            logger.warning("narration_failed", email=email, errors=len(eg.exceptions))
            raise eg.exceptions[0] from eg
        return [task.result() for task in tasks]

    async def upgrade(self, email: str, target_tier: SubscriptionTier) -> UserProfile:
        profile = self.load_profile(email)
        approved = await self.approver.approve_upgrade(profile.email, target_tier)
        if not approved:
            logger.warning("upgrade_denied", email=profile.email, target_tier=target_tier.value)
            raise EntitlementDenied()

        updated = state.upgrade_tier(self.load_profile(profile.email), target_tier)
        self.store.save(updated)
        logger.info("tier_upgraded", email=profile.email, tier=target_tier.value)
        return updated

    async def analyze_document(
        self, email: str, file_bytes: bytes, mime_type: str, file_name: str
    ) -> tuple[str, UserProfile]:
        profile = self.load_profile(email)
        if is_feature_locked(profile.tier, Feature.DOCUMENT_ANALYSIS):
            raise FeatureLocked(Feature.DOCUMENT_ANALYSIS.value)

        analysis = await self.documents.analyze(file_bytes, mime_type, file_name, profile)

        updated = state.add_document_analysis(
            self.load_profile(profile.email), file_name, analysis, self.clock()
        )
        self.store.save(updated)
        return analysis, updated
