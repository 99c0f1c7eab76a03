"""User profile model for tracking learning progress and subscription tier."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NEVER_RESET = datetime.fromtimestamp(0)


class SubscriptionTier(StrEnum):
    """Subscription levels gating feature access."""

    FREE = "FREE"
    PREMIUM = "PREMIUM"
    PRO = "PRO"


class DifficultyLevel(StrEnum):
    """Lesson depth requested by the learner."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class _ProfileModel(BaseModel):
    # Accept the browser app's camelCase documents as well as field names
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuizScoreRecord(_ProfileModel):
    """A single graded quiz or mastery acknowledgement."""

    topic: str
    score: int = Field(ge=0, le=100)
    date: datetime
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER


class DocumentAnalysis(_ProfileModel):
    file_name: str
    analysis: str
    date: datetime = Field(default_factory=datetime.now)


class UserProfile(_ProfileModel):
    email: str
    display_name: str | None = None
    tier: SubscriptionTier = SubscriptionTier.FREE
    learning_progress: int = Field(default=0, ge=0, le=100)
    completed_topics: list[str] = Field(default_factory=list)
    quiz_scores: list[QuizScoreRecord] = Field(default_factory=list)
    weak_topics: list[str] = Field(default_factory=list)
    streak: int = 0
    last_active_date: datetime | None = None
    preferred_level: str = "High School"  # "High School" or "University"
    exam_type: str | None = None
    daily_question_count: int = 0
    last_question_reset_date: datetime = NEVER_RESET
    uploaded_documents: list[DocumentAnalysis] = Field(default_factory=list)
