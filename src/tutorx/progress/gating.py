"""Tier-based feature gating.

Tiers are modeled as capability sets rather than an ordinal ranking:
PREMIUM and PRO currently unlock the same capabilities.
"""

from enum import StrEnum

from tutorx.models.profile import DifficultyLevel, SubscriptionTier

DAILY_QUESTION_LIMIT = 100


class Capability(StrEnum):
    ADVANCED_DIFFICULTY = "advanced_difficulty"
    EXAM_ACCESS = "exam_access"
    DOCUMENT_ANALYSIS = "document_analysis"
    UNLIMITED_CHAT = "unlimited_chat"


class Feature(StrEnum):
    """Features the presentation layer asks about."""

    INTERMEDIATE_OR_ADVANCED_DIFFICULTY = "intermediate_or_advanced_difficulty"
    EXAM_QUIZ = "exam_quiz"
    DOCUMENT_ANALYSIS = "document_analysis"
    UNLIMITED_QUESTIONS = "unlimited_questions"


_PAID_CAPABILITIES = frozenset(Capability)

TIER_CAPABILITIES: dict[SubscriptionTier, frozenset[Capability]] = {
    SubscriptionTier.FREE: frozenset(),
    SubscriptionTier.PREMIUM: _PAID_CAPABILITIES,
    SubscriptionTier.PRO: _PAID_CAPABILITIES,
}

FEATURE_CAPABILITY: dict[Feature, Capability] = {
    Feature.INTERMEDIATE_OR_ADVANCED_DIFFICULTY: Capability.ADVANCED_DIFFICULTY,
    Feature.EXAM_QUIZ: Capability.EXAM_ACCESS,
    Feature.DOCUMENT_ANALYSIS: Capability.DOCUMENT_ANALYSIS,
    Feature.UNLIMITED_QUESTIONS: Capability.UNLIMITED_CHAT,
}


def has_capability(tier: SubscriptionTier, capability: Capability) -> bool:
    return capability in TIER_CAPABILITIES[tier]


def is_feature_locked(
    tier: SubscriptionTier, feature: Feature, daily_question_count: int = 0
) -> bool:
    """Return True when the tier (and, for chat, today's count) blocks a feature.

    Without unlimited chat, questions stay available until the daily limit
    is reached.
    """
    if has_capability(tier, FEATURE_CAPABILITY[feature]):
        return False
    if feature == Feature.UNLIMITED_QUESTIONS:
        return daily_question_count >= DAILY_QUESTION_LIMIT
    return True


def is_difficulty_locked(tier: SubscriptionTier, difficulty: DifficultyLevel) -> bool:
    """Beginner lessons are open to everyone."""
    if difficulty == DifficultyLevel.BEGINNER:
        return False
    return is_feature_locked(tier, Feature.INTERMEDIATE_OR_ADVANCED_DIFFICULTY)


def questions_remaining(tier: SubscriptionTier, daily_question_count: int) -> int | None:
    """Questions left today, or None when the tier has unlimited chat."""
    if has_capability(tier, Capability.UNLIMITED_CHAT):
        return None
    return max(0, DAILY_QUESTION_LIMIT - daily_question_count)


def feature_matrix(tier: SubscriptionTier, daily_question_count: int = 0) -> dict[str, bool]:
    """Lock state of every feature, keyed by feature name."""
    return {
        feature.value: is_feature_locked(tier, feature, daily_question_count)
        for feature in Feature
    }
