"""Derived learning statistics and topic recommendations."""

import re

from tutorx.models.profile import QuizScoreRecord, UserProfile

RECENT_SCORES_LIMIT = 7

DOMAIN_PATTERNS: dict[str, re.Pattern] = {
    "Tech": re.compile(r"ai|code|data|web|software|crypto|tech|engine|dev"),
    "Science": re.compile(r"bio|chem|phys|math|science|space|quantum|astro"),
    "Arts": re.compile(r"art|music|paint|jazz|history|philosophy|literature|film"),
}

RECOMMENDATION_POOLS: dict[str, list[str]] = {
    "Tech": [
        "Fullstack Web Development",
        "Neural Networks",
        "Blockchain Fundamentals",
        "Cybersecurity Strategy",
        "Cloud Architecture",
    ],
    "Science": [
        "Quantum Mechanics",
        "Molecular Biology",
        "Astrophysics",
        "Organic Chemistry",
        "Genetic Engineering",
    ],
    "Arts": [
        "Modern Philosophy",
        "Renaissance Art",
        "Music Theory",
        "Creative Writing",
        "History of Cinema",
    ],
    "Other": [
        "Psychology of Learning",
        "Public Speaking",
        "Macroeconomics",
        "Critical Thinking",
    ],
}


def classify_topic(topic: str) -> str:
    """Return the first domain whose keywords match the topic, else "Other"."""
    lower = topic.lower()
    for domain, pattern in DOMAIN_PATTERNS.items():
        if pattern.search(lower):
            return domain
    return "Other"


def average_score(profile: UserProfile) -> int:
    if not profile.quiz_scores:
        return 0
    return round(sum(s.score for s in profile.quiz_scores) / len(profile.quiz_scores))


def best_score(profile: UserProfile) -> QuizScoreRecord | None:
    """Highest score; the earliest record wins ties."""
    if not profile.quiz_scores:
        return None
    return max(profile.quiz_scores, key=lambda s: s.score)


def recent_scores(profile: UserProfile, limit: int = RECENT_SCORES_LIMIT) -> list[QuizScoreRecord]:
    return profile.quiz_scores[-limit:]


def domain_counts(profile: UserProfile) -> dict[str, int]:
    counts = {"Tech": 0, "Science": 0, "Arts": 0, "Other": 0}
    for topic in profile.completed_topics:
        counts[classify_topic(topic)] += 1
    return counts


def recommend_topics(profile: UserProfile, limit: int = 4) -> list[str]:
    """Suggest new topics from the learner's dominant domain.

    Ties resolve in favour of Tech, then Science, then Arts. Learners with no
    classified history get the general pool. Topics the learner has already
    completed are skipped.
    """
    counts = domain_counts(profile)
    dominant = max(("Tech", "Science", "Arts"), key=lambda d: counts[d])
    if counts[dominant] == 0:
        dominant = "Other"
    completed = {t.lower() for t in profile.completed_topics}
    pool = RECOMMENDATION_POOLS[dominant]
    return [t for t in pool if t.lower() not in completed][:limit]


def summarize(profile: UserProfile) -> dict:
    """Bundle every insight into one JSON-friendly dict."""
    best = best_score(profile)
    return {
        "average_score": average_score(profile),
        "best_topic": best.model_dump(mode="json") if best else None,
        "recent_scores": [s.model_dump(mode="json") for s in recent_scores(profile)],
        "domain_counts": domain_counts(profile),
        "recommendations": recommend_topics(profile),
        "completed_count": len(profile.completed_topics),
        "streak": profile.streak,
        "learning_progress": profile.learning_progress,
        "weak_topics": list(profile.weak_topics),
    }
