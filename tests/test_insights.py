"""Tests for derived progress statistics and recommendations."""

from datetime import datetime

from tutorx.models.profile import QuizScoreRecord, UserProfile
from tutorx.progress import insights


def _profile(topics=(), scores=()):
    return UserProfile(
        email="i@example.com",
        completed_topics=list(topics),
        quiz_scores=[
            QuizScoreRecord(topic=t, score=s, date=datetime(2026, 1, 1 + i))
            for i, (t, s) in enumerate(scores)
        ],
    )


class TestScores:
    def test_empty_profile(self):
        p = _profile()
        assert insights.average_score(p) == 0
        assert insights.best_score(p) is None
        assert insights.recent_scores(p) == []

    def test_average_rounded(self):
        p = _profile(scores=[("A", 70), ("B", 85), ("C", 90)])
        assert insights.average_score(p) == 82

    def test_best_score(self):
        p = _profile(scores=[("A", 70), ("B", 95), ("C", 95)])
        best = insights.best_score(p)
        assert best.topic == "B"
        assert best.score == 95

    def test_recent_scores_limit(self):
        p = _profile(scores=[(f"T{i}", i) for i in range(10)])
        recent = insights.recent_scores(p)
        assert len(recent) == 7
        assert recent[-1].topic == "T9"


class TestDomains:
    def test_classify(self):
        assert insights.classify_topic("Web Security") == "Tech"
        assert insights.classify_topic("Organic Chemistry") == "Science"
        assert insights.classify_topic("Jazz Improvisation") == "Arts"
        assert insights.classify_topic("Macroeconomics") == "Other"

    def test_domain_counts(self):
        p = _profile(topics=["Data Structures", "Astrophysics", "Music Theory", "Economics"])
        assert insights.domain_counts(p) == {"Tech": 1, "Science": 1, "Arts": 1, "Other": 1}


class TestRecommendations:
    def test_dominant_domain_pool(self):
        p = _profile(topics=["Quantum Mechanics", "Cell Biology", "Web Design"])
        recs = insights.recommend_topics(p)
        assert recs == ["Molecular Biology", "Astrophysics", "Organic Chemistry", "Genetic Engineering"]

    def test_completed_topics_excluded_case_insensitive(self):
        p = _profile(topics=["neural networks", "Software Testing"])
        recs = insights.recommend_topics(p)
        assert "Neural Networks" not in recs
        assert recs[0] == "Fullstack Web Development"

    def test_tie_prefers_tech(self):
        p = _profile(topics=["Data Science", "Art History"])
        assert insights.recommend_topics(p)[0] == "Fullstack Web Development"

    def test_no_history_uses_general_pool(self):
        assert insights.recommend_topics(_profile()) == [
            "Psychology of Learning",
            "Public Speaking",
            "Macroeconomics",
            "Critical Thinking",
        ]

    def test_summarize_is_json_friendly(self):
        p = _profile(topics=["Algebra"], scores=[("Algebra", 88)])
        summary = insights.summarize(p)
        assert summary["average_score"] == 88
        assert summary["best_topic"]["topic"] == "Algebra"
        assert summary["completed_count"] == 1
        assert isinstance(summary["recent_scores"][0]["date"], str)
