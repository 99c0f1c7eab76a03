"""Lesson content models returned by the lesson generator."""

from typing import Literal

from pydantic import BaseModel, Field


class QuizQuestion(BaseModel):
    question: str
    options: list[str]
    correct_answer: str


class NextTopic(BaseModel):
    topic: str
    difficulty: str = "Beginner"


class ExamMetadata(BaseModel):
    """Exam-ready extras requested for Advanced lessons."""

    mark_allocation: str | None = None
    common_mistakes: list[str] = Field(default_factory=list)
    time_saving_shortcuts: list[str] = Field(default_factory=list)
    alternative_methods: list[str] = Field(default_factory=list)
    examiner_mindset_tips: str | None = None


class LessonContent(BaseModel):
    """A generated lesson: explanation, takeaways, quiz and follow-ups."""

    topic: str
    lesson: str
    summary: list[str]
    quiz: list[QuizQuestion]
    next_topics: list[NextTopic]
    exam_metadata: ExamMetadata | None = None


class ChatTurn(BaseModel):
    """A single message in the tutor chat history."""

    role: Literal["user", "model"]
    text: str
