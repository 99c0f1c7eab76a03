"""Tutor chat: answers learner questions within the current lesson."""

import structlog
from openai import OpenAIError

from tutorx.errors import GenerationFailed
from tutorx.models.lesson import ChatTurn, LessonContent
from tutorx.models.profile import UserProfile
from tutorx.tutoring.client import OpenAIProvider
from tutorx.tutoring.prompts import build_chat_system_prompt

logger = structlog.get_logger()

MAX_HISTORY_TURNS = 20
FALLBACK_REPLY = "I was unable to produce a response. Please try rephrasing your question."


def _to_messages(history: list[ChatTurn]) -> list[dict]:
    """Map chat turns to OpenAI roles, keeping only the most recent turns."""
    return [
        {"role": "user" if turn.role == "user" else "assistant", "content": turn.text}
        for turn in history[-MAX_HISTORY_TURNS:]
    ]


class TutorChat(OpenAIProvider):

    async def ask(
        self,
        question: str,
        lesson: LessonContent,
        history: list[ChatTurn],
        profile: UserProfile | None = None,
    ) -> str:
        model = self.model_for(profile)
        messages = [
            {"role": "system", "content": build_chat_system_prompt(lesson.topic, profile)},
            *_to_messages(history),
            {"role": "user", "content": question},
        ]
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.exception("tutor_chat_failed", topic=lesson.topic, model=model)
            raise GenerationFailed(f"Tutor chat failed: {e}") from e
        if not response.choices:
            logger.error("tutor_chat_empty", topic=lesson.topic, model=model)
            raise GenerationFailed("Tutor chat failed: AI response had no choices.")

        answer = response.choices[0].message.content
        logger.info("tutor_answered", topic=lesson.topic, history_turns=len(history))
        return answer or FALLBACK_REPLY
