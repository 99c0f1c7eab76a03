"""Lesson generation: structured lesson JSON for a topic, level and learner."""

import json

import structlog
from openai import OpenAIError

from tutorx.errors import GenerationFailed
from tutorx.models.lesson import LessonContent
from tutorx.models.profile import DifficultyLevel, UserProfile
from tutorx.tutoring.client import OpenAIProvider
from tutorx.tutoring.prompts import SYSTEM_PROMPT, build_lesson_prompt

logger = structlog.get_logger()


class LessonGenerator(OpenAIProvider):
    """Curates a lesson (explanation, summary, quiz, next topics)."""

    async def generate(
        self,
        topic: str,
        difficulty: DifficultyLevel,
        profile: UserProfile | None = None,
    ) -> LessonContent:
        """Generate a lesson.

        Args:
            topic: Free-form topic requested by the learner.
            difficulty: Requested depth; Advanced adds exam metadata.
            profile: Learner profile used for personalization and model choice.

        Returns:
            Parsed and validated LessonContent.

        Raises:
            GenerationFailed: On transport errors or empty/invalid output.
        """
        model = self.model_for(profile)
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_lesson_prompt(topic, difficulty, profile)},
                ],
                temperature=0.7,
                response_format={"type": "json_object"},
            )
            if not response.choices:
                raise ValueError("AI response had no choices.")
            text = response.choices[0].message.content
            if not text or not text.strip():
                raise ValueError("Empty AI response.")
            lesson = LessonContent.model_validate(json.loads(text.strip()))
        except (OpenAIError, ValueError) as e:
            logger.exception("lesson_generation_failed", topic=topic, model=model)
            raise GenerationFailed(f"Curation Protocol Failed: {e}") from e

        logger.info(
            "lesson_generated",
            topic=lesson.topic,
            difficulty=difficulty.value,
            model=model,
            quiz_size=len(lesson.quiz),
        )
        return lesson
