"""System prompt, learning-memory context and task prompts."""

from tutorx.models.profile import DifficultyLevel, UserProfile

SYSTEM_PROMPT = """\
You are TutorX, an AI-powered educational tutor that helps students understand \
concepts clearly and step by step.

Behavior rules:
- Teach concepts clearly and patiently.
- Prefer understanding over memorization.
- Adapt explanations to the learner's level.
- Encourage critical thinking and confidence.
- Never shame, discourage, or rush the student.
- Ask clarifying questions when needed.

Academic integrity:
- Do not encourage cheating.
- Explain concepts rather than copying full exam answers.
"""

LESSON_JSON_SHAPE = """\
Respond ONLY with a JSON object:
{
    "topic": "<lesson title>",
    "lesson": "<full explanation, paragraphs separated by blank lines>",
    "summary": ["<takeaway 1>", "..."],
    "quiz": [
        {"question": "<question>", "options": ["<a>", "<b>", "<c>", "<d>"],
         "correct_answer": "<one of the options, verbatim>"}
    ],
    "next_topics": [{"topic": "<topic>", "difficulty": "Beginner|Intermediate|Advanced"}]%s
}
"""

EXAM_METADATA_SHAPE = """,
    "exam_metadata": {
        "mark_allocation": "<how marks are usually split>",
        "common_mistakes": ["<mistake>", "..."],
        "time_saving_shortcuts": ["<shortcut>", "..."],
        "alternative_methods": ["<method>", "..."],
        "examiner_mindset_tips": "<what examiners look for>"
    }"""

DOCUMENT_ANALYSIS_PROMPT = """\
You are the TutorX Document Analyzer.
Analyze the attached document and provide a highly structured, actionable breakdown.
Include:
1. Executive Summary (3-4 sentences).
2. Key Concepts & Definitions.
3. Potential Exam Questions derived from the content.
4. Practical Applications.
Keep the tone professional and academic. Use Markdown for formatting.
"""


def memory_context(profile: UserProfile | None) -> str:
    """Summarize what the tutor should remember about the learner."""
    if profile is None:
        return ""
    return (
        "\n[LEARNING MEMORY]\n"
        f"- Academic Level: {profile.preferred_level}\n"
        f"- Target Exam: {profile.exam_type or 'General Academic'}\n"
        f"- Completed Topics: {', '.join(profile.completed_topics) or 'None yet'}\n"
        f"- Weak Areas: {', '.join(profile.weak_topics) or 'None identified'}\n"
    )


def build_lesson_prompt(
    topic: str, difficulty: DifficultyLevel, profile: UserProfile | None = None
) -> str:
    exam_ready = difficulty == DifficultyLevel.ADVANCED
    parts = [
        memory_context(profile),
        f'Current Task: Deliver a personalized Masterclass on: "{topic}".',
        f"Current Depth Requirement: {difficulty.value}",
        "The \"summary\" array must be extremely concise and actionable:\n"
        "- Provide exactly 5-7 short key takeaways.\n"
        "- Use strong action verbs (e.g., \"Analyze\", \"Calculate\", \"Identify\").\n"
        "- Focus exclusively on high-yield information critical for review.\n"
        "- Avoid filler text or long introductory phrases.",
    ]
    if exam_ready:
        parts.append(
            "This is an \"Exam-Ready\" Masterclass. Include mark allocation suggestions, "
            "common mistakes, time-saving shortcuts, alternative methods, and examiner "
            "mindset tips in the exam_metadata object."
        )
    parts.append(LESSON_JSON_SHAPE % (EXAM_METADATA_SHAPE if exam_ready else ""))
    return "\n\n".join(p for p in parts if p)


def build_chat_system_prompt(lesson_topic: str, profile: UserProfile | None = None) -> str:
    return f"{SYSTEM_PROMPT}{memory_context(profile)}\n\nCurrent Lesson Context: {lesson_topic}"
