"""Document analysis for uploaded notes, papers and images."""

import base64

import structlog
from openai import OpenAIError

from tutorx.errors import GenerationFailed
from tutorx.models.profile import UserProfile
from tutorx.tutoring.client import OpenAIProvider
from tutorx.tutoring.prompts import DOCUMENT_ANALYSIS_PROMPT, SYSTEM_PROMPT, memory_context

logger = structlog.get_logger()

FALLBACK_ANALYSIS = "The document could not be analyzed."


def build_file_part(file_bytes: bytes, mime_type: str, file_name: str) -> dict:
    """Encode an upload as a chat content part suited to its type."""
    if mime_type.startswith("text/"):
        return {"type": "text", "text": file_bytes.decode("utf-8", errors="replace")}
    data_url = f"data:{mime_type};base64,{base64.b64encode(file_bytes).decode('ascii')}"
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_url}}
    return {"type": "file", "file": {"filename": file_name, "file_data": data_url}}


class DocumentAnalyzer(OpenAIProvider):

    async def analyze(
        self,
        file_bytes: bytes,
        mime_type: str,
        file_name: str,
        profile: UserProfile | None = None,
    ) -> str:
        model = self.model_for(profile)
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT + memory_context(profile)},
                    {
                        "role": "user",
                        "content": [
                            build_file_part(file_bytes, mime_type, file_name),
                            {"type": "text", "text": DOCUMENT_ANALYSIS_PROMPT},
                        ],
                    },
                ],
                temperature=0.4,
            )
        except OpenAIError as e:
            logger.exception("document_analysis_failed", file_name=file_name, mime_type=mime_type)
            raise GenerationFailed(f"Document analysis failed: {e}") from e
        if not response.choices:
            logger.error("document_analysis_empty", file_name=file_name, mime_type=mime_type)
            raise GenerationFailed("Document analysis failed: AI response had no choices.")

        analysis = response.choices[0].message.content
        logger.info("document_analyzed", file_name=file_name, size=len(file_bytes))
        return analysis or FALLBACK_ANALYSIS
