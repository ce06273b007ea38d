"""Client for the hosted Gemini language model.

Used by admins to draft course content and quizzes and by learners for
the study assistant.  Every public helper turns transport, HTTP and
parsing problems into :class:`~app.errors.AIServiceError` with a message
suitable for showing to the user.
"""

import json
import logging
import os
import re

import httpx
from pydantic import ValidationError

from app.errors import AIServiceError
from app.schemas import AiMessage, GeneratedCourseContent, QuizQuestionCreate

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"
)
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))

ASSISTANT_INSTRUCTION = (
    "You are a helpful and knowledgeable assistant for Zamzam Bank's e-learning "
    "platform. Your expertise is in Islamic Finance Banking (IFB). Be friendly, "
    "professional, and provide clear explanations. You must not answer questions "
    "outside the scope of Islamic finance, banking, or the provided course context."
)

COURSE_CONTENT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "description": {
            "type": "STRING",
            "description": "A comprehensive overview of the course topic.",
        },
        "modules": {
            "type": "ARRAY",
            "description": "An array of modules for the course.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "content": {"type": "STRING"},
                },
                "required": ["title", "content"],
            },
        },
    },
    "required": ["description", "modules"],
}

QUIZ_SCHEMA = {
    "type": "ARRAY",
    "description": "A list of quiz questions.",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": {"type": "STRING"},
            "options": {"type": "ARRAY", "items": {"type": "STRING"}},
            "correct_answer": {
                "type": "STRING",
                "description": "The correct answer, which must be one of the options.",
            },
        },
        "required": ["question", "options", "correct_answer"],
    },
}

TOPICS_SCHEMA = {
    "type": "ARRAY",
    "description": "A list of the top 5 discussion topics or keywords.",
    "items": {"type": "STRING"},
}


async def call_gemini(
    contents: list[dict],
    system_instruction: str | None = None,
    response_schema: dict | None = None,
) -> str:
    """Call ``generateContent`` and return the concatenated text parts."""
    if not GEMINI_API_KEY:
        raise AIServiceError("The AI service is not configured.", code="ai_not_configured")
    payload: dict = {"contents": contents}
    if system_instruction:
        payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    if response_schema:
        payload["generationConfig"] = {
            "responseMimeType": "application/json",
            "responseSchema": response_schema,
        }
    url = f"{GEMINI_API_URL}/models/{GEMINI_MODEL}:generateContent"
    async with httpx.AsyncClient(timeout=AI_TIMEOUT_SECONDS) as client:
        response = await client.post(url, params={"key": GEMINI_API_KEY}, json=payload)
        response.raise_for_status()
    data = response.json()
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = candidates[0].get("content", {}).get("parts", [])
    return "".join(part.get("text", "") for part in parts)


def parse_json_loose(text: str):
    """Parse JSON even when the model wraps it in backticks or prose."""
    s = text.strip()

    if s.startswith("```"):
        s = re.sub(r"^```(?:json)?\s*", "", s, flags=re.IGNORECASE)
        s = re.sub(r"\s*```$", "", s)

    try:
        return json.loads(s)
    except json.JSONDecodeError:
        pass

    # fall back to the outermost object or array in the text
    for opener, closer in (("{", "}"), ("[", "]")):
        start = s.find(opener)
        end = s.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(s[start : end + 1])
            except json.JSONDecodeError:
                continue
    raise ValueError("Could not parse JSON from the model response.")


def _prompt(text: str) -> list[dict]:
    return [{"role": "user", "parts": [{"text": text}]}]


async def generate_course_content(topic: str) -> GeneratedCourseContent:
    prompt = f"""Generate course content for a corporate e-learning platform. The topic is "{topic}".
The target audience is employees of Zamzam Bank, an Islamic financial institution.
The content should be professional, informative, and suitable for professional development in Islamic finance.
Provide a course description and 3 modules. Each module should have a title and detailed content.
Format the module content using simple HTML tags like <p>, <strong>, <ul>, and <li> for better readability."""
    try:
        text = await call_gemini(_prompt(prompt), response_schema=COURSE_CONTENT_SCHEMA)
        return GeneratedCourseContent.model_validate(parse_json_loose(text))
    except (httpx.HTTPError, ValueError, ValidationError) as exc:
        logger.warning("Course content generation failed: %s", exc)
        raise AIServiceError(
            "Failed to generate course content from AI. Please check your prompt and try again."
        ) from exc


async def generate_quiz(course_content: str) -> list[QuizQuestionCreate]:
    prompt = f"""Based on the following course content, generate a quiz with 3 multiple-choice questions.
Each question should have 4 options and one correct answer.
The questions should test understanding of the key concepts in the content.

Course Content:
---
{course_content}
---
"""
    try:
        text = await call_gemini(_prompt(prompt), response_schema=QUIZ_SCHEMA)
        data = parse_json_loose(text)
        if not isinstance(data, list):
            raise ValueError("Expected a list of questions")
        questions = [QuizQuestionCreate.model_validate(item) for item in data]
    except (httpx.HTTPError, ValueError, ValidationError) as exc:
        logger.warning("Quiz generation failed: %s", exc)
        raise AIServiceError(
            "Failed to generate quiz from AI. The provided content may be too short or unclear."
        ) from exc
    # keep only questions whose answer is one of their options
    return [q for q in questions if q.correct_answer in q.options]


async def chat(
    history: list[AiMessage], course_context: dict | None = None
) -> str:
    instruction = ASSISTANT_INSTRUCTION
    if course_context:
        instruction += (
            f'\n\nThe user is currently viewing the course "{course_context["title"]}". '
            f'Course description: "{course_context["description"]}". '
            "Tailor your answers to be relevant to this course if possible."
        )
    contents = [{"role": m.role, "parts": [{"text": m.text}]} for m in history]
    try:
        text = await call_gemini(contents, system_instruction=instruction)
    except httpx.HTTPError as exc:
        logger.warning("Assistant chat failed: %s", exc)
        raise AIServiceError(
            "Sorry, I'm having trouble connecting right now. Please try again later."
        ) from exc
    if not text:
        raise AIServiceError(
            "Sorry, I'm having trouble connecting right now. Please try again later."
        )
    return text


async def analyze_discussion_topics(discussion_text: str) -> list[str]:
    prompt = f"""Analyze the following discussion forum comments from a corporate e-learning course on Islamic Finance.
Identify and list up to 5 main topics, keywords, or questions that people are frequently talking about.
Ignore pleasantries, greetings, and generic comments. Focus on the core subject matter.
Return the result as a JSON array of strings. For example: ["Topic 1", "Topic 2", "Topic 3"].

Discussion Text:
---
{discussion_text}
---
"""
    try:
        text = await call_gemini(_prompt(prompt), response_schema=TOPICS_SCHEMA)
        topics = parse_json_loose(text)
        if not isinstance(topics, list):
            raise ValueError("Expected a list of topics")
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Discussion analysis failed: %s", exc)
        raise AIServiceError(
            "Failed to analyze discussion topics. The AI service may be temporarily unavailable."
        ) from exc
    return [str(t) for t in topics][:5]
