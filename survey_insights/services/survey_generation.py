# survey_insights/services/survey_generation.py
"""Drafts a survey from an owner's short description with the chat model."""
from __future__ import annotations

from openai import AsyncOpenAI, OpenAIError

from survey_insights.core.errors import QueryError
from survey_insights.core.logging import get_logger
from survey_insights.schemas.surveys import GeneratedSurvey, QuestionIn, SurveyCreateIn
from survey_insights.services.ai_analysis import get_structured_output

logger = get_logger(__name__)

GENERATION_PROMPT = """Write a customer survey from the owner's requirements.

Rules:
1. Use 5 to 10 questions.
2. question_type is one of:
   - "text": open answer
   - "rating": 1 to 5 stars
   - "single_choice": pick one option
   - "multiple_choice": pick one or more options
3. Choice questions list their options in choices_text.
4. Keep it professional and usable by a real business.

Example: for "cafe customer satisfaction" ask about visit frequency, menu,
service quality, intention to come back and willingness to recommend."""

# single and multi select are both stored as option keys
TYPE_ALIASES = {
    "text": "text",
    "rating": "rating",
    "single_choice": "multiple_choice",
    "multiple_choice": "multiple_choice",
}
DEFAULT_CHOICES = ("Option 1", "Option 2")


def normalize_survey(draft: GeneratedSurvey) -> SurveyCreateIn:
    """
    Turns the model's draft into a creatable survey: unknown types fall back
    to text, text and rating questions lose their choices, and a choice
    question without choices gets two placeholder options.
    """
    questions = []
    for order_num, q in enumerate(draft.questions, start=1):
        qtype = TYPE_ALIASES.get(q.question_type.strip().lower(), "text")
        options = None
        if qtype == "multiple_choice":
            choices = [c.strip() for c in q.choices_text or [] if c and c.strip()]
            options = {"choices_text": choices or list(DEFAULT_CHOICES)}
        questions.append(
            QuestionIn(question_text=q.question_text, question_type=qtype, options=options, order_num=order_num)
        )
    return SurveyCreateIn(title=draft.title, description=draft.description, questions=questions)


async def generate_survey(client: AsyncOpenAI, model_name: str, description: str) -> SurveyCreateIn:
    messages = [
        {"role": "system", "content": GENERATION_PROMPT},
        {"role": "user", "content": f"Create this survey: {description}"},
    ]
    try:
        draft = await get_structured_output(client, model_name, messages, GeneratedSurvey, temperature=0.7)
    except OpenAIError as e:
        logger.error("Survey generation request failed: %s", e)
        raise QueryError("Survey generation request failed", details={"cause": str(e)}) from e
    logger.info("Generated survey draft '%s' with %d questions", draft.title, len(draft.questions))
    return normalize_survey(draft)
