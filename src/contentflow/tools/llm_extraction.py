"""
Optional Gemini extraction provider.
One structured-output call over the whole text; the caller falls back to
the heuristic path on None. Taxonomy fields the model leaves out are filled
by the keyword classifier downstream.
"""
import logging
from typing import Optional
from pydantic import BaseModel, Field
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI
from contentflow.config import settings
from contentflow.models.taxonomy import Objective, ContentType, Priority

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 30000


# ── Structured output schema ────────────────────────────────────────────────

class LlmIdea(BaseModel):
    """One content idea found in a pasted production plan."""
    title: str = Field(description="Short title of the content piece, as written by the author")
    description: str = Field(description="One or two sentences describing the content")
    brand: Optional[str] = Field(None, description="Brand code if the text names one, e.g. RAYTCHEL")
    objective: Optional[Objective] = Field(
        None, description="ATTRACTION=reach new audience, NURTURE=build trust, CONVERSION=sell"
    )
    content_type: Optional[ContentType] = Field(
        None, description="EDUCATIONAL=teaches something, STORY=narrative or case, CONVERSION=offer"
    )
    priority: Optional[Priority] = Field(None, description="Only when the text states urgency")
    hook: Optional[str] = Field(None, description="Opening hook line (gancho)")
    cta: Optional[str] = Field(None, description="Call to action")
    script: Optional[str] = Field(None, description="Script text (roteiro)")
    caption: Optional[str] = Field(None, description="Post caption (legenda)")
    deadline: Optional[str] = Field(None, description="Deadline exactly as written (prazo)")
    publish_date: Optional[str] = Field(None, description="Publish date as YYYY-MM-DD HH:MM:SS when stated")
    media_links: list[str] = Field(default_factory=list, description="File-sharing URLs found in the idea")


class LlmIdeaBatch(BaseModel):
    """All content ideas found in the text, in source order."""
    ideas: list[LlmIdea] = Field(
        description="One entry per distinct content idea. Empty if the text has none."
    )


_PROMPT = ChatPromptTemplate.from_messages([
    ("system",
     "You split content production plans written by marketing teams into individual content ideas. "
     "Keep titles and descriptions in the original language. Do not invent fields that are not in the text. "
     "Default brand when none is named: {brand_default}."),
    ("human", "TEXT:\n{text}"),
])


def build_structured_llm():
    llm = ChatGoogleGenerativeAI(
        model=settings.import_model,
        temperature=0.0,
        google_api_key=settings.google_api_key,
    )
    return llm.with_structured_output(LlmIdeaBatch)


def extract_with_llm(text: str, brand_default: str, structured_llm=None) -> list[LlmIdea] | None:
    """
    Returns the model's ideas, or None when the call fails or finds nothing.
    `structured_llm` is anything with .invoke(messages) -> LlmIdeaBatch.
    """
    try:
        model = structured_llm or build_structured_llm()
        result: LlmIdeaBatch = model.invoke(
            _PROMPT.format_messages(brand_default=brand_default, text=text[:MAX_PROMPT_CHARS])
        )
    except Exception as e:
        logger.warning("Gemini extraction failed, falling back to heuristic: %s", e)
        return None

    if not result or not result.ideas:
        logger.info("Gemini extraction returned no ideas, falling back to heuristic")
        return None

    logger.info("Gemini extraction: %d ideas from %d chars", len(result.ideas), len(text))
    return result.ideas
