"""
Idea import pipeline — LangGraph StateGraph.
Nodes: [llm_extract] → segment → extract → classify → assemble
The heuristic path is pure Python and never raises; llm_extract only runs
when the GEMINI provider is selected and falls through to segment on failure.
"""
import logging
from langgraph.graph import StateGraph, START, END
from contentflow.config import settings
from contentflow.models.import_session import ImportProvider
from contentflow.states.state import ImportState, ParsedIdea, ParseResult, ParseMetadata
from contentflow.tools.extraction_tools import (
    segment_text, extract_fields, extract_media_links, TITLE_FALLBACK, DESCRIPTION_FALLBACK,
)
from contentflow.tools.classification_tools import (
    BrandDirectory, ClassifierConfig, DEFAULT_CLASSIFIER, classify,
)
from contentflow.tools.llm_extraction import extract_with_llm

logger = logging.getLogger(__name__)


# ── Heuristic nodes ──────────────────────────────────────────────────────────

def node_segment(state: ImportState) -> dict:
    sections = segment_text(state["text"])
    return {"sections": sections, "provider": ImportProvider.HEURISTIC.value}


def node_extract(state: ImportState, media_hosts: list[str]) -> dict:
    return {"extracted": [extract_fields(s, media_hosts) for s in state["sections"]]}


def node_classify(state: ImportState, classifier: ClassifierConfig) -> dict:
    classified = [
        classify(f.title, f.description, f.priority_label, classifier)
        for f in state["extracted"]
    ]
    return {"classified": classified}


def node_assemble(state: ImportState, brands: BrandDirectory) -> dict:
    brand = state["brand_default"]
    channels = brands.channels_for(brand)
    items = []
    errors = list(state.get("errors", []))

    for fields, (objective, content_type, priority) in zip(state["extracted"], state["classified"]):
        try:
            items.append(ParsedIdea(
                title=fields.title,
                description=fields.description,
                brand=brand,
                objective=objective,
                content_type=content_type,
                priority=priority,
                channels=list(channels),
                hook=fields.hook,
                cta=fields.cta,
                script=fields.script,
                caption=fields.caption,
                deadline=fields.deadline,
                publish_date=fields.publish_date,
                raw_media_links=fields.raw_media_links,
            ))
        except Exception as e:
            # ParsedIdea validation only; one bad section never sinks the batch
            logger.warning("Assemble: dropped section %.40r: %s", fields.title, e)
            errors.append(f"Assemble failed for '{fields.title}': {e}")

    logger.info("Import parse: %d sections → %d items", len(state["extracted"]), len(items))
    return {"items": items, "errors": errors}


# ── Optional LLM node ────────────────────────────────────────────────────────

def node_llm_extract(
    state: ImportState,
    brands: BrandDirectory,
    classifier: ClassifierConfig,
    media_hosts: list[str],
    structured_llm,
) -> dict:
    ideas = extract_with_llm(state["text"], state["brand_default"], structured_llm)
    if not ideas:
        return {"items": []}

    items = []
    errors = list(state.get("errors", []))
    for idea in ideas:
        title = (idea.title or "").strip() or TITLE_FALLBACK
        description = (idea.description or "").strip() or DESCRIPTION_FALLBACK
        brand = (idea.brand or state["brand_default"]).strip().upper() or state["brand_default"]
        objective, content_type, priority = classify(title, description, None, classifier)
        try:
            items.append(ParsedIdea(
                title=title,
                description=description,
                brand=brand,
                objective=idea.objective or objective,
                content_type=idea.content_type or content_type,
                priority=idea.priority or priority,
                channels=brands.channels_for(brand),
                hook=idea.hook,
                cta=idea.cta,
                script=idea.script,
                caption=idea.caption,
                deadline=idea.deadline,
                publish_date=idea.publish_date,
                raw_media_links=extract_media_links("\n".join(idea.media_links), media_hosts),
            ))
        except Exception as e:
            logger.warning("LLM idea %.40r rejected: %s", title, e)
            errors.append(f"LLM idea rejected '{title}': {e}")

    if not items:
        return {"items": [], "errors": errors}
    return {"items": items, "provider": ImportProvider.GEMINI.value, "errors": errors}


def _route_start(state: ImportState) -> str:
    return "llm_extract" if state["provider"] == ImportProvider.GEMINI.value else "segment"


def _route_after_llm(state: ImportState) -> str:
    return END if state.get("items") else "segment"


def build_import_graph(
    brands: BrandDirectory,
    classifier: ClassifierConfig = DEFAULT_CLASSIFIER,
    media_hosts: list[str] | None = None,
    structured_llm=None,
):
    """Build and compile the import StateGraph with its lookup tables injected."""
    hosts = media_hosts if media_hosts is not None else settings.media_hosts
    graph = StateGraph(ImportState)

    graph.add_node("llm_extract", lambda state: node_llm_extract(state, brands, classifier, hosts, structured_llm))
    graph.add_node("segment", node_segment)
    graph.add_node("extract", lambda state: node_extract(state, hosts))
    graph.add_node("classify", lambda state: node_classify(state, classifier))
    graph.add_node("assemble", lambda state: node_assemble(state, brands))

    graph.add_conditional_edges(START, _route_start, ["llm_extract", "segment"])
    graph.add_conditional_edges("llm_extract", _route_after_llm, ["segment", END])
    graph.add_edge("segment", "extract")
    graph.add_edge("extract", "classify")
    graph.add_edge("classify", "assemble")
    graph.add_edge("assemble", END)

    return graph.compile()


def _resolve_provider(provider: str | None, structured_llm) -> str:
    requested = (provider or settings.import_provider or "").upper()
    if requested != ImportProvider.GEMINI.value:
        return ImportProvider.HEURISTIC.value
    if structured_llm is None and not settings.google_api_key:
        logger.warning("GEMINI provider requested without GOOGLE_API_KEY, using heuristic parser")
        return ImportProvider.HEURISTIC.value
    return ImportProvider.GEMINI.value


def parse_text(
    text: str,
    brand_default: str | None = None,
    brands: BrandDirectory | None = None,
    provider: str | None = None,
    classifier: ClassifierConfig = DEFAULT_CLASSIFIER,
    media_hosts: list[str] | None = None,
    structured_llm=None,
) -> ParseResult:
    """
    Free text → structured ideas. Never raises: text under the noise floor,
    garbage or a failing provider all degrade to fewer (or zero) items.
    """
    text = text or ""
    brand = (brand_default or "").strip().upper() or settings.default_brand.upper()
    graph = build_import_graph(
        brands or BrandDirectory.from_settings(),
        classifier,
        media_hosts,
        structured_llm,
    )
    initial: ImportState = {
        "text": text,
        "brand_default": brand,
        "sections": [],
        "extracted": [],
        "classified": [],
        "items": [],
        "provider": _resolve_provider(provider, structured_llm),
        "errors": [],
    }

    try:
        final = graph.invoke(initial)
        items = final.get("items", [])
        used_provider = final.get("provider", ImportProvider.HEURISTIC.value)
        for err in final.get("errors", []):
            logger.debug("Import parse: %s", err)
    except Exception as e:
        logger.error("Import graph failed: %s", e)
        items, used_provider = [], ImportProvider.HEURISTIC.value

    return ParseResult(
        items=items,
        metadata=ParseMetadata(provider=used_provider, text_length=len(text), items_detected=len(items)),
    )
