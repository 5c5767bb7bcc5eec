"""
Heuristic section splitting and field extraction for pasted content plans.
Pure Python, zero LLM cost — nothing in this module raises on bad input:
every field degrades to None or to a named placeholder.
"""
import re
import logging
from urllib.parse import urlparse
from contentflow.config import settings
from contentflow.states.state import ExtractedFields

logger = logging.getLogger(__name__)

TITLE_FALLBACK = "Título não identificado"
DESCRIPTION_FALLBACK = "Descrição não identificada"

MIN_SECTION_LENGTH = 20          # sections at or below this (trimmed) are noise
TITLE_MIN_LENGTH = 10            # exclusive bounds for a title candidate line
TITLE_MAX_LENGTH = 100
TITLE_MIN_CLEANED = 5
DESCRIPTION_MIN_LENGTH = 20

SECTION_SEPARATOR_RE = re.compile(
    r"\b(?:IDEIA|ITEM|OS)[ \t]*\d+[ \t]*:"   # IDEIA 1:  ITEM 2:  OS 3:
    r"|^[ \t]*---+[ \t]*$"                   # --- on its own line
    r"|\n\n\n",                              # three consecutive newlines
    re.IGNORECASE | re.MULTILINE,
)
TITLE_LABEL_RE = re.compile(r"^(?:título|titulo|title|nome|ideia|item|os)\s*:\s*", re.IGNORECASE)
BULLET_RE = re.compile(r"^\d+\.\s*")
DESCRIPTION_LABEL_RE = re.compile(r"^(?:descrição|descricao|description|desc)\s*:\s*", re.IGNORECASE)
URL_RE = re.compile(r"https?://[^\s<>\"']+")
PUBLISH_DATE_RE = re.compile(
    r"(?<!\w)(?:data\s+de\s+publica[çc][ãa]o|publish\s+date)[ \t]*:[ \t]*(.+?)(?:\n|$)",
    re.IGNORECASE,
)
DATE_TIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}$")

# Label synonyms, first match wins
HOOK_LABELS = ("gancho", "hook")
CTA_LABELS = ("cta", "call to action", "chamada")
SCRIPT_LABELS = ("roteiro", "script", "texto")
CAPTION_LABELS = ("legenda", "caption")
DEADLINE_LABELS = ("prazo", "deadline")
PRIORITY_LABELS = ("prioridade", "priority")


def segment_text(text: str) -> list[str]:
    """
    Split a raw blob into candidate idea sections, in source order.
    Sections of MIN_SECTION_LENGTH chars or fewer are dropped as noise.
    No separators → the whole text is a single section (if long enough).
    """
    if not text:
        return []
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    sections = [s.strip() for s in SECTION_SEPARATOR_RE.split(normalized)]
    kept = [s for s in sections if len(s) > MIN_SECTION_LENGTH]
    logger.debug("Segmenter: %d/%d sections kept", len(kept), len(sections))
    return kept


def _lines(section: str) -> list[str]:
    return [line.strip() for line in section.split("\n") if line.strip()]


def extract_title(lines: list[str]) -> tuple[str | None, int]:
    """Returns (title, index of the line it came from); (None, -1) when there are no lines."""
    for idx, line in enumerate(lines):
        if TITLE_MIN_LENGTH < len(line) < TITLE_MAX_LENGTH:
            title = BULLET_RE.sub("", TITLE_LABEL_RE.sub("", line)).strip()
            if len(title) > TITLE_MIN_CLEANED:
                return title, idx
    if lines:
        return lines[0], 0
    return None, -1


def extract_description(lines: list[str], title_index: int) -> str | None:
    remaining = lines[title_index + 1:]
    for line in remaining:
        if len(line) > DESCRIPTION_MIN_LENGTH:
            return DESCRIPTION_LABEL_RE.sub("", line).strip()
    joined = " ".join(remaining).strip()
    return joined or None


def extract_labeled_field(text: str, labels: tuple[str, ...]) -> str | None:
    """`label: value` up to end of line, case-insensitive. None when no synonym matches."""
    for label in labels:
        pattern = rf"(?<!\w){re.escape(label)}[ \t]*:[ \t]*(.+?)(?:\n|$)"
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return None


def extract_publish_date(text: str) -> str | None:
    match = PUBLISH_DATE_RE.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    if DATE_TIME_RE.match(value):
        return f"{value}:00"
    return value or None


def _host_allowed(url: str, hosts: list[str]) -> bool:
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return any(host == h or host.endswith("." + h) for h in hosts)


def extract_media_links(text: str, hosts: list[str] | None = None) -> list[str]:
    """URLs on known file-sharing hosts, de-duplicated in order. Everything else is dropped."""
    hosts = hosts if hosts is not None else settings.media_hosts
    links: list[str] = []
    for raw in URL_RE.findall(text):
        url = raw.rstrip(".,;:!?)]}")
        if url not in links and _host_allowed(url, hosts):
            links.append(url)
    return links


def extract_fields(section: str, media_hosts: list[str] | None = None) -> ExtractedFields:
    """Best-effort extraction of every known field from one section."""
    lines = _lines(section)
    fallbacks: list[str] = []

    title, title_index = extract_title(lines)
    if title is None:
        title = TITLE_FALLBACK
        fallbacks.append("title")

    description = extract_description(lines, title_index)
    if description is None:
        description = DESCRIPTION_FALLBACK
        fallbacks.append("description")

    if fallbacks:
        logger.debug("Extractor: fallback used for %s in section %.40r", fallbacks, section)

    return ExtractedFields(
        title=title,
        description=description,
        hook=extract_labeled_field(section, HOOK_LABELS),
        cta=extract_labeled_field(section, CTA_LABELS),
        script=extract_labeled_field(section, SCRIPT_LABELS),
        caption=extract_labeled_field(section, CAPTION_LABELS),
        deadline=extract_labeled_field(section, DEADLINE_LABELS),
        publish_date=extract_publish_date(section),
        priority_label=extract_labeled_field(section, PRIORITY_LABELS),
        raw_media_links=extract_media_links(section, media_hosts),
        fallbacks=fallbacks,
    )
