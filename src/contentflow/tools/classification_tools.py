"""
Keyword classification of parsed sections into the content taxonomy,
plus the brand → channels lookup used when assembling ideas.

Both tables are plain values handed in by the caller so tests and
deployments can swap them without touching module state.
"""
import re
import logging
import unicodedata
from dataclasses import dataclass, field
from contentflow.config import settings
from contentflow.models.taxonomy import Objective, ContentType, Priority

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierConfig:
    """Ordered keyword cascades. First block with a hit wins; keywords are pre-folded."""
    objective_rules: tuple[tuple[Objective, tuple[str, ...]], ...] = (
        (Objective.CONVERSION, ("compre", "adquira", "promocao", "desconto", "oferta", "venda")),
        (Objective.NURTURE, ("beneficio", "vantagem", "porque", "resultado", "transformacao")),
    )
    objective_default: Objective = Objective.ATTRACTION

    type_rules: tuple[tuple[ContentType, tuple[str, ...]], ...] = (
        (ContentType.EDUCATIONAL, ("como", "tutorial", "dica", "aprenda", "passo a passo")),
        (ContentType.STORY, ("historia", "experiencia", "relato", "jornada", "caso")),
    )
    type_default: ContentType = ContentType.CONVERSION

    priority_rules: tuple[tuple[Priority, tuple[str, ...]], ...] = (
        (Priority.HIGH, ("urgente", "importante", "critico", "prioritario", "alta", "high")),
        (Priority.LOW, ("opcional", "futuro", "quando possivel", "baixa", "low")),
        (Priority.MEDIUM, ("media", "medium", "normal")),
    )
    priority_default: Priority = Priority.MEDIUM


DEFAULT_CLASSIFIER = ClassifierConfig()


def fold(text: str) -> str:
    """Case- and accent-insensitive form: 'Promoção' → 'promocao'."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def _keyword_pattern(keyword: str) -> re.Pattern:
    # word start only: 'caso' hits 'casos', 'low' misses 'follow'
    words = [re.escape(w) for w in fold(keyword).split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(words))


def contains_keyword(folded_text: str, keywords: tuple[str, ...]) -> bool:
    return any(_keyword_pattern(k).search(folded_text) for k in keywords)


def _cascade(text: str, rules, default):
    folded = fold(text)
    for label, keywords in rules:
        if contains_keyword(folded, keywords):
            return label
    return default


def classify_objective(text: str, config: ClassifierConfig = DEFAULT_CLASSIFIER) -> Objective:
    return _cascade(text, config.objective_rules, config.objective_default)


def classify_type(text: str, config: ClassifierConfig = DEFAULT_CLASSIFIER) -> ContentType:
    return _cascade(text, config.type_rules, config.type_default)


def classify_priority(
    text: str,
    priority_label: str | None = None,
    config: ClassifierConfig = DEFAULT_CLASSIFIER,
) -> Priority:
    """An explicit `prioridade:` value outranks whatever the free text suggests."""
    source = priority_label if priority_label else text
    return _cascade(source, config.priority_rules, config.priority_default)


def classify(
    title: str,
    description: str,
    priority_label: str | None = None,
    config: ClassifierConfig = DEFAULT_CLASSIFIER,
) -> tuple[Objective, ContentType, Priority]:
    text = f"{title} {description}"
    return (
        classify_objective(text, config),
        classify_type(text, config),
        classify_priority(text, priority_label, config),
    )


# ── Brand directory ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BrandDirectory:
    channels: dict[str, list[str]] = field(default_factory=dict)
    fallback: list[str] = field(default_factory=lambda: ["Instagram"])

    def channels_for(self, brand: str) -> list[str]:
        found = self.channels.get((brand or "").strip().upper())
        if found is None:
            logger.debug("BrandDirectory: unknown brand %r, using fallback channels", brand)
            return list(self.fallback)
        return list(found)

    @classmethod
    def from_settings(cls) -> "BrandDirectory":
        return cls(
            channels={k.upper(): list(v) for k, v in settings.brand_channels.items()},
            fallback=list(settings.fallback_channels),
        )
