from contentflow.agents.import_agent import parse_text
from contentflow.models.taxonomy import Objective, ContentType, Priority
from contentflow.tools.classification_tools import BrandDirectory
from contentflow.tools.extraction_tools import DESCRIPTION_FALLBACK
from contentflow.tools.llm_extraction import LlmIdea, LlmIdeaBatch


class FakeStructuredLlm:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def invoke(self, messages):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


def test_scenario_single_idea_classified():
    result = parse_text("IDEIA 1:\nTítulo: Como fazer X\nDescrição: tutorial urgente sobre X")
    assert result.metadata.items_detected == 1
    item = result.items[0]
    assert item.title == "Como fazer X"
    assert item.description == "tutorial urgente sobre X"
    assert item.content_type == ContentType.EDUCATIONAL
    assert item.priority == Priority.HIGH
    assert item.objective == Objective.ATTRACTION


def test_text_without_separators_yields_exactly_one_item():
    result = parse_text("Um post sobre a importância da hidratação diária")
    assert len(result.items) == 1
    assert result.items[0].description == DESCRIPTION_FALLBACK


def test_text_under_floor_yields_zero_items():
    result = parse_text("curto demais")
    assert result.items == []
    assert result.metadata.items_detected == 0
    assert result.metadata.text_length == len("curto demais")


def test_blank_and_none_text_never_raise():
    assert parse_text("").items == []
    assert parse_text(None).items == []


def test_brand_default_and_channels_from_directory():
    brands = BrandDirectory(channels={"ACME": ["YouTube", "Blog"]}, fallback=["Instagram"])
    result = parse_text(
        "Título: Lançamento do novo produto\nDescrição: oferta especial para clientes antigos",
        brand_default="acme",
        brands=brands,
    )
    item = result.items[0]
    assert item.brand == "ACME"
    assert item.channels == ["YouTube", "Blog"]
    assert item.objective == Objective.CONVERSION


def test_configured_default_brand_applies():
    result = parse_text("Título: Bastidores da gravação\nDescrição: um dia normal no estúdio da marca")
    assert result.items[0].brand == "RAYTCHEL"
    assert result.items[0].channels == ["Instagram", "Reels", "Stories"]


def test_metadata_reports_heuristic_provider():
    text = "IDEIA 1: primeira ideia bem descrita\nIDEIA 2: segunda ideia bem descrita"
    result = parse_text(text)
    assert result.metadata.provider == "HEURISTIC"
    assert result.metadata.items_detected == 2
    dumped = result.model_dump(by_alias=True, mode="json")
    assert set(dumped["metadata"]) == {"provider", "textLength", "itemsDetected"}
    assert "rawMediaLinks" in dumped["items"][0]
    assert "type" in dumped["items"][0]


def test_priority_label_in_section_wins():
    text = "Título: Post urgente de campanha\nDescrição: peça para a campanha de inverno\nPrioridade: baixa"
    assert parse_text(text).items[0].priority == Priority.LOW


def test_gemini_provider_uses_model_ideas():
    llm = FakeStructuredLlm(LlmIdeaBatch(ideas=[
        LlmIdea(
            title="Rotina noturna",
            description="Mostrar a rotina completa antes de dormir",
            brand="zaffira",
            priority=Priority.LOW,
            media_links=["https://drive.google.com/x", "https://example.com/y"],
        ),
    ]))
    result = parse_text("texto livre qualquer com mais de vinte caracteres", provider="GEMINI", structured_llm=llm)
    assert llm.calls == 1
    assert result.metadata.provider == "GEMINI"
    item = result.items[0]
    assert item.brand == "ZAFFIRA"
    assert item.channels == ["Instagram", "TikTok"]
    assert item.priority == Priority.LOW
    # taxonomy fields left out by the model come from the classifier
    assert item.content_type == ContentType.CONVERSION
    assert item.raw_media_links == ["https://drive.google.com/x"]


def test_failing_gemini_provider_falls_back_to_heuristic():
    llm = FakeStructuredLlm(error=RuntimeError("quota exceeded"))
    result = parse_text(
        "IDEIA 1:\nTítulo: Como fazer X\nDescrição: tutorial urgente sobre X",
        provider="GEMINI",
        structured_llm=llm,
    )
    assert llm.calls == 1
    assert result.metadata.provider == "HEURISTIC"
    assert result.items[0].title == "Como fazer X"


def test_empty_gemini_answer_falls_back_to_heuristic():
    llm = FakeStructuredLlm(LlmIdeaBatch(ideas=[]))
    result = parse_text("Um post sobre a importância da hidratação diária", provider="GEMINI", structured_llm=llm)
    assert result.metadata.provider == "HEURISTIC"
    assert len(result.items) == 1


def test_gemini_without_api_key_never_calls_model():
    result = parse_text("Um post sobre a importância da hidratação diária", provider="GEMINI")
    assert result.metadata.provider == "HEURISTIC"
    assert len(result.items) == 1
