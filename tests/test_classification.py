from contentflow.models.taxonomy import Objective, ContentType, Priority
from contentflow.tools.classification_tools import (
    BrandDirectory,
    ClassifierConfig,
    classify,
    classify_objective,
    classify_priority,
    classify_type,
    fold,
)


def test_fold_strips_accents_and_case():
    assert fold("Promoção ÚNICA") == "promocao unica"


def test_objective_cascade_prefers_conversion_over_nurture():
    text = "Os benefícios do sérum com desconto especial"
    assert classify_objective(text) == Objective.CONVERSION


def test_objective_nurture_and_default():
    assert classify_objective("Resultados reais de quem usou") == Objective.NURTURE
    assert classify_objective("Bastidores do estúdio") == Objective.ATTRACTION


def test_type_cascade():
    assert classify_type("Tutorial de maquiagem rápida") == ContentType.EDUCATIONAL
    assert classify_type("A história da nossa fundadora") == ContentType.STORY
    assert classify_type("Lançamento da linha verão") == ContentType.CONVERSION


def test_keywords_match_at_word_start_only():
    assert classify_type("Casos reais de clientes") == ContentType.STORY
    assert classify_priority("Follow up com a equipe") == Priority.MEDIUM
    assert classify_type("Decasos e acasos") == ContentType.CONVERSION


def test_multi_word_keyword():
    assert classify_type("Skincare passo  a passo") == ContentType.EDUCATIONAL
    assert classify_priority("fazer quando possível") == Priority.LOW


def test_priority_label_outranks_free_text():
    assert classify_priority("conteúdo urgente", priority_label="baixa") == Priority.LOW
    assert classify_priority("conteúdo urgente") == Priority.HIGH
    assert classify_priority("nada especial") == Priority.MEDIUM


def test_classify_scenario_from_plan_text():
    objective, content_type, priority = classify("Como fazer X", "tutorial urgente sobre X")
    assert objective == Objective.ATTRACTION
    assert content_type == ContentType.EDUCATIONAL
    assert priority == Priority.HIGH


def test_custom_classifier_config():
    config = ClassifierConfig(
        type_rules=((ContentType.STORY, ("vlog",)),),
        type_default=ContentType.EDUCATIONAL,
    )
    assert classify_type("Vlog de viagem", config) == ContentType.STORY
    assert classify_type("Como fazer pão", config) == ContentType.EDUCATIONAL


def test_brand_directory_lookup_and_fallback():
    brands = BrandDirectory(channels={"ACME": ["YouTube"]}, fallback=["Blog"])
    assert brands.channels_for("acme") == ["YouTube"]
    assert brands.channels_for("OTHER") == ["Blog"]


def test_brand_directory_from_settings_has_default_brands():
    brands = BrandDirectory.from_settings()
    assert brands.channels_for("RAYTCHEL") == ["Instagram", "Reels", "Stories"]
    assert brands.channels_for("ZAFFIRA") == ["Instagram", "TikTok"]
    assert brands.channels_for("DESCONHECIDA") == ["Instagram"]
