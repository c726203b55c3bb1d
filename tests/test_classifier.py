import dataclasses

import pytest

from context_engine.context.classifier import Classifier
from context_engine.context.vocabulary import DEFAULT_VOCABULARY
from context_engine.models import EmotionalState, Urgency


@pytest.fixture
def classifier() -> Classifier:
    return Classifier()


def test_greeting_outranks_art_request(classifier):
    result = classifier.classify("Bom dia! Preciso de um banner vermelho pra amanhã, é urgente!")

    assert result.intent == "greeting"
    assert result.entities["colors"] == ["vermelho"]
    assert result.entities["dates"] == ["amanhã"]
    assert result.entities["products"] == ["banner"]
    assert "sizes" not in result.entities
    assert result.emotional_state == EmotionalState.URGENT
    assert result.urgency == Urgency.HIGH


@pytest.mark.parametrize(
    "text,intent",
    [
        ("Quero um layout novo", "art_request"),
        ("Vamos fazer uma campanha de marketing", "promotion_request"),
        ("Deu problema no arquivo", "complaint"),
        ("Valeu demais", "thank_you"),
        ("Tchau, pessoal", "goodbye"),
        ("Quanto custa?", "question"),
        ("Beleza", "general"),
    ],
)
def test_intent_rules(classifier, text, intent):
    assert classifier.detect_intent(text) == intent


def test_first_matching_rule_wins(classifier):
    # art_request keyword and a question mark: art_request is earlier in the list
    assert classifier.detect_intent("Pode fazer uma arte?") == "art_request"
    # complaint before thank_you
    assert classifier.detect_intent("Obrigado, mas deu erro") == "complaint"


def test_intent_is_case_insensitive(classifier):
    assert classifier.detect_intent("BOA NOITE") == "greeting"


def test_emotional_state_priority(classifier):
    assert classifier.analyze_emotional_state("Adorei, mas preciso hoje") == EmotionalState.URGENT
    assert classifier.analyze_emotional_state("Ficou ótimo, sem problema") == EmotionalState.POSITIVE
    assert classifier.analyze_emotional_state("Ficou ruim 😡") == EmotionalState.NEGATIVE
    assert classifier.analyze_emotional_state("Ok") == EmotionalState.NEUTRAL


def test_emotional_state_from_emoji_only(classifier):
    assert classifier.analyze_emotional_state("👍") == EmotionalState.POSITIVE
    assert classifier.analyze_emotional_state("🚨🚨") == EmotionalState.URGENT


def test_urgency_levels(classifier):
    assert classifier.detect_urgency("Preciso disso agora") == Urgency.HIGH
    assert classifier.detect_urgency("Pode ser para a próxima semana") == Urgency.MEDIUM
    assert classifier.detect_urgency("Quando der") == Urgency.NORMAL
    # high wins over medium
    assert classifier.detect_urgency("Hoje ou amanhã") == Urgency.HIGH


def test_extract_dates_and_sizes(classifier):
    entities = classifier.extract_entities("Entrega 15/11 ou 20-11, tamanho 1080x1080 e 30 cm ou 500px")
    assert entities["dates"] == ["15/11", "20-11"]
    assert entities["sizes"] == ["1080x1080", "30 cm", "500px"]


def test_extract_entities_empty(classifier):
    assert classifier.extract_entities("Tudo certo por aí") == {}


def test_extract_multiple_colors_and_products(classifier):
    entities = classifier.extract_entities("Logo azul e flyer amarelo com fundo preto")
    assert entities["colors"] == ["azul", "amarelo", "preto"]
    assert entities["products"] == ["logo", "flyer"]


@pytest.mark.parametrize(
    "text,name",
    [
        ("Oi, me chamo Carla", "Carla"),
        ("Meu nome é Roberto e tenho uma loja", "Roberto"),
        ("Sou o Marcos, da padaria", "Marcos"),
        ("Hi, my name is Anna", "Anna"),
        ("I am Peter", "Peter"),
    ],
)
def test_name_hint(classifier, text, name):
    assert classifier.extract_name_hint(text) == name


def test_name_hint_ignores_lowercase_sou(classifier):
    assert classifier.extract_name_hint("sou dono de uma loja") is None


def test_business_type_hint(classifier):
    assert classifier.extract_business_type_hint("Tenho um restaurante no centro") == "restaurante"
    assert classifier.extract_business_type_hint("Trabalho em casa") is None


def test_classify_sets_hints(classifier):
    result = classifier.classify("Me chamo Júlia e tenho um consultório")
    assert result.client_name_hint == "Júlia"
    assert result.business_type_hint == "consultório"


def test_intent_changed_flag(classifier):
    assert classifier.classify("Quero um banner", prior_intent="greeting").intent_changed is True
    assert classifier.classify("Quero um banner", prior_intent="art_request").intent_changed is False
    assert classifier.classify("Quero um banner").intent_changed is False


def test_classification_is_deterministic(classifier):
    text = "Bom dia! Preciso de um logo azul 😊"
    assert classifier.classify(text) == classifier.classify(text)


def test_custom_vocabulary():
    vocab = dataclasses.replace(
        DEFAULT_VOCABULARY,
        intent_rules=(("greeting", ("hello",)),),
        colors=("blue",),
    )
    classifier = Classifier(vocab)
    result = classifier.classify("hello, I want something blue")
    assert result.intent == "greeting"
    assert result.colors == ["blue"]
    # the default tables are untouched
    assert Classifier().detect_intent("hello") == "general"


def test_vocabulary_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_VOCABULARY.colors = ("blue",)  # type: ignore[misc]
    with pytest.raises(TypeError):
        DEFAULT_VOCABULARY.topic_labels["greeting"] = "Hi"  # type: ignore[index]
