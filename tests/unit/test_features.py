import pytest

from rlhf_engine.features import FEATURE_NAMES, extract_features, feature_array


def test_reference_example():
    """Polite exclamation with no greeting or question mark"""
    features = extract_features("Thank you, here is the answer!", "What is 2+2?")
    assert features["hasQuestion"] == 0
    assert features["isPolite"] == 1
    assert features["hasGreeting"] == 0
    assert features["sentenceCount"] == pytest.approx(0.4)
    assert features["length"] == pytest.approx(30 / 500)


def test_feature_set_is_closed():
    """Every response yields exactly the same feature names"""
    a = extract_features("", "")
    b = extract_features("Olá! Tudo bem? 😀 " * 50, "Como vai você hoje?")
    assert set(a) == set(b) == set(FEATURE_NAMES)


def test_empty_inputs_are_total():
    features = extract_features("", "")
    assert features == {
        "length": 0.0,
        "questionOverlap": 0.0,
        "hasGreeting": 0.0,
        "hasEmoji": 0.0,
        "isPolite": 0.0,
        "hasQuestion": 0.0,
        "sentenceCount": 0.0,
    }


def test_deterministic():
    args = ("Bom dia! Aqui está a resposta, obrigado.", "Qual é a resposta certa?")
    assert extract_features(*args) == extract_features(*args)


def test_length_is_capped():
    assert extract_features("x" * 1200, "q")["length"] == 1.0
    assert extract_features("x" * 250, "q")["length"] == pytest.approx(0.5)


def test_question_overlap_uses_long_lowercase_words():
    """Only words longer than three characters count, case-insensitively"""
    question = "What is machine learning about"
    response = "Machine LEARNING is great"
    # question words: what, machine, learning, about -> 2 of 4 shared
    assert extract_features(response, question)["questionOverlap"] == pytest.approx(0.5)


def test_question_overlap_with_only_short_question_words():
    assert extract_features("yes it is so", "is it ok")["questionOverlap"] == 0.0


@pytest.mark.parametrize("response,expected", [
    ("Olá, tudo bem?", 1.0),
    ("bom dia a todos", 1.0),
    ("Hello there", 1.0),
    ("history is fun", 0.0),
    ("Well, hello", 0.0),
])
def test_greeting_must_lead(response, expected):
    assert extract_features(response, "")["hasGreeting"] == expected


def test_emoji_block_only():
    assert extract_features("Great job 😀", "")["hasEmoji"] == 0.5
    assert extract_features("Sunny ☀", "")["hasEmoji"] == 0.0


def test_politeness_markers_anywhere():
    assert extract_features("Segue o arquivo, OBRIGADO", "")["isPolite"] == 1.0
    assert extract_features("Segue o arquivo", "")["isPolite"] == 0.0


def test_sentence_count_is_uncapped():
    features = extract_features("One. Two. Three. Four. Five. Six.", "")
    assert features["sentenceCount"] > 1.0
    # Runs of terminators count once
    assert extract_features("Wait... what?!", "")["sentenceCount"] == pytest.approx(
        extract_features("Wait. what?", "")["sentenceCount"]
    )


@pytest.mark.parametrize("response,question", [(None, "q"), ("r", 42), (b"bytes", "q")])
def test_non_text_inputs_fail_fast(response, question):
    with pytest.raises(TypeError):
        extract_features(response, question)


def test_feature_array_order():
    features = extract_features("Olá! Obrigado?", "")
    arr = feature_array(features)
    assert arr.shape == (len(FEATURE_NAMES),)
    assert list(arr) == [features[name] for name in FEATURE_NAMES]
