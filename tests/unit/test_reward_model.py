import pytest

from rlhf_engine.comparisons import Comparison, Preference
from rlhf_engine.features import FEATURE_NAMES
from rlhf_engine.reward_model import RewardModel

POLITE = "Claro, obrigado pela pergunta"
PLAIN = "Claro, sem problema, pergunta"


def _comparisons(n, preferred=Preference.A, a=POLITE, b=PLAIN, start=0):
    return [Comparison(f"c{start + i}", "Pode me ajudar?", a, b, preferred, start + i) for i in range(n)]


def test_empty_model_scores_bias():
    assert RewardModel().score("anything", "q") == 0.0
    assert RewardModel(bias=0.3).score("anything", "q") == pytest.approx(0.3)


def test_score_is_clamped():
    """Huge weights still produce rewards inside [0, 1]"""
    high = RewardModel(weights={name: 1e6 for name in FEATURE_NAMES})
    low = RewardModel(weights={name: -1e6 for name in FEATURE_NAMES})
    text = "Olá! Obrigado pela pergunta? 😀"
    assert high.score(text, "pergunta") == 1.0
    assert low.score(text, "pergunta") == 0.0


def test_linear_score():
    model = RewardModel(weights={"isPolite": 0.25, "hasQuestion": 0.5}, bias=0.1)
    # isPolite = 1, hasQuestion = 0.5
    assert model.score("Obrigado?", "") == pytest.approx(0.1 + 0.25 + 0.25)


def test_refit_below_threshold_is_noop():
    model = RewardModel(weights={"isPolite": 0.7})
    assert model.refit(_comparisons(9)) is None
    assert model.weights == {"isPolite": 0.7}


def test_refit_polite_preference():
    """Ten comparisons preferring 'obrigado' raise isPolite by ~1.0"""
    refit = RewardModel().refit(_comparisons(10))
    assert refit is not None
    assert refit.weights["isPolite"] == pytest.approx(1.0)
    assert set(refit.weights) == set(FEATURE_NAMES)


def test_refit_respects_preferred_side():
    refit = RewardModel().refit(_comparisons(10, preferred=Preference.B))
    assert refit.weights["isPolite"] == pytest.approx(-1.0)


def test_refit_accumulates_without_decay():
    once = RewardModel().refit(_comparisons(10))
    twice = once.refit(_comparisons(10))
    assert twice.weights["isPolite"] == pytest.approx(2.0)


def test_refit_returns_new_snapshot():
    original = RewardModel()
    refit = original.refit(_comparisons(10))
    assert refit is not original
    assert original.weights == {}


def test_refit_uses_trailing_window():
    """Only the most recent 500 comparisons contribute"""
    history = _comparisons(100, Preference.A) + _comparisons(500, Preference.B, start=100)
    refit = RewardModel().refit(history, window=500)
    assert refit.weights["isPolite"] == pytest.approx(-50.0)


def test_dict_round_trip_filters_unknown_features():
    model = RewardModel.from_dict({"weights": {"isPolite": 1, "bogus": 3}, "bias": 0.2})
    assert model.weights == {"isPolite": 1.0}
    assert model.to_dict() == {"weights": {"isPolite": 1.0}, "bias": 0.2}
