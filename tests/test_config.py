import pytest

import config
from matching import DEFAULT_WEIGHTS


def test_defaults_without_env() -> None:
    assert config.get_model_version() == "1.0.0"
    assert config.get_deadline_seconds() is None
    assert config.get_match_weights() == DEFAULT_WEIGHTS


def test_weights_from_env(monkeypatch) -> None:
    monkeypatch.setenv("MATCH_WEIGHTS", '{"academicFit": 0.4, "admission": 0.0}')

    weights = config.get_match_weights()

    assert weights.academic_fit == 0.4
    assert weights.admission == 0.0
    assert weights.location == DEFAULT_WEIGHTS.location


@pytest.mark.parametrize("raw", ["not json", "[0.3, 0.2]", '{"ranking": 0.1}'])
def test_invalid_weights_env(monkeypatch, raw) -> None:
    monkeypatch.setenv("MATCH_WEIGHTS", raw)

    with pytest.raises(ValueError):
        config.get_match_weights()


def test_deadline_env(monkeypatch) -> None:
    monkeypatch.setenv("MATCH_DEADLINE_SECONDS", "2.5")
    assert config.get_deadline_seconds() == 2.5

    monkeypatch.setenv("MATCH_DEADLINE_SECONDS", "0")
    with pytest.raises(ValueError):
        config.get_deadline_seconds()
