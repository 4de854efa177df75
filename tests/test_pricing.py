import pytest

from ezai.pricing import ModelPricing, PricingManager
from ezai.settings import ConfigError

PRICING_YAML = """pricing:
  gemini-2.5-flash:
    input_per_1m_tokens: 0.15
    output_per_1m_tokens: 0.60
  gpt-4o-mini:
    input_per_1m_tokens: 0.15
    output_per_1m_tokens: 0.60
  "ollama/*":
    input_per_1m_tokens: 0
    output_per_1m_tokens: 0
"""


@pytest.fixture
def manager(tmp_path):
    (tmp_path / "pricing.yaml").write_text(PRICING_YAML, encoding="utf-8")
    return PricingManager.from_dir(tmp_path)


def test_calculate_exact(manager):
    cost = manager.calculate("gemini-2.5-flash", 1000, 500)
    expected = (1000.0 / 1_000_000) * 0.15 + (500.0 / 1_000_000) * 0.60
    assert cost == pytest.approx(expected)


def test_calculate_unknown_model_is_zero(manager):
    assert manager.calculate("nonexistent-model", 1000, 500) == 0


def test_calculate_wildcard(manager):
    assert manager.calculate("ollama/llama3.1", 1000, 500) == 0


def test_prefix_match_uses_base_model(manager):
    assert manager.calculate("gpt-4o-mini-2024-07-18", 1_000_000, 0) == pytest.approx(0.15)


def test_longest_prefix_wins():
    pm = PricingManager(
        {
            "gpt-4o": ModelPricing(input_per_1m_tokens=5.0, output_per_1m_tokens=15.0),
            "gpt-4o-mini": ModelPricing(input_per_1m_tokens=0.5, output_per_1m_tokens=1.5),
        }
    )
    assert pm.calculate("gpt-4o-mini-2024", 1_000_000, 0) == pytest.approx(0.5)
    assert pm.calculate("gpt-4o-2024", 0, 1_000_000) == pytest.approx(15.0)


def test_longest_wildcard_wins():
    pm = PricingManager(
        {
            "local/*": ModelPricing(input_per_1m_tokens=1.0),
            "local/big/*": ModelPricing(input_per_1m_tokens=2.0),
        }
    )
    assert pm.calculate("local/big/model", 1_000_000, 0) == pytest.approx(2.0)
    assert pm.calculate("local/small", 1_000_000, 0) == pytest.approx(1.0)


def test_get_pricing(manager):
    assert manager.get_pricing("gpt-4o-mini").input_per_1m_tokens == pytest.approx(0.15)
    assert manager.get_pricing("gpt-4o-mini-2024") is None


def test_model_names_sorted(manager):
    assert manager.model_names() == ["gemini-2.5-flash", "gpt-4o-mini", "ollama/*"]


def test_all_pricing_is_a_copy(manager):
    table = manager.all_pricing()
    table.pop("gpt-4o-mini")
    assert "gpt-4o-mini" in manager.all_pricing()
    assert len(manager.all_pricing()) == 3


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        PricingManager.from_dir(tmp_path)


def test_bad_yaml_raises(tmp_path):
    (tmp_path / "pricing.yaml").write_text("pricing: [bad\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        PricingManager.from_dir(tmp_path)


def test_empty_table_costs_zero(tmp_path):
    (tmp_path / "pricing.yaml").write_text("", encoding="utf-8")
    pm = PricingManager.from_dir(tmp_path)
    assert pm.model_names() == []
    assert pm.calculate("anything", 10, 10) == 0