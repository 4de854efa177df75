"""Model price table and cost calculation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .settings import ConfigError, _float, _parse_yaml, _section, _str

PRICING_FILE = "pricing.yaml"

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelPricing:
    """Prices for one model, in currency units per million tokens."""

    input_per_1m_tokens: float = 0.0
    output_per_1m_tokens: float = 0.0
    currency: str = ""
    updated_at: str = ""


class PricingManager:
    """Looks up model prices and estimates request cost."""

    def __init__(self, pricing: dict[str, ModelPricing]) -> None:
        self._pricing = dict(pricing)

    @classmethod
    def from_dir(cls, config_dir: str | os.PathLike[str]) -> PricingManager:
        """Load pricing.yaml from a config directory."""
        try:
            text = (Path(config_dir) / PRICING_FILE).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"failed to read price table: {exc}") from exc
        table: dict[str, ModelPricing] = {}
        for name, entry in _section(_parse_yaml(text, "price table"), "pricing").items():
            if entry is None:
                entry = {}
            if not isinstance(entry, dict):
                raise ConfigError(f"pricing.{name} must be a mapping")
            table[str(name)] = ModelPricing(
                input_per_1m_tokens=_float(entry, "input_per_1m_tokens"),
                output_per_1m_tokens=_float(entry, "output_per_1m_tokens"),
                currency=_str(entry, "currency"),
                updated_at=_str(entry, "updated_at"),
            )
        return cls(table)

    def _lookup(self, model_name: str) -> ModelPricing | None:
        exact = self._pricing.get(model_name)
        if exact is not None:
            return exact

        # Longest name that prefixes the model, e.g. a dated model variant.
        best: ModelPricing | None = None
        best_len = 0
        for name, price in self._pricing.items():
            if model_name.startswith(name) and len(name) > best_len:
                best, best_len = price, len(name)
        if best is not None:
            return best

        # Wildcard patterns such as "ollama/*", longest prefix wins.
        best_len = 0
        for pattern, price in self._pricing.items():
            if not pattern.endswith("/*"):
                continue
            prefix = pattern[:-2]
            if model_name.startswith(prefix) and len(prefix) > best_len:
                best, best_len = price, len(prefix)
        return best

    def calculate(self, model_name: str, input_tokens: int, output_tokens: int) -> float:
        """Estimated cost in USD; 0 when the model has no price."""
        price = self._lookup(model_name)
        if price is None:
            _log.warning("no price registered for model %r, cost counted as 0", model_name)
            return 0.0
        input_cost = input_tokens / 1_000_000 * price.input_per_1m_tokens
        output_cost = output_tokens / 1_000_000 * price.output_per_1m_tokens
        return input_cost + output_cost

    def get_pricing(self, model_name: str) -> ModelPricing | None:
        """Exact price entry for a model, or None."""
        return self._pricing.get(model_name)

    def all_pricing(self) -> dict[str, ModelPricing]:
        """A copy of the whole price table."""
        return dict(self._pricing)

    def model_names(self) -> list[str]:
        """Sorted names in the price table."""
        return sorted(self._pricing)