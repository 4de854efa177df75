"""Layered system prompt assembly from YAML files."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .settings import ConfigError, _parse_yaml, _section, _str

MAX_CACHE_SIZE = 256


@dataclass
class PromptConfig:
    """Contents of one prompt YAML file."""

    system_prompt: str = ""
    task_prompt: str = ""
    defaults: dict[str, Any] = field(default_factory=dict)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)


def substitute_variables(template: str, variables: Mapping[str, Any]) -> str:
    """Replace every ``{{name}}`` placeholder with the matching variable value."""
    result = template
    for key, value in variables.items():
        result = result.replace("{{" + str(key) + "}}", _format_value(value))
    return result


def _check_name(name: str) -> None:
    if ".." in name or os.path.isabs(name) or any(c in name for c in "/\\"):
        raise ValueError(f"invalid name: {name!r} (path separators not allowed)")


class PromptManager:
    """Combines base, project, model and task prompts.

    Order: base + project + model + task, where ``tasks/<task>.<provider>.yaml``
    overrides ``tasks/<task>.yaml``.
    """

    def __init__(self, prompts_dir: str | os.PathLike[str]) -> None:
        self.prompts_dir = Path(prompts_dir)
        self._lock = threading.Lock()
        self._cache: dict[str, PromptConfig] = {}

    def build(
        self,
        provider: str,
        project: str,
        task: str,
        variables: Mapping[str, Any] | None = None,
    ) -> str:
        """Assemble the system prompt and substitute variables into it."""
        for name in (project, task, provider):
            _check_name(name)

        parts: list[str] = []

        base = self._try_load("base.yaml")
        if base is not None and base.system_prompt:
            parts.append(base.system_prompt)

        if project:
            proj = self._try_load(f"projects/{project}.yaml")
            if proj is not None and proj.system_prompt:
                parts.append(proj.system_prompt)

        if provider:
            mdl = self._try_load(f"models/{provider}.yaml")
            if mdl is not None and mdl.system_prompt:
                parts.append(mdl.system_prompt)

        if task:
            task_prompt = ""
            if provider:
                override = self._try_load(f"tasks/{task}.{provider}.yaml")
                if override is not None:
                    task_prompt = override.task_prompt or override.system_prompt
            if not task_prompt:
                plain = self._try_load(f"tasks/{task}.yaml")
                if plain is not None:
                    task_prompt = plain.task_prompt or plain.system_prompt
            if task_prompt:
                parts.append(task_prompt)

        result = "\n".join(parts)
        if variables:
            result = substitute_variables(result, variables)
        return result.strip()

    def _try_load(self, relative_path: str) -> PromptConfig | None:
        try:
            return self._load(relative_path)
        except (OSError, ConfigError):
            return None

    def _load(self, relative_path: str) -> PromptConfig:
        with self._lock:
            cached = self._cache.get(relative_path)
        if cached is not None:
            return cached

        text = (self.prompts_dir / relative_path).read_text(encoding="utf-8")
        data = _parse_yaml(text, f"prompt ({relative_path})")
        cfg = PromptConfig(
            system_prompt=_str(data, "system_prompt"),
            task_prompt=_str(data, "task_prompt"),
            defaults=dict(_section(data, "defaults")),
        )

        with self._lock:
            if len(self._cache) >= MAX_CACHE_SIZE:
                for key in list(self._cache)[: len(self._cache) // 2]:
                    del self._cache[key]
            self._cache[relative_path] = cfg
        return cfg