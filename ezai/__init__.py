"""Data model, configuration, pricing, prompts, caching, encryption and access checks for an AI chat gateway."""

__version__ = "0.1.0"