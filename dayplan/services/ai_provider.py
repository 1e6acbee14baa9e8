"""
Categorization and explanation providers.

Providers are plain objects passed to the services that need them; the API
builds one per request through ``get_ai_provider``.
"""

import logging
from typing import Optional, Sequence

import openai
from pydantic import BaseModel

from .. import config
from ..scheduling.core.constants import TaskCategory
from .categorization import categorize_with_heuristics
from .explanations import fallback_explanation, translate_summary

logger = logging.getLogger(__name__)

# USD per 1K tokens, for the usage log line
COST_PER_1K_INPUT = {
    "gpt-3.5-turbo-0125": 0.0005,
}
COST_PER_1K_OUTPUT = {
    "gpt-3.5-turbo-0125": 0.0015,
}


class CategorizeResult(BaseModel):
    label: TaskCategory
    confidence: float
    provider: str


class AIProvider:
    name = "base"

    def categorize(self, title: str, description: Optional[str] = None) -> CategorizeResult:
        raise NotImplementedError

    def explain(self, task_title: str, start: str, end: str, top_features: Sequence[str],
                locale: str = "en") -> str:
        raise NotImplementedError


class HeuristicProvider(AIProvider):
    """Rule-table categorization and templated explanations. No network."""
    name = "heuristic"

    def categorize(self, title: str, description: Optional[str] = None) -> CategorizeResult:
        match = categorize_with_heuristics(title, description)
        if match is None:
            return CategorizeResult(label=TaskCategory.OTHER, confidence=0.3, provider=self.name)
        label, confidence = match
        return CategorizeResult(label=label, confidence=confidence, provider=self.name)

    def explain(self, task_title: str, start: str, end: str, top_features: Sequence[str],
                locale: str = "en") -> str:
        return fallback_explanation(task_title, start, end, top_features, locale)


class OpenAIProvider(AIProvider):
    """Chat-completion backed provider; heuristics cover unusable replies."""
    name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: str = config.OPENAI_MODEL, client=None):
        if client is None:
            if not api_key:
                raise RuntimeError("OPENAI_API_KEY not set in environment")
            client = openai.OpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.fallback = HeuristicProvider()

    def _completion(self, prompt: str, max_tokens: int = 256, temperature: float = 0.7) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        message = response.choices[0].message.content.strip()

        usage = getattr(response, "usage", None)
        if usage is not None:
            input_cost = (usage.prompt_tokens / 1000) * COST_PER_1K_INPUT.get(self.model, 0.001)
            output_cost = (usage.completion_tokens / 1000) * COST_PER_1K_OUTPUT.get(self.model, 0.002)
            logger.info(
                f"GPT call model={self.model} prompt_tokens={usage.prompt_tokens} "
                f"completion_tokens={usage.completion_tokens} total_tokens={usage.total_tokens} "
                f"estimated_cost=${input_cost + output_cost:.6f}"
            )
        return message

    def categorize(self, title: str, description: Optional[str] = None) -> CategorizeResult:
        labels = ", ".join(category.value for category in TaskCategory)
        prompt = (
            "Classify the task into exactly one of these categories: "
            f"{labels}.\nTask: {title}\n"
            f"Details: {description or '-'}\n"
            "Answer with the category name only."
        )
        try:
            answer = self._completion(prompt, max_tokens=10, temperature=0.0).strip().strip(".").lower()
        except openai.OpenAIError as exc:
            logger.warning(f"Category request failed for '{title}', using heuristics: {exc}")
            return self.fallback.categorize(title, description)
        label = next((category for category in TaskCategory if category.value.lower() == answer), None)
        if label is None:
            logger.warning(f"Unusable category reply {answer!r} for '{title}', using heuristics")
            return self.fallback.categorize(title, description)

        confidence = 0.8
        strong = categorize_with_heuristics(title, description, strong_only=True)
        if strong is not None and strong[1] >= confidence and strong[0] != label:
            label, confidence = strong
        return CategorizeResult(label=label, confidence=confidence, provider=self.name)

    def explain(self, task_title: str, start: str, end: str, top_features: Sequence[str],
                locale: str = "en") -> str:
        language = "Russian" if locale == "ru" else "English"
        reasons = "; ".join(translate_summary(feature, locale) for feature in top_features)
        prompt = (
            f"In one friendly sentence in {language}, explain why '{task_title}' was planned "
            f"from {start} to {end}. Reasons: {reasons}."
        )
        return self._completion(prompt, max_tokens=80)


def build_ai_provider(name: Optional[str] = None) -> AIProvider:
    name = (name or config.AI_PROVIDER).lower()
    if name == "openai":
        return OpenAIProvider(api_key=config.OPENAI_API_KEY)
    return HeuristicProvider()


def get_ai_provider() -> AIProvider:
    """FastAPI dependency: a fresh provider per request."""
    return build_ai_provider()
