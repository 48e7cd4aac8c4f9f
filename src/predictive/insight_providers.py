# ABOUTME: Phrases cohort insight metrics as natural-language insights and recommendations.
# ABOUTME: Offers template, OpenAI, and Anthropic providers plus a fallback wrapper.

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

import anthropic
import openai

from src.common.config import LLMSettings
from src.common.schemas import InsightMetrics
from src.common.stats import round_half_up

_LOGGER = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-3-haiku-20240307"


class InsightGenerationError(RuntimeError):
    """Raised when a provider cannot produce usable insight text."""


@dataclass(frozen=True)
class InsightText:
    insights: List[str]
    recommendations: List[str]


class TextInsightProvider(Protocol):
    def generate(self, metrics: InsightMetrics, overall_health: str) -> InsightText:
        ...


def format_insight_prompt(metrics: InsightMetrics, overall_health: str) -> str:
    """Build the fixed analytics prompt; every embedded value is computed, never user text."""
    change = round_half_up(metrics.engagement_trend)
    sign = "+" if metrics.engagement_trend > 0 else ""
    return f"""Based on these learning analytics, provide 3-4 concise insights and 2-3 recommendations:

Statistics:
- Total students: {metrics.total_members}
- Active this week: {metrics.active_students} ({round_half_up(metrics.active_student_rate):.0f}%)
- Questions this week: {metrics.questions_this_week}
- Week-over-week change: {sign}{change:.0f}%
- Average quality: {round_half_up(metrics.avg_quality, 1):.1f}/5
- Overall health: {overall_health}

Provide response as JSON:
{{
  "insights": ["insight1", "insight2", ...],
  "recommendations": ["rec1", "rec2", ...]
}}"""


def parse_insight_response(content: Optional[str]) -> InsightText:
    """Parse a JSON reply, tolerating markdown code fences around it."""
    if not content:
        raise InsightGenerationError("Empty response from LLM.")
    text = content
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    try:
        result = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise InsightGenerationError(f"LLM response is not valid JSON: {exc}") from exc
    if not isinstance(result, dict):
        raise InsightGenerationError("LLM response must be a JSON object.")

    insights = _string_list(result.get("insights"))
    recommendations = _string_list(result.get("recommendations"))
    if not insights:
        raise InsightGenerationError("LLM response has no insights.")
    return InsightText(insights=insights, recommendations=recommendations)


class TemplateInsightProvider:
    """Deterministic insights built only from the computed metrics."""

    def generate(self, metrics: InsightMetrics, overall_health: str) -> InsightText:
        insights = [
            f"{round_half_up(metrics.active_student_rate):.0f}% of students active this week",
            f"Average question quality: {round_half_up(metrics.avg_quality, 1):.1f}/5",
            f"{'Positive' if metrics.engagement_trend >= 0 else 'Negative'} engagement trend",
        ]
        recommendations = []
        if overall_health == "critical":
            recommendations.append("Consider reaching out to inactive students")
        if metrics.avg_quality < 3:
            recommendations.append("Provide question formulation guidance")
        return InsightText(insights=insights, recommendations=recommendations)


class OpenAIInsightProvider:
    def __init__(self, api_key: Optional[str], model: str = "gpt-4o-mini", temperature: float = 0.7, max_tokens: int = 400):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, metrics: InsightMetrics, overall_health: str) -> InsightText:
        if not self.api_key:
            raise InsightGenerationError("OPENAI_API_KEY not set")
        client = openai.OpenAI(api_key=self.api_key)
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": format_insight_prompt(metrics, overall_health)}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise InsightGenerationError(f"OpenAI request failed: {exc}") from exc
        choices = response.choices or []
        content = choices[0].message.content if choices else None
        return parse_insight_response(content)


class AnthropicInsightProvider:
    def __init__(self, api_key: Optional[str], model: str = DEFAULT_ANTHROPIC_MODEL, max_tokens: int = 400):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    def generate(self, metrics: InsightMetrics, overall_health: str) -> InsightText:
        if not self.api_key:
            raise InsightGenerationError("ANTHROPIC_API_KEY not set")
        client = anthropic.Anthropic(api_key=self.api_key)
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": format_insight_prompt(metrics, overall_health)}],
            )
        except anthropic.AnthropicError as exc:
            raise InsightGenerationError(f"Anthropic request failed: {exc}") from exc
        content = response.content[0].text if response.content else None
        return parse_insight_response(content)


class FallbackInsightProvider:
    """Use ``primary`` and substitute ``fallback`` text whenever it fails."""

    def __init__(self, primary: TextInsightProvider, fallback: Optional[TextInsightProvider] = None):
        self.primary = primary
        self.fallback = fallback or TemplateInsightProvider()

    def generate(self, metrics: InsightMetrics, overall_health: str) -> InsightText:
        try:
            return self.primary.generate(metrics, overall_health)
        except Exception as exc:
            _LOGGER.warning(
                "%s failed (%s); using %s",
                type(self.primary).__name__,
                exc,
                type(self.fallback).__name__,
            )
            return self.fallback.generate(metrics, overall_health)


def build_insight_provider(settings: LLMSettings) -> TextInsightProvider:
    """Template text when LLM insights are off; otherwise the configured LLM behind a fallback."""
    if not settings.enabled:
        return TemplateInsightProvider()

    if settings.provider == "anthropic":
        model = settings.model if settings.model != LLMSettings().model else DEFAULT_ANTHROPIC_MODEL
        primary: TextInsightProvider = AnthropicInsightProvider(
            api_key=settings.api_key, model=model, max_tokens=settings.max_tokens
        )
    else:
        primary = OpenAIInsightProvider(
            api_key=settings.api_key,
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    return FallbackInsightProvider(primary, TemplateInsightProvider())


def _string_list(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, str) and item.strip()]
