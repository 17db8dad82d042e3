"""
AI project summaries via the Anthropic API.

Given a project, asks the model for a short assessment (financial and
logistics status plus one actionable tip). Summaries are cached per project
id for the life of the service and are not refreshed when the project
changes. Failures never raise: the caller gets a fixed fallback string.
"""

from typing import Dict, Optional

import anthropic

from marmoraria.core import get_config_value, get_logger
from marmoraria.core.output import format_currency
from marmoraria.projects.calculations import commission, completed_total, project_total
from marmoraria.projects.models import Project

logger = get_logger("marmoraria.summary")

SUMMARY_FALLBACK = "Error processing the smart analysis."
SUMMARY_UNAVAILABLE = "Analysis unavailable at the moment."

MODEL_MAP = {
    "haiku": "claude-haiku-4-5-20251001",
    "sonnet": "claude-sonnet-4-5-20250929",
    "opus": "claude-opus-4-6",
}


def build_prompt(project: Project, language: str = "Brazilian Portuguese") -> str:
    """Prompt carrying client, status and each environment's name and value."""
    environments = ", ".join(
        f"{env.name} ({format_currency(env.value)}{', completed' if env.completed else ''})"
        for env in project.environments
    ) or "none registered"

    lines = [
        "Analyze the status of this stone fabrication (countertop) project:",
        f"Client: {project.client_name}",
        f"Status: {project.status.value}",
        f"Environments: {environments}",
        f"Total: {format_currency(project_total(project))}, "
        f"completed: {format_currency(completed_total(project))}, "
        f"commission: {format_currency(commission(project))}",
    ]
    if project.deadline_date:
        lines.append(f"Deadline: {project.deadline_date}")
    lines.append("")
    lines.append(
        "Write 2 to 3 sentences covering the financial and logistics situation "
        f"and one actionable tip to improve productivity. Answer in {language}."
    )
    return "\n".join(lines)


class SummaryService:
    """Generates and caches one summary per project id."""

    def __init__(
        self,
        client: Optional[anthropic.Anthropic] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        language: Optional[str] = None,
    ):
        self._client = client
        model = model or get_config_value("summary", "model", default="haiku")
        self.model = MODEL_MAP.get(model, model)
        self.max_tokens = max_tokens or get_config_value("summary", "max_tokens", default=300)
        self.timeout = timeout or get_config_value("summary", "timeout_seconds", default=20)
        self.language = language or get_config_value(
            "summary", "language", default="Brazilian Portuguese"
        )
        self._cache: Dict[str, str] = {}
        self.pending: set = set()

    def _get_client(self) -> anthropic.Anthropic:
        if self._client is None:
            self._client = anthropic.Anthropic(timeout=self.timeout, max_retries=1)
        return self._client

    def cached(self, project_id: str) -> Optional[str]:
        """The stored summary for ``project_id``, or None if none succeeded yet."""
        return self._cache.get(project_id)

    def summarize(self, project: Project) -> str:
        """Return the cached summary or ask the model for one."""
        cached = self.cached(project.id)
        if cached is not None:
            return cached

        self.pending.add(project.id)
        try:
            response = self._get_client().messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": build_prompt(project, self.language)}],
            )
            text = "".join(
                block.text for block in response.content
                if getattr(block, "type", None) == "text"
            ).strip()
        except Exception as e:  # any SDK or network failure yields the fallback
            logger.error("Summary failed for project %s: %s", project.id, e)
            return SUMMARY_FALLBACK
        finally:
            self.pending.discard(project.id)

        if not text:
            return SUMMARY_UNAVAILABLE

        self._cache[project.id] = text
        return text
