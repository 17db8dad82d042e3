"""
Marmoraria Summary Module

AI-generated text summaries of projects.
"""

from marmoraria.summary.service import (
    SUMMARY_FALLBACK,
    SUMMARY_UNAVAILABLE,
    SummaryService,
    build_prompt,
)

__all__ = [
    "SUMMARY_FALLBACK",
    "SUMMARY_UNAVAILABLE",
    "SummaryService",
    "build_prompt",
]
