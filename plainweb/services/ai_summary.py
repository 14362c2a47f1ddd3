# plainweb/services/ai_summary.py
"""
Prose summaries through Gemini (generativelanguage REST API).

Every public ``generate_*`` function is best-effort: a failing or missing
text generator yields the fixed fallback string for that use-site.
"""
import logging
from typing import Callable, List, Optional

import requests

from ..errors import GenerationFailed
from ..schemas import CategorizedChecks, Narrative, ReducedCheck
from ..settings import Settings

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], str]

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/{model}:generateContent"

OWNER_SUMMARY_FALLBACK = (
    "We could not write a plain-language summary this time, but the findings below are complete. "
    "Start with the first priority listed: it affects the most visitors."
)
EXPERT_GUIDE_FALLBACK = (
    "An AI-written remediation guide is not available for this audit. "
    "The classified issues and buckets in this report list every failing rule, "
    "its WCAG reference and the affected elements."
)


class GeminiClient:
    """Callable text generator: prompt in, text out. Raises GenerationFailed."""

    def __init__(self, api_key: str, model: str = "models/gemini-1.5-flash", timeout: float = 30.0):
        self.api_key = api_key
        self.model = model if model.startswith("models/") else f"models/{model}"
        self.timeout = timeout

    def __call__(self, prompt: str) -> str:
        url = GEMINI_ENDPOINT.format(model=self.model)
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            r = requests.post(
                url,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json=body,
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationFailed(f"Gemini request failed: {e}") from e
        if not isinstance(data, dict):
            raise GenerationFailed("Gemini returned an unexpected payload")

        cand = (data.get("candidates") or [{}])[0]
        parts = (cand.get("content") or {}).get("parts") or [{}]
        txt = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not txt.strip():
            raise GenerationFailed("Gemini returned no text")
        return txt.strip()


def build_text_generator(settings: Settings) -> Optional[TextGenerator]:
    """None when no API key is configured; callers then use fallback text."""
    if not settings.generation_enabled:
        logger.warning("GEMINI_API_KEY not set; prose summaries will use fallback text.")
        return None
    return GeminiClient(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, settings.LLM_TIMEOUT)


# ============================================================
# Prompt construction
# ============================================================

def build_owner_prompt(url: str, narrative: Narrative, score: int) -> str:
    return (
        "You are an accessibility consultant writing for a small-business website owner "
        "with no technical background. Write a friendly 120-180 word summary of the audit below. "
        "Explain who is affected and why it matters for their customers. Avoid jargon, code and WCAG numbers. "
        "End with the single most important next step.\n\n"
        f"Website: {url}\n"
        f"Accessibility score: {score}/100\n"
        f"Risk level: {narrative.risk_level}\n"
        f"Findings:\n{narrative.text}\n"
    )


def _check_lines(check: ReducedCheck) -> List[str]:
    lines = [f"- [{check.id}] {check.title} (failing elements: {check.fail_count})"]
    for item in check.items:
        line = f"    node: {item.node}"
        if item.selector:
            line += f" | selector: {item.selector}"
        if item.explanation:
            line += f" | {item.explanation}"
        lines.append(line)
    return lines


def flatten_checks(categorized: CategorizedChecks) -> str:
    """Plain-text dump of failed / passed / manual checks for the developer prompt."""
    sections = [
        ("FAILED", categorized.failed, True),
        ("PASSED", categorized.passed, False),
        ("MANUAL REVIEW", categorized.manual, False),
    ]
    out: List[str] = []
    for heading, checks, with_evidence in sections:
        out.append(f"{heading} ({len(checks)}):")
        for check in checks:
            lines = _check_lines(check)
            out.extend(lines if with_evidence else lines[:1])
        out.append("")
    return "\n".join(out).strip()


def build_expert_prompt(url: str, categorized: CategorizedChecks) -> str:
    return (
        "You are a senior front-end engineer specializing in WCAG 2.1 AA. "
        "Write a technical remediation guide for the developer of the site below. "
        "Group fixes by root cause, cite the WCAG success criterion for each, show corrected markup "
        "for the listed selectors, and order the work by user impact. List the manual checks the team "
        "must still verify by hand. Use Markdown.\n\n"
        f"Website: {url}\n\n"
        f"{flatten_checks(categorized)}\n"
    )


# ============================================================
# Best-effort generation
# ============================================================

def _generate(generator: Optional[TextGenerator], prompt: str, fallback: str, label: str) -> str:
    if generator is None:
        logger.info("Text generation not configured; using %s fallback.", label)
        return fallback
    try:
        text = generator(prompt)
    except GenerationFailed as e:
        logger.warning("%s generation failed: %s", label, e)
        return fallback
    except Exception as e:
        logger.exception("Unexpected error during %s generation: %s", label, e)
        return fallback
    if not isinstance(text, str) or not text.strip():
        logger.warning("%s generation returned empty text; using fallback.", label)
        return fallback
    return text.strip()


def generate_owner_summary(generator: Optional[TextGenerator], url: str, narrative: Narrative, score: int) -> str:
    return _generate(generator, build_owner_prompt(url, narrative, score), OWNER_SUMMARY_FALLBACK, "owner summary")


def generate_expert_guide(generator: Optional[TextGenerator], url: str, categorized: CategorizedChecks) -> str:
    return _generate(generator, build_expert_prompt(url, categorized), EXPERT_GUIDE_FALLBACK, "expert guide")
