"""
Shared fixtures: sample Lighthouse results, in-memory report store,
fake audit engines and text generators.
"""

from __future__ import annotations

import copy

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from plainweb.audit.store import ReportStore
from plainweb.database import init_db
from plainweb.errors import GenerationFailed


def _item(label, selector, explanation=None):
    item = {"node": {"type": "node", "nodeLabel": label, "selector": selector, "snippet": "<x>"}}
    if explanation:
        item["explanation"] = explanation
    return item


SAMPLE_LHR = {
    "lighthouseVersion": "12.0.0",
    "requestedUrl": "https://example.com/",
    "finalUrl": "https://example.com/",
    "i18n": {"rendererFormattedStrings": {"passed": "Passed"}},
    "timing": {"total": 1234},
    "categoryGroups": {"a11y-names-labels": {"title": "Names and labels"}},
    "categories": {
        "performance": {"id": "performance", "score": 0.5, "auditRefs": []},
        "accessibility": {
            "id": "accessibility",
            "title": "Accessibility",
            "description": "These checks highlight opportunities",
            "score": 0.71,
            "auditRefs": [
                {"id": "image-alt", "weight": 10},
                {"id": "document-title", "weight": 7},
                {"id": "color-contrast", "weight": 7},
                {"id": "button-name", "weight": 10},
                {"id": "html-has-lang", "weight": 7},
                {"id": "logical-tab-order", "weight": 0},
                {"id": "video-caption", "weight": 10},
                {"id": "xyz-unknown-rule", "weight": 1},
                {"id": "missing-from-audits", "weight": 1},
            ],
        },
    },
    "audits": {
        "image-alt": {
            "id": "image-alt",
            "title": "Image elements do not have [alt] attributes",
            "description": "Informative elements should aim for short, descriptive alternate text.",
            "score": 0,
            "scoreDisplayMode": "binary",
            "details": {
                "type": "table",
                "headings": [],
                "items": [_item(f"img {i}", f"body > img:nth-child({i})") for i in range(1, 8)],
            },
        },
        "document-title": {
            "id": "document-title",
            "title": "Document has a `<title>` element",
            "description": "The title gives screen reader users an overview of the page.",
            "score": 1,
            "scoreDisplayMode": "binary",
        },
        "color-contrast": {
            "id": "color-contrast",
            "title": "Background and foreground colors do not have a sufficient contrast ratio.",
            "description": "Low-contrast text is difficult or impossible for many users to read.",
            "score": 0,
            "scoreDisplayMode": "binary",
            "details": {
                "type": "table",
                "items": [
                    _item("Sign up", "a.cta", "Element has insufficient color contrast of 2.1"),
                    {"node": {"nodeLabel": "Footer", "selector": "footer p"}, "failureReason": "contrast 3.0"},
                ],
            },
        },
        "button-name": {
            "id": "button-name",
            "title": "Buttons do not have an accessible name",
            "description": "When a button doesn't have an accessible name, screen readers announce it as 'button'.",
            "score": 0,
            "scoreDisplayMode": "binary",
            "details": {"type": "table", "items": [_item("", "button.menu")]},
        },
        "html-has-lang": {
            "id": "html-has-lang",
            "title": "`<html>` element has a `[lang]` attribute",
            "score": 1,
            "scoreDisplayMode": "binary",
            "details": {"type": "table", "items": []},
        },
        "logical-tab-order": {
            "id": "logical-tab-order",
            "title": "The page has a logical tab order",
            "description": "Tabbing through the page follows the visual layout.",
            "score": None,
            "scoreDisplayMode": "manual",
        },
        "video-caption": {
            "id": "video-caption",
            "title": "`<video>` elements contain a `<track>` element with `[kind=\"captions\"]`",
            "score": None,
            "scoreDisplayMode": "notApplicable",
        },
        "xyz-unknown-rule": {
            "id": "xyz-unknown-rule",
            "title": "Some brand new rule",
            "score": 0,
            "scoreDisplayMode": "binary",
        },
        "final-screenshot": {"id": "final-screenshot", "score": None, "details": {"data": "base64..."}},
        "first-contentful-paint": {"id": "first-contentful-paint", "score": 0.9, "displayValue": "1.2 s"},
    },
}


@pytest.fixture
def lhr():
    """A fresh deep copy of the sample Lighthouse result per test."""
    return copy.deepcopy(SAMPLE_LHR)


def make_tree(checks: dict, refs=None) -> dict:
    """Minimal raw tree with an accessibility category over ``checks``."""
    refs = list(checks) if refs is None else refs
    return {
        "categories": {"accessibility": {"auditRefs": [{"id": r} for r in refs]}},
        "audits": {k: {"id": k, **v} for k, v in checks.items()},
    }


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, future=True)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return ReportStore(session_factory)


class RecordingGenerator:
    """Text generator that records prompts and answers with a canned string."""

    def __init__(self, answer="generated text"):
        self.answer = answer
        self.prompts = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer


def failing_generator(prompt: str) -> str:
    raise GenerationFailed("model unavailable")


class FakeEngine:
    """Async audit engine returning a fixed Lighthouse result."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    async def __call__(self, url: str) -> dict:
        self.calls.append(url)
        return copy.deepcopy(self.result)


@pytest.fixture
def recording_generator():
    return RecordingGenerator()


@pytest.fixture
def fake_engine(lhr):
    return FakeEngine(lhr)
