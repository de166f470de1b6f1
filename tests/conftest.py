"""Shared fixtures: sample documents and a small populated store."""

import pytest

from docintel.index.store import IndexedItem, InMemoryStore


RFP_TEXT = """Request for Proposal: Customer Feedback Platform

1. Introduction
City Hospital invites vendors to submit proposals for a patient feedback platform used by the hospital, its clinic network and all medical and healthcare staff. The evaluation criteria are listed below.

2. Technical Requirements
The platform must support single sign-on with 2FA authentication. Vendors should provide an integration API for the EHR system. Response time must stay below two seconds for all dashboards.

3. Pricing
Pricing must include all license fees for a budget of $250,000 over three years.
"""

PRICING_TEXT = (
    "Our pricing packages start at 99 euros per month. "
    "Enterprise packages include a dedicated success manager."
)


@pytest.fixture
def rfp_text() -> str:
    return RFP_TEXT


@pytest.fixture
def pricing_text() -> str:
    return PRICING_TEXT


def make_item(item_id: str, content: str, category: str | None = None) -> IndexedItem:
    return IndexedItem(item_id=item_id, content=content, category=category, metadata={"document": f"{item_id}.txt"})


@pytest.fixture
def three_docs() -> list[IndexedItem]:
    """One pricing-tagged document and two others that share some query words."""
    return [
        make_item("pricing", "Our pricing packages start at 99 euros. Enterprise packages are custom.", "pricing"),
        make_item("technical", "The API supports pricing webhooks and packages of events.", "technical"),
        make_item("company", "We are a feedback company based in Berlin.", "company"),
    ]


@pytest.fixture
def store(three_docs) -> InMemoryStore:
    s = InMemoryStore()
    s.store(three_docs)
    return s
