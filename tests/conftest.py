"""
Pytest configuration and shared fixtures.

Registers the integration marker and provides a fake completion client so
enrichment can be exercised without a network.
"""

import pytest
from src.core.errors import CompletionError


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against real Document AI and LLM endpoints"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real cloud resources"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeCompleter:
    """Returns queued responses in order; an Exception in the queue is raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def complete(self, system, prompt, temperature, max_tokens):
        self.calls.append({"system": system, "prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if not self.responses:
            raise CompletionError("No response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_completer():
    return FakeCompleter


@pytest.fixture
def invoice_response():
    """Document AI style response with one structured and one free-text line item"""
    text = "ACME Foods\nInvoice INV-001\n3 Red Apples $2.50 $7.50\nDish Soap 4.99\nTotal 12.49"
    start = text.index("Dish Soap")
    return {
        "document": {
            "text": text,
            "pages": [{"pageAnchor": {"confidence": 0.87}}],
            "entities": [
                {"type": "supplier_name", "mentionText": "ACME Foods"},
                {"type": "invoice_id", "mentionText": "INV-001"},
                {"type": "total_amount", "mentionText": "Total 12.49", "normalizedValue": {"text": "12.49"}},
                {"type": "line_item", "mentionText": "3 Red Apples $2.50 $7.50"},
                {
                    "type": "line_item",
                    "textAnchor": {"textSegments": [{"startIndex": str(start), "endIndex": str(start + 14)}]},
                },
                {
                    "type": "line_item",
                    "mentionText": "Widget XL",
                    "properties": [
                        {"type": "line_item/description", "mentionText": "Widget XL"},
                        {"type": "line_item/amount", "mentionText": "$3.00", "normalizedValue": {"text": "3.00"}},
                    ],
                },
            ],
        }
    }
