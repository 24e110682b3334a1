"""
Deterministic keyword categorizer for invoice line items.

This is the zero-cost baseline used on every line item and the fallback
whenever AI categorization is unavailable or fails. Patterns match whole
words, with plurals listed per keyword, so "cartoon" never matches "car"
and "cares" never matches "car".
Categories are tested in a fixed priority order and the first match wins.
"""

import re


CATEGORIES = (
    "food",
    "cleaning",
    "office",
    "transportation",
    "healthcare",
    "entertainment",
    "utilities",
    "personal_care",
    "other",
)


def _keywords(*words: str) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(words) + r")\b")


# Order matters: first match wins. Plurals are spelled out per keyword.
CATEGORY_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("food", _keywords(
        "food", "bread", "milk", "eggs?", "chicken", "beef", "pork", "fish", "rice", "pasta",
        "fruits?", "vegetables?", "apples?", "bananas?", "oranges?", "tomato(?:es)?", "potato(?:es)?",
        "cheese", "butter", "yogurt", "grocery", "groceries", "meals?", "lunch(?:es)?", "dinners?",
        "breakfasts?", "coffee", "tea", "juices?", "water", "soda", "snacks?", "candy", "candies",
        "sandwich(?:es)?", "pizzas?",
    )),
    ("cleaning", _keywords(
        "clean\\w*", "detergents?", "soaps?", "bleach", "disinfect\\w*", "sanitiz\\w*",
        "paper\\s*towels?", "toilet\\s*paper", "tissues?", "sponges?", "mops?", "vacuums?", "brush(?:es)?",
        "wipes?", "trash\\s*bags?", "garbage\\s*bags?",
    )),
    ("office", _keywords(
        "pens?", "pencils?", "paper", "notebooks?", "staplers?", "staples?", "clips?", "folders?", "binders?",
        "printers?", "ink", "toners?", "cartridges?", "envelopes?", "computers?", "laptops?", "monitors?",
        "keyboards?", "desks?", "chairs?", "office",
    )),
    ("transportation", _keywords(
        "gas", "gasoline", "fuel", "diesel", "cars?", "vehicles?", "transport\\w*", "taxi", "uber",
        "lyft", "bus(?:es)?", "trains?", "parking", "tolls?", "repairs?", "maintenance", "oil", "tires?",
    )),
    ("healthcare", _keywords(
        "medical", "medicines?", "doctors?", "hospitals?", "pharmacy", "pills?", "tablets?", "health",
        "dental", "vision", "insurance", "treatments?", "prescriptions?", "vitamins?",
    )),
    ("entertainment", _keywords(
        "movies?", "cinema", "theaters?", "theatres?", "games?", "sports?", "entertainment", "music",
        "concerts?", "books?", "magazines?", "streaming", "netflix", "spotify", "tickets?",
    )),
    ("utilities", _keywords(
        "electricity", "electric", "power", "utility", "utilities", "internet", "broadband",
        "phones?", "mobile", "sewer", "heating",
    )),
    ("personal_care", _keywords(
        "shampoos?", "conditioners?", "toothpaste", "toothbrush(?:es)?", "deodorants?", "lotions?", "razors?",
        "cosmetics?", "makeup", "haircuts?", "salon", "perfumes?",
    )),
]


def categorize(text: str | None) -> str:
    """Map a free-text description to a category, or "other" when nothing matches."""
    if not text:
        return "other"

    t = text.lower()
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(t):
            return category
    return "other"
