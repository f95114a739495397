"""Tool stages used by the example configuration scripts."""

from __future__ import annotations

import json
from urllib.parse import quote
from urllib.request import urlopen

SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"


def fetch_summary(topic: str) -> dict:
    """Fetch the Wikipedia summary record for a topic."""
    title = quote(topic.strip().replace(" ", "_"))
    with urlopen(SUMMARY_URL.format(title=title), timeout=10) as response:
        return json.load(response)


def extract_text(record: dict) -> str:
    return str(record.get("extract") or "No summary available.")


def first_sentence(text: str) -> str:
    head, sep, _ = text.partition(". ")
    return head + ("." if sep else "")


def add(a: float, b: float) -> float:
    return a + b


def round_two(value: float) -> float:
    return round(value, 2)
