"""
Plain text extraction from rich text HTML
"""

import re
from typing import List, Tuple

from bs4 import BeautifulSoup

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def extract_text(html: str) -> Tuple[str, List[str]]:
    """
    Extract visible text and headings from an HTML fragment.

    Args:
        html: HTML string, may be empty

    Returns:
        (content, headings) where headings are unique and in document order
    """
    if not html or not html.strip():
        return "", []

    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(["script", "style"]):
        tag.decompose()

    headings: List[str] = []
    for tag in soup.find_all(HEADING_TAGS):
        heading = collapse_whitespace(tag.get_text(" "))
        if heading and heading not in headings:
            headings.append(heading)

    content = collapse_whitespace(soup.get_text(" "))
    return content, headings
