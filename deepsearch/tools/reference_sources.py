"""Candidate URLs built from fixed reference-site templates.

The list does not depend on network reachability: every query produces the
same shape of candidates, and unreachable ones degrade to synthesized content.
"""
from __future__ import annotations

from urllib.parse import quote, quote_plus

# (label, template); {q} is the URL-encoded query, {slug} a wiki-style title.
REFERENCE_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("Wikipedia", "https://en.wikipedia.org/wiki/{slug}"),
    ("Britannica", "https://www.britannica.com/search?query={q}"),
    ("Scholarpedia", "http://www.scholarpedia.org/w/index.php?search={q}"),
    ("Stanford Encyclopedia", "https://plato.stanford.edu/search/searcher.py?query={q}"),
    ("Khan Academy", "https://www.khanacademy.org/search?page_search_query={q}"),
    ("MIT OpenCourseWare", "https://ocw.mit.edu/search/?q={q}"),
    ("Coursera", "https://www.coursera.org/search?query={q}"),
    ("edX", "https://www.edx.org/search?q={q}"),
    ("ScienceDaily", "https://www.sciencedaily.com/search/?keyword={q}"),
    ("Phys.org", "https://phys.org/search/?search={q}"),
    ("Nature", "https://www.nature.com/search?q={q}"),
    ("Science News", "https://www.sciencenews.org/?s={q}"),
    ("New Scientist", "https://www.newscientist.com/search/?q={q}"),
    ("Scientific American", "https://www.scientificamerican.com/search/?q={q}"),
    ("arXiv", "https://arxiv.org/search/?query={q}&searchtype=all"),
)


def wiki_slug(query: str) -> str:
    words = query.split()
    if not words:
        return ""
    slug = "_".join(words)
    return quote(slug[0].upper() + slug[1:], safe="_()")


def build_candidate_urls(query: str) -> list[str]:
    """Combine the query with every reference template, in fixed order."""
    encoded = quote_plus(" ".join(query.split()))
    slug = wiki_slug(query)
    return [template.format(q=encoded, slug=slug) for _, template in REFERENCE_TEMPLATES]
