"""Turn a URL into a ``(title, body)`` pair, scraping when possible.

When the page cannot be fetched in time, answers with an error status, or
carries too little text, the body is synthesized from the topic inferred from
the URL itself. The fallback is a pure function of the URL, so repeated calls
for the same unreachable page return identical content.
"""
from __future__ import annotations

import asyncio
import hashlib
import re
from dataclasses import dataclass
from urllib.parse import parse_qs, unquote, urlparse

import httpx
from bs4 import BeautifulSoup
from loguru import logger

from deepsearch.config import settings
from deepsearch.tools.reference_sources import wiki_slug
from deepsearch.tools.web_utils import collapse_whitespace, extract_domain, is_valid_url, truncate

STRIPPED_TAGS = ("script", "style", "noscript", "template", "svg", "nav", "header", "footer")

ASPECT_LABELS = ("Overview", "Applications", "Research", "Principles", "Technology")

_QUERY_PARAMS = ("q", "query", "search", "keyword", "page_search_query", "s", "p", "term")
_GENERIC_SEGMENTS = {"search", "wiki", "index", "w", "a", "searcher", "results", "en"}
_PAGE_SUFFIX = re.compile(r"\.(html?|php|aspx?|py|jsp)$", re.IGNORECASE)

# Matched by substring against the inferred topic, first hit wins.
TOPIC_SUMMARIES: tuple[tuple[str, str], ...] = (
    (
        "energy",
        "{topic} concerns how energy is produced, stored, converted and used. Central themes "
        "include renewable sources such as solar, wind and hydro power, efficiency gains, grid "
        "integration and storage, and the economic and environmental trade-offs between "
        "competing energy systems.",
    ),
    (
        "climate",
        "{topic} is studied through observations, climate models and impact assessments. "
        "Sources typically cover greenhouse gas emissions, temperature and precipitation "
        "trends, effects on ecosystems and societies, and the mitigation and adaptation "
        "policies being debated.",
    ),
    (
        "physics",
        "{topic} belongs to physics, which explains matter, energy, space and time through "
        "mathematical laws tested by experiment. References usually introduce the governing "
        "principles, the key experiments behind them, and how the theory is applied in "
        "engineering and other sciences.",
    ),
    (
        "chemistry",
        "{topic} draws on chemistry: the composition, structure and reactions of substances. "
        "Typical material explains bonding and reaction mechanisms, laboratory and industrial "
        "methods, and applications in materials, medicine and the environment.",
    ),
    (
        "biology",
        "{topic} is part of the life sciences, which study living organisms from molecules and "
        "cells to populations and ecosystems. Sources discuss structure and function, evolution, "
        "experimental methods, and applications in medicine and agriculture.",
    ),
    (
        "medic",
        "{topic} is addressed in medical literature that covers causes and mechanisms, "
        "diagnosis, treatment options and their evidence base, and public-health implications. "
        "Clinical guidelines and peer-reviewed studies are the most reliable references.",
    ),
    (
        "health",
        "{topic} is discussed across public-health and clinical sources, which look at risk "
        "factors, prevention, treatment outcomes and access to care, usually drawing on "
        "population studies and controlled trials.",
    ),
    (
        "econom",
        "{topic} is analysed in economics through models of incentives, markets and policy. "
        "References cover the underlying theory, empirical evidence on costs and benefits, "
        "and the distributional effects that shape public debate.",
    ),
    (
        "comput",
        "{topic} relates to computing, where algorithms, hardware and software systems are "
        "designed to process information. Sources explain the core ideas and their "
        "limitations, practical implementations, and the research directions that are "
        "currently most active.",
    ),
    (
        "science",
        "{topic} is examined using the scientific method: forming hypotheses, gathering data and "
        "testing predictions. Encyclopedic and educational references summarise the established "
        "findings, while science news outlets report on recent results and open questions.",
    ),
    (
        "technology",
        "{topic} covers the design and application of tools and systems that solve practical "
        "problems. References describe how the technology works, where it is deployed, its "
        "benefits and risks, and the developments expected next.",
    ),
)

GENERIC_SUMMARY = (
    "{topic} is covered by encyclopedic, educational and scientific references. Introductory "
    "sources explain its core concepts and history, while more specialised material discusses "
    "current research, practical applications and open questions. Comparing several of these "
    "perspectives gives a balanced picture of {topic}."
)

ASPECT_SUMMARIES: dict[str, str] = {
    "Overview": (
        "An overview of {topic}: what it is, where the idea comes from, and the core concepts "
        "needed to follow more detailed discussions of the subject."
    ),
    "Applications": (
        "Practical applications of {topic}, including where it is used today, the problems it "
        "helps solve, and the constraints that limit wider adoption."
    ),
    "Research": (
        "Current research on {topic}: active questions, recent results reported by academic and "
        "science-news sources, and the methods researchers rely on."
    ),
    "Principles": (
        "The underlying principles of {topic}, the assumptions they rest on, and how they connect "
        "to neighbouring fields of study."
    ),
    "Technology": (
        "Technology associated with {topic}: the tools, systems and techniques that put it into "
        "practice, and how they are expected to evolve."
    ),
}


@dataclass(frozen=True, slots=True)
class SynthesizedContent:
    title: str
    body: str
    synthetic: bool


def _display(topic: str) -> str:
    return topic[:1].upper() + topic[1:]


def _path_topic(path: str) -> str:
    for segment in reversed([s for s in path.split("/") if s]):
        text = _PAGE_SUFFIX.sub("", unquote(segment))
        text = collapse_whitespace(re.sub(r"[_\-+]+", " ", text))
        if text and text.lower() not in _GENERIC_SEGMENTS:
            return text
    return ""


def infer_topic(url: str) -> str:
    """Best guess at what a URL is about: search parameters, then path, then host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "this topic"

    params = parse_qs(parsed.query)
    for key in _QUERY_PARAMS:
        for value in params.get(key, []):
            if value.strip():
                return collapse_whitespace(value)

    return _path_topic(parsed.path) or extract_domain(url) or "this topic"


def title_from_url(url: str) -> str:
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    path_title = _path_topic(parsed.path)
    if path_title:
        return _display(path_title)
    return extract_domain(url) or url


def aspect_for(url: str) -> str:
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
    return ASPECT_LABELS[int(digest[:8], 16) % len(ASPECT_LABELS)]


def topic_summary(topic: str) -> str:
    lowered = topic.lower()
    for key, template in TOPIC_SUMMARIES:
        if key in lowered:
            return template.format(topic=_display(topic))
    return GENERIC_SUMMARY.format(topic=_display(topic))


def synthesize_fallback(url: str, *, max_body_chars: int | None = None) -> SynthesizedContent:
    """Deterministic placeholder content for a URL that could not be used."""
    limit = settings.max_body_chars if max_body_chars is None else max_body_chars
    topic = infer_topic(url)
    return SynthesizedContent(
        title=f"{_display(topic)}: {aspect_for(url)}",
        body=truncate(topic_summary(topic), limit),
        synthetic=True,
    )


def synthesize_filler(query: str, index: int) -> tuple[str, SynthesizedContent]:
    """Filler source number ``index`` for a query, rotating through the aspect labels."""
    aspect = ASPECT_LABELS[index % len(ASPECT_LABELS)]
    url = f"https://en.wikipedia.org/wiki/{wiki_slug(query)}#{aspect.lower()}-{index + 1}"
    content = SynthesizedContent(
        title=f"{_display(query)}: {aspect}",
        body=ASPECT_SUMMARIES[aspect].format(topic=query),
        synthetic=True,
    )
    return url, content


def extract_page_text(html: str, url: str, *, max_chars: int) -> tuple[str, str]:
    """Strip boilerplate blocks and markup; return ``(title, text)``."""
    soup = BeautifulSoup(html, "html.parser")
    title = collapse_whitespace(soup.title.get_text()) if soup.title else ""
    for tag in soup(STRIPPED_TAGS):
        tag.decompose()
    text = collapse_whitespace(soup.get_text(" "))
    return title or title_from_url(url), truncate(text, max_chars)


class ContentSynthesizer:
    """Fetch-or-synthesize for one URL at a time. ``synthesize`` never raises.

    ``timeout`` bounds the whole fetch, not each read, so a server that
    trickles bytes cannot hold a retrieval batch open. At most ``max_bytes``
    of the body are read, and HTML extraction runs in a worker thread when
    ``extract_in_thread`` is set.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        max_body_chars: int | None = None,
        min_content_chars: int | None = None,
        max_bytes: int | None = None,
        user_agent: str | None = None,
        extract_in_thread: bool | None = None,
    ):
        self._client = client
        self.timeout = settings.fetch_timeout_seconds if timeout is None else timeout
        self.max_body_chars = settings.max_body_chars if max_body_chars is None else max_body_chars
        self.min_content_chars = (
            settings.min_content_chars if min_content_chars is None else min_content_chars
        )
        self.max_bytes = settings.fetch_max_bytes if max_bytes is None else max_bytes
        self.user_agent = user_agent or settings.fetch_user_agent
        self.extract_in_thread = (
            settings.extract_in_thread if extract_in_thread is None else extract_in_thread
        )

    async def synthesize(self, url: str) -> SynthesizedContent:
        if not is_valid_url(url):
            return synthesize_fallback(url, max_body_chars=self.max_body_chars)
        try:
            html = await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
            if html is None:
                return synthesize_fallback(url, max_body_chars=self.max_body_chars)
            title, body = await self._extract(html, url)
        except Exception as exc:
            logger.debug(f"Fetch failed for {url}: {type(exc).__name__}: {exc}")
            return synthesize_fallback(url, max_body_chars=self.max_body_chars)

        if len(body) < self.min_content_chars:
            logger.debug(f"Too little text at {url} ({len(body)} chars), synthesizing")
            return synthesize_fallback(url, max_body_chars=self.max_body_chars)
        return SynthesizedContent(title=title, body=body, synthetic=False)

    async def _extract(self, html: str, url: str) -> tuple[str, str]:
        if self.extract_in_thread:
            return await asyncio.to_thread(
                extract_page_text,
                html,
                url,
                max_chars=self.max_body_chars,
            )
        return extract_page_text(html, url, max_chars=self.max_body_chars)

    async def _fetch(self, url: str) -> str | None:
        if self._client is not None:
            return await self._get(self._client, url)
        async with httpx.AsyncClient(follow_redirects=True) as client:
            return await self._get(client, url)

    async def _get(self, client: httpx.AsyncClient, url: str) -> str | None:
        async with client.stream(
            "GET",
            url,
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
        ) as response:
            if response.status_code >= 400:
                logger.debug(f"{url} answered HTTP {response.status_code}")
                return None

            chunks: list[bytes] = []
            received = 0
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
                received += len(chunk)
                if received >= self.max_bytes:
                    logger.debug(f"{url} body capped at {self.max_bytes} bytes")
                    break
            encoding = response.charset_encoding or "utf-8"

        return b"".join(chunks)[: self.max_bytes].decode(encoding, errors="replace")
