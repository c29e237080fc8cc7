from __future__ import annotations

import asyncio
from typing import Protocol

import httpx
from loguru import logger

from deepsearch.config import settings
from deepsearch.exceptions import InputError
from deepsearch.models.schemas import SourceRecord
from deepsearch.tools.content_synthesizer import (
    ContentSynthesizer,
    SynthesizedContent,
    synthesize_filler,
)
from deepsearch.tools.reference_sources import build_candidate_urls
from deepsearch.tools.web_utils import clean_query, truncate


class Synthesizer(Protocol):
    async def synthesize(self, url: str) -> SynthesizedContent:
        ...


def _batches(items: list[str], size: int) -> list[list[str]]:
    size = max(size, 1)
    return [items[i:i + size] for i in range(0, len(items), size)]


class WebRetrievalEngine:
    """Fan out over reference-site candidates in bounded batches.

    Never raises for network reasons: unreachable pages come back from the
    synthesizer as generated content, and if too few sources are accepted the
    list is topped up with aspect-labelled filler.
    """

    def __init__(
        self,
        *,
        synthesizer: Synthesizer | None = None,
        fast_mode: bool = False,
        max_sources: int | None = None,
        min_sources: int | None = None,
        batch_size: int | None = None,
        fetch_timeout: float | None = None,
        min_content_chars: int | None = None,
        snippet_max_chars: int | None = None,
    ):
        self._synthesizer = synthesizer
        self.fast_mode = fast_mode
        self.max_sources = max_sources or settings.retrieval_max_sources
        self.min_sources = settings.retrieval_min_sources if min_sources is None else min_sources
        if batch_size is None:
            batch_size = settings.retrieval_fast_batch_size if fast_mode else settings.retrieval_batch_size
        self.batch_size = batch_size
        if fetch_timeout is None:
            fetch_timeout = settings.fast_fetch_timeout_seconds if fast_mode else settings.fetch_timeout_seconds
        self.fetch_timeout = fetch_timeout
        self.min_content_chars = (
            settings.min_content_chars if min_content_chars is None else min_content_chars
        )
        self.snippet_max_chars = snippet_max_chars or settings.snippet_max_chars

    def _to_record(self, url: str, content: SynthesizedContent) -> SourceRecord:
        return SourceRecord(
            title=content.title,
            url=url,
            snippet=truncate(content.body, self.snippet_max_chars),
            synthetic=content.synthetic,
        )

    async def retrieve(self, query: str, desired_count: int | None = None) -> list[SourceRecord]:
        query = clean_query(query)
        if desired_count is None:
            desired_count = self.max_sources
        if desired_count < 1:
            raise InputError("desired source count must be at least 1")
        target = min(desired_count, self.max_sources)

        candidates = build_candidate_urls(query)
        if self._synthesizer is not None:
            sources = await self._collect(self._synthesizer, candidates, target)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                synthesizer = ContentSynthesizer(
                    client,
                    timeout=self.fetch_timeout,
                    min_content_chars=self.min_content_chars,
                )
                sources = await self._collect(synthesizer, candidates, target)

        scraped = sum(1 for source in sources if not source.synthetic)
        fill_to = max(self.min_sources, target)
        if len(sources) < fill_to:
            logger.info(f"Topping up {len(sources)} sources to {fill_to} for '{query[:80]}'")
            sources.extend(self._filler(query, len(sources), fill_to))

        logger.info(
            f"Retrieved {min(len(sources), target)} sources for '{query[:80]}' "
            f"({scraped} scraped, {len(candidates)} candidates)"
        )
        return sources[:target]

    async def _collect(
        self,
        synthesizer: Synthesizer,
        candidates: list[str],
        target: int,
    ) -> list[SourceRecord]:
        accepted: list[SourceRecord] = []
        for batch in _batches(candidates, self.batch_size):
            results = await asyncio.gather(
                *(synthesizer.synthesize(url) for url in batch),
                return_exceptions=True,
            )
            for url, item in zip(batch, results):
                if isinstance(item, BaseException):
                    logger.debug(f"Dropping {url}: {type(item).__name__}: {item}")
                    continue
                if len(item.body) <= self.min_content_chars:
                    continue
                accepted.append(self._to_record(url, item))

            if len(accepted) >= target:
                break
        return accepted

    def _filler(self, query: str, start: int, stop: int) -> list[SourceRecord]:
        records = []
        for index in range(start, stop):
            url, content = synthesize_filler(query, index)
            records.append(self._to_record(url, content))
        return records
