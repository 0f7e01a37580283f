"""Run the Extract, Enrich and Summarize stages and open a session on the result."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from models.label_artifacts import ProductEnrichment, ProductExtraction, ProductSummary
from models.session_models import SessionState
from models.stage_result import FailureKind
from services.analysis.enrich_stage import EnrichStage, degraded_enrichment
from services.analysis.errors import ExtractionFailedError, ExtractionUnavailableError, InvalidImageError
from services.analysis.extract_stage import ExtractStage
from services.analysis.summarize_stage import SummarizeStage, degraded_summary
from services.session.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SUGGESTED_QUESTIONS = (
    "What are the main health benefits?",
    "Are there any concerning ingredients?",
    "Is this suitable for my diet?",
    "How does this compare to similar products?",
)


@dataclass(frozen=True)
class AnalysisOutcome:
    """A committed session plus the artifacts it was built from."""

    session: SessionState
    enrichment_degraded: bool = False
    summary_degraded: bool = False
    suggested_questions: List[str] = field(default_factory=lambda: list(DEFAULT_SUGGESTED_QUESTIONS))

    @property
    def extraction(self) -> ProductExtraction:
        return self.session.extraction

    @property
    def enrichment(self) -> ProductEnrichment:
        return self.session.enrichment

    @property
    def summary(self) -> ProductSummary:
        return self.session.summary


class AnalysisPipeline:
    """Analyze one label image and commit the artifacts to a new session.

    Extraction failures are terminal. Enrichment and summary failures are logged
    and replaced with fixed degraded values so a session is always produced once
    the label has been read.
    """

    def __init__(
        self,
        store: SessionStore,
        extract: ExtractStage,
        enrich: EnrichStage,
        summarize: SummarizeStage,
    ) -> None:
        self.store = store
        self.extract = extract
        self.enrich = enrich
        self.summarize = summarize

    async def run(self, image_bytes: bytes, media_type: Optional[str]) -> AnalysisOutcome:
        """Return the outcome of a full analysis.

        Raises:
            InvalidImageError: If the upload is empty or of an unsupported type.
            ExtractionFailedError: If the label could not be read.
            ExtractionUnavailableError: If the model call itself failed.
        """
        start = time.time()

        extracted = await self.extract.run(image_bytes, media_type or "")
        if not extracted.ok:
            if extracted.kind is FailureKind.INVALID_INPUT:
                raise InvalidImageError(extracted.reason)
            if extracted.kind is FailureKind.INVOCATION:
                raise ExtractionUnavailableError(extracted.reason, detail=extracted.raw_detail)
            raise ExtractionFailedError(extracted.reason, detail=extracted.raw_detail)
        extraction: ProductExtraction = extracted.value

        enriched = await self.enrich.run(extraction)
        if enriched.ok:
            enrichment = enriched.value
        else:
            LOGGER.warning("Enrichment unavailable (%s); using defaults", enriched.reason)
            enrichment = degraded_enrichment()

        summarized = await self.summarize.run(extraction, enrichment)
        if summarized.ok:
            summary = summarized.value
        else:
            LOGGER.warning("Summary unavailable (%s); using review-required summary", summarized.reason)
            summary = degraded_summary(extraction)

        session = self.store.create(extraction, enrichment, summary)
        LOGGER.info(
            "Analysis of %r complete in %.3fs (session %s)",
            extraction.product_name,
            time.time() - start,
            session.session_id,
        )
        return AnalysisOutcome(
            session=session,
            enrichment_degraded=not enriched.ok,
            summary_degraded=not summarized.ok,
        )
