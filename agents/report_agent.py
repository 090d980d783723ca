"""Approval report agent for ShouldCost.

Runs when a user approves a computed breakdown: finds comparables,
asks the model for a negotiation report, and records the approved
analysis as a historical cost. Only the breakdown is authoritative;
report text and persistence degrade without failing the request.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import structlog

from config.errors import ShouldCostError
from config.settings import settings
from models.costing import (
    HistoricalCostRecord,
    ReportBreakdown,
    ReportInput,
    ReportResult,
)
from prompts.base import render_breakdown_table
from prompts.registry import PromptRegistry, prompt_registry
from services.comparables_service import ComparablesFinder
from services.extraction import to_float
from services.firestore_service import FirestoreService
from services.llm_service import LLMService
from services.similarity_index import SimilarityIndex

logger = structlog.get_logger()


REPORT_JSON_KEY = "costSavingOpportunities"
PRODUCT_NAME_MAX_LENGTH = 100

_PRODUCT_NAME_SPLIT = re.compile(r"[,.]|\bfor\b|\bwith\b", re.IGNORECASE)
_EMPTY_FENCE = re.compile(r"```(?:json)?\s*```")


def product_name_from(description: str) -> str:
    """Short product name: the description's leading clause."""
    head = _PRODUCT_NAME_SPLIT.split(description, maxsplit=1)[0].strip()
    return (head or description.strip())[:PRODUCT_NAME_MAX_LENGTH]


def split_report(text: str) -> Tuple[str, Dict[str, Any]]:
    """Separate the trailing summary JSON from a markdown report.

    Returns:
        Tuple of (report text without the JSON, parsed JSON or {}).
    """
    marker = text.rfind(f'"{REPORT_JSON_KEY}"')
    if marker == -1:
        return text.strip(), {}

    decoder = json.JSONDecoder()
    start = text.rfind("{", 0, marker)
    while start != -1:
        try:
            data, end = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            data, end = None, start
        if isinstance(data, dict) and REPORT_JSON_KEY in data and end > marker:
            report = _EMPTY_FENCE.sub("", text[:start] + text[end:])
            return report.strip(), data
        start = text.rfind("{", 0, start)

    return text.strip(), {}


def fallback_report(state: ReportInput, comparables: List[HistoricalCostRecord]) -> str:
    """Deterministic report used when the model call fails."""
    lines = [
        f"# Ex-Works Should-Cost Analysis: {product_name_from(state.product_description)}",
        "",
        f"**Product:** {state.product_description}",
    ]
    if state.aum:
        lines.append(f"**Annual Volume:** {state.aum:,.0f} units")
    lines += [
        "",
        "## Cost Breakdown (per unit)",
        render_breakdown_table(state),
        "",
        f"**Materials total:** ${state.resolved_materials_total:.4f} ({state.currency})",
    ]
    if comparables:
        lines += ["", "## Similar Historical Products"]
        lines += [f"- {record.product_name}: ${record.total_cost}" for record in comparables]
    return "\n".join(lines)


class ReportAgent:
    """Generates approval reports and records approved analyses."""

    def __init__(
        self,
        llm_service: LLMService,
        store: FirestoreService,
        comparables: ComparablesFinder,
        similarity_index: Optional[SimilarityIndex] = None,
        registry: Optional[PromptRegistry] = None
    ):
        self.llm = llm_service
        self.store = store
        self.comparables = comparables
        self.similarity_index = similarity_index
        self.registry = registry or prompt_registry

    async def generate(self, state: ReportInput) -> ReportResult:
        """Generate the approval report for a computed analysis.

        Args:
            state: Analysis previously returned to the client.

        Returns:
            ReportResult with approvalStatus "approved".
        """
        prompts = self.registry.resolve(state.category, state.sub_category)
        comparables = await self.comparables.find_similar(state.product_description)

        try:
            text = await self.llm.complete(
                prompts.report(state, comparables),
                max_tokens=settings.report_max_tokens,
                system_role=prompts.system_role
            )
            report, summary = split_report(text)
        except ShouldCostError as e:
            logger.warning("report_generation_failed", code=e.code, error=e.message)
            report, summary = fallback_report(state, comparables), {}

        await self._record(state)

        opportunities = summary.get("costSavingOpportunities")
        negotiation_range = summary.get("negotiationRange")
        breakdown = ReportBreakdown(
            ex_works_cost_breakdown=state.ex_works_cost_breakdown,
            materials_total=state.resolved_materials_total,
            unit_cost=state.ex_works_cost_breakdown.total_ex_works,
            cost_saving_opportunities=opportunities if isinstance(opportunities, list) else [],
            target_price=to_float(summary.get("targetPrice")),
            negotiation_range=negotiation_range if isinstance(negotiation_range, dict) else None
        )

        logger.info(
            "report_generated",
            category=prompts.category,
            comparables=len(comparables),
            opportunities=len(breakdown.cost_saving_opportunities)
        )
        return ReportResult(final_report=report, breakdown=breakdown, comparables=comparables)

    async def _record(self, state: ReportInput) -> Optional[HistoricalCostRecord]:
        """Save the approved analysis; failures are logged and swallowed."""
        record = HistoricalCostRecord(
            product_name=product_name_from(state.product_description),
            product_description=state.product_description,
            total_cost=state.ex_works_cost_breakdown.total_ex_works,
            breakdown={
                "exWorks": state.ex_works_cost_breakdown.to_dict(),
                "materials": [item.model_dump(mode="json", by_alias=True) for item in state.material_costs],
                "components": [c.model_dump(mode="json", by_alias=True) for c in state.components],
                "aum": state.aum,
            }
        )

        try:
            saved = await self.store.save_historical_cost(record)
        except ShouldCostError as e:
            logger.warning("historical_cost_not_saved", code=e.code, error=e.message)
            return None

        if self.similarity_index is not None and self.similarity_index.is_available:
            try:
                await self.similarity_index.index_document(
                    FirestoreService.COLLECTION_HISTORICAL, saved.id, saved.search_text()
                )
            except ShouldCostError as e:
                logger.warning("historical_cost_not_indexed", record_id=saved.id, error=e.message)

        return saved
