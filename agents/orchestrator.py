"""Pipeline Orchestrator for ShouldCost.

Coordinates the cost decomposition pipeline:
classify -> resolve prompts -> full analysis -> extraction ->
material resolution -> breakdown, plus the approval report stage.
Stages run sequentially; each stage's input is the previous stage's output.
"""

import asyncio
import contextlib
import dataclasses
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from agents.category_resolver import CategoryResolver
from agents.report_agent import ReportAgent
from config.errors import ErrorCode, ExtractionError, ShouldCostError, ValidationError
from config.settings import settings
from models.costing import AnalysisResult, ReportInput, ReportResult
from prompts.categories import build_category_list
from prompts.registry import PromptRegistry, prompt_registry
from services.comparables_service import ComparablesFinder
from services.cost_breakdown import CostBreakdownEngine
from services.extraction import PER_UNIT_COMPONENT_DEFAULTS, extract_json, normalize_analysis
from services.firestore_service import FirestoreService, get_firestore_service
from services.llm_service import LLMService, get_llm_service
from services.material_resolver import MaterialResolver
from services.similarity_index import SimilarityIndex, get_similarity_index
from utils.pipeline_logger import (
    log_pipeline_start,
    log_pipeline_complete,
    log_pipeline_failed,
    log_stage_output,
)

logger = structlog.get_logger()

# Progress percent reported when each stage completes
STAGE_PROGRESS: Dict[str, int] = {
    "classify": 15,
    "prompts": 25,
    "analysis": 50,
    "extraction": 60,
    "materials": 80,
    "breakdown": 95,
}

ProgressCallback = Callable[[Dict[str, Any]], Awaitable[None]]


class CostingPipeline:
    """Orchestrates the cost decomposition pipeline.

    Flow per request:
    1. Classify the description (never fatal)
    2. Resolve the category's prompts and config
    3. Run the full analysis prompt
    4. Extract components, percentages and detail breakdowns
    5. Price every component through the material tiers
    6. Compute the reconciled Ex-Works breakdown
    """

    def __init__(
        self,
        llm_service: Optional[LLMService] = None,
        store: Optional[FirestoreService] = None,
        similarity_index: Optional[SimilarityIndex] = None,
        registry: Optional[PromptRegistry] = None,
        category_resolver: Optional[CategoryResolver] = None,
        material_resolver: Optional[MaterialResolver] = None,
        engine: Optional[CostBreakdownEngine] = None,
        comparables: Optional[ComparablesFinder] = None,
        report_agent: Optional[ReportAgent] = None
    ):
        """Initialize CostingPipeline.

        Collaborators not supplied are built from the process singletons.
        """
        self.llm = llm_service or get_llm_service()
        self.store = store or get_firestore_service()
        self.similarity_index = similarity_index if similarity_index is not None else get_similarity_index()
        self.registry = registry or prompt_registry

        self.category_resolver = category_resolver or CategoryResolver(self.llm, self.registry)
        self.material_resolver = material_resolver or MaterialResolver(
            self.store, self.similarity_index, self.llm
        )
        self.engine = engine or CostBreakdownEngine()
        self.comparables = comparables or ComparablesFinder(self.store, self.similarity_index)
        self.report_agent = report_agent or ReportAgent(
            self.llm, self.store, self.comparables, self.similarity_index, self.registry
        )

    async def run_analysis(
        self,
        description: str,
        aum: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> AnalysisResult:
        """Run the full analysis for a product description.

        Args:
            description: Free-text product description.
            aum: Caller-supplied annual volume; overrides the model's estimate.
            on_progress: Awaited with one progress event per completed stage.

        Returns:
            AnalysisResult awaiting approval.

        Raises:
            ExtractionError: If the full analysis yields no usable components.
            ShouldCostError: If the full analysis call itself fails.
        """
        start_time = time.time()
        completed: List[str] = []
        stage = "classify"

        log_pipeline_start(description, aum)

        try:
            stage_start = time.time()
            category_list = build_category_list()
            classification = await self.category_resolver.classify(description, category_list)
            await self._stage_done(on_progress, completed, stage, stage_start, {
                "category": classification.category,
                "subCategory": classification.sub_category,
                "confidence": classification.confidence,
            })

            stage, stage_start = "prompts", time.time()
            prompts = self.category_resolver.resolve(classification.category, classification.sub_category)
            await self._stage_done(on_progress, completed, stage, stage_start, {
                "categoryName": prompts.category_name,
                "sources": prompts.sources,
            })

            stage, stage_start = "analysis", time.time()
            text = await self.llm.complete(
                prompts.full_analysis(description, category_list, aum),
                max_tokens=settings.analysis_max_tokens,
                system_role=prompts.system_role
            )
            await self._stage_done(on_progress, completed, stage, stage_start, {
                "responseLength": len(text or ""),
            })

            stage, stage_start = "extraction", time.time()
            parsed = extract_json(text, "object")
            if parsed is None:
                raise ExtractionError("Full analysis response contained no JSON object")
            component_defaults = dataclasses.replace(
                PER_UNIT_COMPONENT_DEFAULTS, unit=prompts.config.default_unit
            )
            payload = normalize_analysis(parsed, component_defaults)
            if not payload.components:
                raise ExtractionError(
                    "Full analysis returned no components",
                    details={"keys": sorted(parsed)}
                )
            await self._stage_done(on_progress, completed, stage, stage_start, {
                "components": len(payload.components),
                "details": sorted(payload.details),
            })

            stage, stage_start = "materials", time.time()
            resolution = await self.material_resolver.resolve(payload.components, prompts)
            await self._stage_done(on_progress, completed, stage, stage_start, {
                "materialsTotal": resolution.materials_total,
                "sources": resolution.count_by_source(),
            })

            stage, stage_start = "breakdown", time.time()
            breakdown = self.engine.compute(
                payload.estimated_unit_cost,
                payload.cost_percentages,
                resolution.materials_total,
                payload.details,
                resolution.material_costs
            )
            await self._stage_done(on_progress, completed, stage, stage_start, {
                "totalExWorks": breakdown.total_ex_works,
            })

        except ShouldCostError as e:
            log_pipeline_failed(stage, e.message, completed)
            raise

        result = AnalysisResult(
            category=prompts.category,
            category_name=prompts.category_name,
            sub_category=classification.sub_category,
            detection_message=CategoryResolver.detection_message(classification, prompts),
            product_description=description,
            analysis_context=payload.analysis_context,
            aum=aum if aum is not None else payload.aum,
            aum_reasoning=payload.aum_reasoning,
            components=payload.components,
            material_costs=resolution.material_costs,
            materials_total=resolution.materials_total,
            ex_works_cost_breakdown=breakdown,
            cost_percentages=payload.cost_percentages,
            unit_cost=breakdown.total_ex_works,
            currency=payload.currency
        )

        log_pipeline_complete(
            category=result.category,
            total_ex_works=result.unit_cost,
            completed_stages=completed,
            duration_ms=int((time.time() - start_time) * 1000),
            total_tokens=self.llm.total_tokens_used
        )
        return result

    async def stream_analysis(
        self,
        description: str,
        aum: Optional[float] = None
    ) -> AsyncIterator[Dict[str, Any]]:
        """Run the analysis, yielding progress events as stages complete.

        Yields:
            ``{"type": "progress", ...}`` events, then exactly one
            ``{"type": "complete", "data": ...}`` or
            ``{"type": "error", "message": ...}`` event.
        """
        queue: asyncio.Queue = asyncio.Queue()

        async def produce() -> None:
            try:
                result = await self.run_analysis(description, aum, on_progress=queue.put)
                await queue.put({"type": "complete", "data": result.to_dict()})
            except ShouldCostError as e:
                await queue.put({"type": "error", "message": e.message, "code": e.code})
            except Exception as e:
                logger.exception("stream_analysis_error", error=str(e))
                await queue.put({"type": "error", "message": str(e), "code": ErrorCode.INTERNAL_ERROR})

        task = asyncio.ensure_future(produce())
        try:
            while True:
                event = await queue.get()
                yield event
                if event["type"] != "progress":
                    break
        finally:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def generate_approval_report(self, current_state: Dict[str, Any]) -> ReportResult:
        """Generate the approval report for a previously computed analysis.

        Raises:
            ValidationError: If current_state is not a valid analysis.
        """
        try:
            state = ReportInput.model_validate(current_state)
        except PydanticValidationError as e:
            raise ValidationError(
                "currentState is not a valid analysis",
                field="currentState",
                details={"errors": [err["msg"] for err in e.errors()]}
            )

        logger.info("approval_report_started", category=state.category)
        return await self.report_agent.generate(state)

    async def _stage_done(
        self,
        on_progress: Optional[ProgressCallback],
        completed: List[str],
        stage: str,
        stage_start: float,
        details: Dict[str, Any]
    ) -> None:
        completed.append(stage)
        log_stage_output(
            stage,
            STAGE_PROGRESS[stage],
            details,
            duration_ms=int((time.time() - stage_start) * 1000)
        )
        if on_progress is not None:
            await on_progress({
                "type": "progress",
                "step": stage,
                "percent": STAGE_PROGRESS[stage],
                "details": details,
            })


# Singleton instance
_default_pipeline: Optional[CostingPipeline] = None


def get_costing_pipeline() -> CostingPipeline:
    """Get or create the default CostingPipeline instance."""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = CostingPipeline()
    return _default_pipeline
