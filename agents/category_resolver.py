"""Category resolver for ShouldCost.

Classifies a product description into a registry category and resolves
the category's prompts and config. Classification never fails the
pipeline: any problem substitutes the default category.
"""

from typing import Optional

import structlog

from config.errors import ClassificationError
from config.settings import settings
from models.costing import ClassificationResult
from prompts.categories import (
    build_category_list,
    get_category_definition,
    normalize_key,
)
from prompts.registry import PromptRegistry, prompt_registry
from prompts.types import PromptSet
from services.extraction import extract_json, to_float
from services.llm_service import LLMService

logger = structlog.get_logger()


class CategoryResolver:
    """Classifies descriptions and resolves category prompt sets."""

    def __init__(
        self,
        llm_service: LLMService,
        registry: Optional[PromptRegistry] = None
    ):
        """Initialize CategoryResolver.

        Args:
            llm_service: Gateway used for classification.
            registry: Prompt registry (process-wide registry by default).
        """
        self.llm = llm_service
        self.registry = registry or prompt_registry

    def fallback(self, reason: str) -> ClassificationResult:
        """Default classification used whenever classification fails."""
        return ClassificationResult(
            category=settings.default_category,
            sub_category=settings.default_subcategory,
            confidence=settings.classification_fallback_confidence,
            reasoning=reason,
            is_fallback=True
        )

    async def classify(self, description: str, category_list: Optional[str] = None) -> ClassificationResult:
        """Classify a product description.

        Args:
            description: Free-text product description.
            category_list: Rendered option list (built from the registry if omitted).

        Returns:
            ClassificationResult; the default category with confidence 0.5
            if the response is missing, unparseable or names an unknown id.
        """
        category_list = category_list or build_category_list()
        prompts = self.registry.resolve(None)

        try:
            text = await self.llm.complete(
                prompts.classify(description, category_list),
                max_tokens=settings.classify_max_tokens
            )
            result = self._parse(text)
        except ClassificationError as e:
            logger.warning("classification_fallback", reason=e.message, details=e.details)
            return self.fallback(e.message)
        except Exception as e:
            logger.warning("classification_fallback", reason="llm_call_failed", error=str(e))
            return self.fallback(f"Classification call failed: {str(e)}")

        logger.info(
            "category_classified",
            category=result.category,
            sub_category=result.sub_category,
            confidence=result.confidence
        )
        return result

    def _parse(self, text: str) -> ClassificationResult:
        parsed = extract_json(text, "object")
        if parsed is None:
            raise ClassificationError("Classification response contained no JSON object")

        definition = get_category_definition(parsed.get("category"))
        if definition is None:
            raise ClassificationError(
                "Unrecognized category id",
                details={"category": parsed.get("category")}
            )

        sub_category = normalize_key(parsed.get("subCategory")) or settings.default_subcategory
        confidence = to_float(parsed.get("confidence"))
        if confidence is None:
            confidence = settings.classification_fallback_confidence

        reasoning = parsed.get("reasoning")
        return ClassificationResult(
            category=definition.id,
            sub_category=sub_category,
            confidence=min(max(confidence, 0.0), 1.0),
            reasoning=reasoning if isinstance(reasoning, str) else None
        )

    def resolve(self, category: Optional[str], sub_category: Optional[str] = None) -> PromptSet:
        """Resolve prompts and config for a classified category."""
        return self.registry.resolve(category, sub_category)

    @staticmethod
    def detection_message(classification: ClassificationResult, prompts: PromptSet) -> str:
        """One-line summary of the detected category for the response."""
        if classification.is_fallback:
            return f"Using {prompts.category_name} analysis (category could not be determined)"
        return (
            f"Detected {prompts.category_name} ({classification.sub_category}) "
            f"with {classification.confidence:.0%} confidence"
        )
