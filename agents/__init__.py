"""ShouldCost pipeline agents.

This package contains the pipeline stages that talk to the model:
- Category resolver (classification and prompt resolution)
- Report agent (approval report and historical record)
- Orchestrator (stage sequencing and progress)
"""

from agents.category_resolver import CategoryResolver
from agents.orchestrator import CostingPipeline, get_costing_pipeline
from agents.report_agent import ReportAgent

__all__ = ["CategoryResolver", "CostingPipeline", "ReportAgent", "get_costing_pipeline"]
