"""Pipeline Output Logger for ShouldCost.

Provides highly visible, formatted logging for pipeline stages
with distinctive visual markers that stand out in log streams.
"""

import json
import structlog
from typing import Dict, Any, List, Optional
from datetime import datetime

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
STAGE_BANNER_CHAR = "═"
PIPELINE_BANNER_CHAR = "█"


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _preview(text: str, max_length: int = 60) -> str:
    return text[:max_length] + "..." if len(text) > max_length else text


def log_pipeline_start(description: str, aum: Optional[float] = None) -> None:
    """Log pipeline start with prominent banner."""
    timestamp = datetime.utcnow().isoformat()

    print("\n")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(PIPELINE_BANNER_CHAR, "SHOULDCOST ANALYSIS STARTED"))
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Product     : {_preview(description)}")
    print(f"║ Timestamp   : {timestamp}")
    print(f"║ AUM         : {aum if aum is not None else 'from analysis'}")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "pipeline_start_logged",
        description_length=len(description),
        aum=aum
    )


def log_stage_output(
    stage: str,
    progress: int,
    output: Dict[str, Any],
    duration_ms: int = 0
) -> None:
    """Log a completed pipeline stage with its summary data."""
    print(STAGE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(STAGE_BANNER_CHAR, f"✓ STAGE: {stage.upper()} ({progress}%)"))
    print(STAGE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Duration     : {duration_ms:,} ms")
    for line in _format_json(output).split('\n'):
        print(f"  {line}")
    print(STAGE_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "stage_output_logged",
        stage=stage,
        progress=progress,
        duration_ms=duration_ms,
        output_keys=list(output.keys())
    )


def log_pipeline_complete(
    category: str,
    total_ex_works: float,
    completed_stages: List[str],
    duration_ms: int,
    total_tokens: int
) -> None:
    """Log pipeline completion with summary."""
    timestamp = datetime.utcnow().isoformat()

    print("\n")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(PIPELINE_BANNER_CHAR, "✓ ANALYSIS COMPLETED SUCCESSFULLY"))
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Category         : {category}")
    print(f"║ Timestamp        : {timestamp}")
    print(f"║ Ex-Works / unit  : {total_ex_works:.4f}")
    print(f"║ Duration         : {duration_ms:,} ms ({duration_ms / 1000:.2f}s)")
    print(f"║ Total Tokens     : {total_tokens:,}")
    print(f"║ Completed Stages : {', '.join(completed_stages)}")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "pipeline_complete_logged",
        category=category,
        total_ex_works=total_ex_works,
        duration_ms=duration_ms,
        total_tokens=total_tokens
    )


def log_pipeline_failed(
    failed_stage: str,
    error: str,
    completed_stages: List[str]
) -> None:
    """Log pipeline failure with details."""
    timestamp = datetime.utcnow().isoformat()

    print("\n")
    print("!" * BANNER_WIDTH)
    print(_create_banner("!", "✗ ANALYSIS FAILED"))
    print("!" * BANNER_WIDTH)
    print(f"║ Timestamp        : {timestamp}")
    print(f"║ Failed Stage     : {failed_stage}")
    print(f"║ Error            : {error}")
    print(f"║ Completed Before : {', '.join(completed_stages) if completed_stages else 'None'}")
    print("!" * BANNER_WIDTH)
    print("\n")

    logger.error(
        "pipeline_failed_logged",
        failed_stage=failed_stage,
        error=error
    )
