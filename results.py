"""
RESULT RENDERING
Turns workflow payloads into the lines shown in the results list.

- One line per drug, "<drug>: <answer text>"
- A fallback line when the workflow returned no text
- A single error line that replaces the whole list when any drug failed
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import config

logger = logging.getLogger(__name__)


@dataclass
class ResultItem:
    """One line of the results list."""
    text: str
    is_error: bool = False  # rendered in red


@dataclass
class FormOutcome:
    """What a form submission produced: either an alert or a list of result lines."""
    items: List[ResultItem] = field(default_factory=list)
    alert: Optional[str] = None


def extract_output_text(payload: Any) -> Optional[str]:
    """Return data.outputs.text from a workflow payload, or None if any level is missing or empty."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    outputs = data.get("outputs") if isinstance(data, dict) else None
    text = outputs.get("text") if isinstance(outputs, dict) else None
    return text or None


def format_result(drug: str, payload: Dict[str, Any]) -> ResultItem:
    text = extract_output_text(payload)
    if text is None:
        logger.warning(f"No valid output for {drug}: {payload}")
        return ResultItem(text=f"{drug}: {config.MSG_NO_RESULT}")
    return ResultItem(text=f"{drug}: {text}")


def format_results(drugs: List[str], payloads: List[Dict[str, Any]]) -> List[ResultItem]:
    return [format_result(drug, payload) for drug, payload in zip(drugs, payloads)]


def format_error(message: str) -> ResultItem:
    return ResultItem(
        text=f"エラーが発生しました: {message}。サーバーログで詳細を確認してください。",
        is_error=True
    )
