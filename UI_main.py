"""
Orchestration for UI

Purpose: run one form submission end to end: validate, obtain the API key, check every drug, render lines.

Input: raw drug textarea text and surgery date string.

Output: FormOutcome with either an alert (nothing was sent) or the result lines:

{
 "items": [{"text": "ワーファリン: 手術5日前に休薬してください。", "is_error": false}, ...],
 "alert": null
}

Example: running this file starts a terminal session against a local server and prints the lines.

Notes: a failed drug replaces the whole list with one error line; successful answers are not shown.
"""
import logging
from datetime import date
from typing import Callable, Optional

import config
import log
from config import ConfigError
from parser import InvalidDateError, MissingInputError, parse_submission, today_string
from results import FormOutcome, format_error, format_results
from workflow_client import WorkflowClient, WorkflowError, create_client, fetch_api_key

logger = logging.getLogger(__name__)


def remote_key_provider(base_url: str) -> Callable[[], str]:
    """Key provider that asks a running server's config endpoint, like the browser form does."""
    config_url = base_url.rstrip("/") + config.CONFIG_PATH

    def provide() -> str:
        return fetch_api_key(config_url)

    return provide


class FormHandler:
    """Handles drug form submissions."""

    def __init__(self, key_provider: Callable[[], str] = config.get_api_key,
                 client: Optional[WorkflowClient] = None):
        self.key_provider = key_provider
        self.client = client or create_client()

    def submit(self, drug_text: str, surgery_date: str, today: Optional[date] = None) -> FormOutcome:
        logger.info("Form submission triggered")

        try:
            submission = parse_submission(drug_text, surgery_date, today)
        except (MissingInputError, InvalidDateError) as e:
            return FormOutcome(alert=str(e))

        try:
            api_key = self.key_provider()
        except ConfigError as e:
            logger.error(f"Error fetching API key: {e}")
            return FormOutcome(alert=config.MSG_CONFIG_FAILED)

        try:
            payloads = self.client.run_all(submission.drugs, submission.surgery_date, api_key)
            return FormOutcome(items=format_results(submission.drugs, payloads))
        except WorkflowError as e:
            logger.error(f"A critical error occurred: {e}")
            return FormOutcome(items=[format_error(e.message)])
        finally:
            logger.info("Processing finished.")


def _read_drug_lines() -> str:
    print("お薬の名前を1行に1つずつ入力してください (空行で終了):")
    lines = []
    while True:
        line = input("> ")
        if not line.strip():
            break
        lines.append(line)
    return "\n".join(lines)


if __name__ == "__main__":
    log.setup_logging()

    base_url = f"http://{config.APP_HOST}:{config.APP_PORT}"
    print("=" * 60)
    print("PERIOPERATIVE DRUG CHECK")
    print("=" * 60)
    print(f"  Server: {base_url}")

    drug_text = _read_drug_lines()
    default_day = today_string()
    surgery_date = input(f"手術予定日 [{default_day}]: ").strip() or default_day

    handler = FormHandler(key_provider=remote_key_provider(base_url))
    outcome = handler.submit(drug_text, surgery_date)

    if outcome.alert:
        print(f"\n⚠️  {outcome.alert}")
        exit(1)

    print()
    for item in outcome.items:
        print(f"❌ {item.text}" if item.is_error else f"・{item.text}")
