"""
DIFY WORKFLOW CLIENT
Runs the perioperative drug-check workflow once per drug and collects the answers.

- Builds the workflow request body for one drug + surgery date
- Posts it to the Dify workflow endpoint with the bearer API key
- Fans out one request per drug on a thread pool and gathers the payloads
- Fetches the API key from the local /api/config endpoint for remote callers

Aggregation is all-or-nothing: the first failing drug aborts the whole batch.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

import requests

import config
from config import ConfigError

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """A workflow call for one drug failed (HTTP error status or transport failure)."""

    def __init__(self, drug: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.drug = drug
        self.message = message
        self.status_code = status_code


def build_request_body(drug: str, opeday: str, user: str = config.DIFY_USER) -> Dict[str, Any]:
    return {
        "inputs": {
            "drug": drug.strip(),
            "opeday": opeday
        },
        "response_mode": config.DIFY_RESPONSE_MODE,
        "user": user
    }


def _describe_error(drug: str, response: requests.Response) -> str:
    """Compose the per-drug error message, including the API's own message when the body is JSON."""
    message = f"「{drug}」の確認中にエラーが発生しました (Status: {response.status_code})"
    try:
        error_data = response.json()
    except ValueError:
        logger.error(f"Non-JSON error response for {drug}: {response.reason}")
        return f"{message}: {response.reason}"

    logger.error(f"API Error for {drug}: {error_data}")
    detail = error_data.get("message") if isinstance(error_data, dict) else None
    return f"{message}: {detail or config.MSG_UNKNOWN_API_ERROR}"


class WorkflowClient:
    """Posts drug-check requests to the Dify workflow API."""

    def __init__(
        self,
        endpoint: str = config.DIFY_WORKFLOW_URL,
        user: str = config.DIFY_USER,
        timeout: float = config.DIFY_TIMEOUT,
        max_workers: int = config.MAX_WORKERS
    ):
        if not endpoint:
            raise ValueError("Workflow endpoint is not configured")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.endpoint = endpoint
        self.user = user
        self.timeout = timeout
        self.max_workers = max_workers

    def run_workflow(self, drug: str, opeday: str, api_key: str) -> Dict[str, Any]:
        """
        Run the workflow for a single drug.

        Args:
            drug: Drug name as entered by the user
            opeday: Surgery date, "YYYY-MM-DD"
            api_key: Dify API key

        Returns:
            Decoded JSON payload, normally {"data": {"outputs": {"text": ...}}}

        Raises:
            WorkflowError: on a non-2xx status or a transport failure
        """
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }
        payload = build_request_body(drug, opeday, self.user)
        logger.info(f"Sending request for {drug}: {payload}")

        try:
            response = requests.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise WorkflowError(drug, f"「{drug}」の確認中に通信エラーが発生しました: {e}") from e

        if not response.ok:
            raise WorkflowError(drug, _describe_error(drug, response), response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise WorkflowError(drug, f"「{drug}」の応答を解析できませんでした: {e}", response.status_code) from e

        logger.info(f"Received data for {drug}: {data}")
        return data

    def _run_unless_failed(self, failed: threading.Event, drug: str, opeday: str,
                           api_key: str) -> Optional[Dict[str, Any]]:
        # Once a sibling request has failed the batch is discarded, so queued drugs are not sent.
        if failed.is_set():
            logger.info(f"Skipping request for {drug}: batch already failed")
            return None
        try:
            return self.run_workflow(drug, opeday, api_key)
        except Exception:
            failed.set()
            raise

    def run_all(self, drugs: List[str], opeday: str, api_key: str) -> List[Dict[str, Any]]:
        """
        Run the workflow for every drug concurrently.

        Returns the payloads in the same order as `drugs`. The first failure to
        complete cancels the requests that have not started yet and is re-raised.
        """
        if not drugs:
            return []

        results: List[Optional[Dict[str, Any]]] = [None] * len(drugs)
        failed = threading.Event()
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(drugs)))
        futures = {
            executor.submit(self._run_unless_failed, failed, drug, opeday, api_key): index
            for index, drug in enumerate(drugs)
        }

        try:
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except Exception:
            executor.shutdown(wait=False, cancel_futures=True)
            raise

        executor.shutdown(wait=True)
        logger.info(f"All {len(drugs)} workflow requests resolved")
        return results


def fetch_api_key(config_url: str, timeout: float = config.CONFIG_TIMEOUT) -> str:
    """
    Fetch the API key from a running server's config endpoint.

    Raises:
        ConfigError: transport failure, error status, non-JSON body or missing apiKey
    """
    try:
        response = requests.get(config_url, timeout=timeout)
        response.raise_for_status()
        api_key = response.json().get("apiKey")
    except (requests.exceptions.RequestException, ValueError, AttributeError) as e:
        logger.error(f"Error fetching API key: {e}")
        raise ConfigError(str(e)) from e

    if not isinstance(api_key, str) or not api_key.strip():
        logger.error(f"Error fetching API key: unusable apiKey {api_key!r}")
        raise ConfigError("apiKey missing from config response")
    return api_key


def create_client() -> WorkflowClient:
    """Create and return a WorkflowClient using the configured defaults."""
    return WorkflowClient()
