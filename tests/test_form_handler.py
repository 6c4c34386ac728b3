"""End-to-end tests for a form submission through FormHandler."""
from unittest.mock import MagicMock, patch

import config
from config import ConfigError
from results import ResultItem
from tests.conftest import FIXED_TODAY, make_response
from UI_main import FormHandler, remote_key_provider
from workflow_client import WorkflowClient

ENDPOINT = "https://api.dify.ai/v1/workflows/run"


def make_handler(key="app-key"):
    return FormHandler(key_provider=lambda: key, client=WorkflowClient(endpoint=ENDPOINT))


def test_empty_drug_list_alerts_without_network(fake_dify):
    key_provider = MagicMock(return_value="app-key")
    handler = FormHandler(key_provider=key_provider, client=WorkflowClient(endpoint=ENDPOINT))

    outcome = handler.submit("\n  \n", "2026-11-02", today=FIXED_TODAY)

    assert outcome.alert == config.MSG_MISSING_INPUT
    assert outcome.items == []
    key_provider.assert_not_called()
    assert fake_dify.calls == []


def test_empty_date_alerts_without_network(fake_dify):
    outcome = make_handler().submit("A", "", today=FIXED_TODAY)

    assert outcome.alert == config.MSG_MISSING_INPUT
    assert fake_dify.calls == []


def test_past_date_alerts_without_network(fake_dify):
    outcome = make_handler().submit("A", "2026-10-01", today=FIXED_TODAY)

    assert outcome.alert == config.MSG_INVALID_DATE
    assert fake_dify.calls == []


def test_config_failure_prevents_workflow_calls(fake_dify):
    def broken_key_provider():
        raise ConfigError("config endpoint unreachable")

    handler = FormHandler(key_provider=broken_key_provider, client=WorkflowClient(endpoint=ENDPOINT))
    outcome = handler.submit("A\nB", "2026-11-02", today=FIXED_TODAY)

    assert outcome.alert == config.MSG_CONFIG_FAILED
    assert outcome.items == []
    assert fake_dify.calls == []


def test_two_drugs_issue_two_shaped_requests(fake_dify):
    make_handler().submit("A\nB", "2026-11-02", today=FIXED_TODAY)

    assert len(fake_dify.calls) == 2
    sent = sorted(call["json"]["inputs"]["drug"] for call in fake_dify.calls)
    assert sent == ["A", "B"]
    for call in fake_dify.calls:
        assert call["json"]["inputs"]["opeday"] == "2026-11-02"
        assert call["json"]["response_mode"] == "blocking"
        assert call["json"]["user"] == "webapp-user"
        assert call["headers"]["Authorization"] == "Bearer app-key"


def test_success_renders_one_line_per_drug_in_order(fake_dify):
    outcome = make_handler().submit("C\n\nA\nB", "2026-11-02", today=FIXED_TODAY)

    assert outcome.alert is None
    assert outcome.items == [
        ResultItem(text="C: C は継続可能です"),
        ResultItem(text="A: A は継続可能です"),
        ResultItem(text="B: B は継続可能です"),
    ]


def test_missing_output_text_uses_fallback_line(fake_dify):
    fake_dify.responses["A"] = make_response(200, {"data": {"outputs": {}}})

    outcome = make_handler().submit("A\nB", "2026-11-02", today=FIXED_TODAY)

    assert [item.text for item in outcome.items] == [
        f"A: {config.MSG_NO_RESULT}",
        "B: B は継続可能です",
    ]


def test_any_failure_replaces_all_results_with_one_error(fake_dify):
    fake_dify.responses["B"] = make_response(400, {"message": "invalid drug"}, reason="Bad Request")

    outcome = make_handler().submit("A\nB\nC", "2026-11-02", today=FIXED_TODAY)

    assert outcome.alert is None
    assert len(outcome.items) == 1
    error = outcome.items[0]
    assert error.is_error
    assert "「B」の確認中にエラーが発生しました (Status: 400): invalid drug" in error.text
    assert "継続可能" not in error.text


def test_remote_key_provider_calls_config_endpoint():
    with patch("workflow_client.requests.get", return_value=make_response(200, {"apiKey": "app-remote"})) as get:
        provide = remote_key_provider("http://127.0.0.1:8000/")
        assert provide() == "app-remote"
    assert get.call_args.args[0] == "http://127.0.0.1:8000/api/config"
