from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.templating import Jinja2Templates
import uvicorn
from pydantic import BaseModel
from typing import List, Optional
import logging
import os

import config
import log
from config import ConfigError
from parser import today_string
from UI_main import FormHandler

log.setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Perioperative Drug Check")

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(__file__), "templates"))


class CheckRequest(BaseModel):
    drugs: str = ""  # newline-separated drug names
    surgery_date: str = ""


class ResultItemModel(BaseModel):
    text: str
    is_error: bool = False


class CheckResponse(BaseModel):
    items: List[ResultItemModel] = []
    alert: Optional[str] = None


def get_handler() -> FormHandler:
    """Build the handler per request so key changes in the environment are picked up."""
    return FormHandler(key_provider=config.get_api_key)


def _render_form(request: Request, drug_list: str = "", surgery_date: str = "", outcome=None):
    today = today_string()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "today": today,
            "drug_list": drug_list,
            "surgery_date": surgery_date or today,
            "outcome": outcome,
        },
    )


@app.get("/")
def form_page(request: Request):
    """Empty form with the surgery date defaulted to today."""
    return _render_form(request)


@app.post("/")
def submit_form(request: Request, drug_list: str = Form(""), surgery_date: str = Form("")):
    """
    Form submission.

    Workflow:
    1. Validate the drug list and surgery date (alert on failure)
    2. Read the Dify API key (alert on failure)
    3. Run the workflow for every drug concurrently
    4. Re-render the page with one line per drug or a single error line
    """
    outcome = get_handler().submit(drug_list, surgery_date)
    return _render_form(request, drug_list, surgery_date, outcome)


@app.get("/api/config")
def api_config():
    """Hand the Dify API key to the form."""
    try:
        return {"apiKey": config.get_api_key()}
    except ConfigError as e:
        logger.error(f"❌ Config requested but no API key is configured: {e}")
        raise HTTPException(status_code=500, detail="API key is not configured")


@app.post("/api/check", response_model=CheckResponse)
def api_check(body: CheckRequest):
    """
    JSON counterpart of the form.
    Expects: {"drugs": "drug A\\ndrug B", "surgery_date": "YYYY-MM-DD"}
    Returns: {"items": [{"text": ..., "is_error": ...}], "alert": null | "..."}
    """
    outcome = get_handler().submit(body.drugs, body.surgery_date)
    return CheckResponse(
        items=[ResultItemModel(text=item.text, is_error=item.is_error) for item in outcome.items],
        alert=outcome.alert,
    )


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "Perioperative Drug Check"}


if __name__ == "__main__":
    uvicorn.run(
        "API:app",
        host=config.APP_HOST,
        port=config.APP_PORT,
        reload=True
    )
