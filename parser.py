"""
Parse raw form input into a submission

Purpose: turn the drug textarea and the surgery date field into a validated Submission.

Input: drug_text (newline-separated names, may contain blank lines), surgery_date ("YYYY-MM-DD").

Output: Submission(drugs=[...], surgery_date="YYYY-MM-DD") or a MissingInputError / InvalidDateError.

Example: parse_submission("ワーファリン\n\n アスピリン \n", "2026-11-02")
→ Submission(drugs=["ワーファリン", "アスピリン"], surgery_date="2026-11-02")

Notes: the date floor mirrors the min attribute the form puts on the date field.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

import config

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class MissingInputError(ValueError):
    """Drug list or surgery date left empty."""

    def __init__(self, message: str = config.MSG_MISSING_INPUT):
        super().__init__(message)


class InvalidDateError(ValueError):
    """Surgery date is malformed or lies in the past."""

    def __init__(self, message: str = config.MSG_INVALID_DATE):
        super().__init__(message)


@dataclass
class Submission:
    drugs: List[str]
    surgery_date: str


def parse_drug_list(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [line.strip() for line in text.strip().split("\n") if line.strip()]


def today_string(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime(DATE_FORMAT)


def parse_surgery_date(value: str, today: Optional[date] = None) -> str:
    """Return the date as zero-padded YYYY-MM-DD if it is a day on or after today."""
    try:
        parsed = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError()
    if parsed < (today or date.today()):
        raise InvalidDateError()
    return parsed.strftime(DATE_FORMAT)


def parse_submission(drug_text: Optional[str], surgery_date: Optional[str],
                     today: Optional[date] = None) -> Submission:
    drugs = parse_drug_list(drug_text)
    surgery_date = (surgery_date or "").strip()

    logger.info(f"Drug list: {drugs}")
    logger.info(f"Surgery date: {surgery_date}")

    if not drugs or not surgery_date:
        logger.warning("Validation failed: missing drug list or surgery date.")
        raise MissingInputError()

    try:
        surgery_date = parse_surgery_date(surgery_date, today)
    except InvalidDateError:
        logger.warning(f"Validation failed: invalid surgery date '{surgery_date}'.")
        raise

    return Submission(drugs=drugs, surgery_date=surgery_date)
