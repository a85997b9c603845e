"""
BeautifulSoup-based parsing layer for regulator listing and detail pages.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from app.scraping.types import RawSummary

MONEY_REGEX = re.compile(r"\d[\d,]*(?:\.\d+)?")
EA_REGISTRATION_ID_REGEX = re.compile(r"registration/(\d+)")
DATE_PATTERNS = [
    "%d/%m/%Y",
    "%Y-%m-%d",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
]

HSE_CASE_DETAIL_LABELS = {
    "Main Activity": "main_activity",
    "Industry": "industry",
    "Local Authority": "local_authority",
    "Total Fine": "total_fine",
    "Total Costs Awarded to HSE": "total_costs",
    "HSE Directorate": "regulator_function",
    "Result": "result",
}
HSE_NOTICE_DETAIL_LABELS = {
    "Description": "description",
    "Compliance Date": "compliance_date",
    "Revised Compliance Date": "revised_compliance_date",
    "Result": "result",
    "Main Activity": "main_activity",
    "Industry": "industry",
    "Local Authority": "local_authority",
    "HSE Directorate": "regulator_function",
}
EA_DETAIL_LABELS = {
    "Company No.": "company_registration_number",
    "Industry Sector": "industry_sector",
    "Address": "address",
    "Town": "town",
    "County": "county",
    "Postcode": "postcode",
    "Total Fine": "total_fine",
    "Offence": "offence_description",
    "Case Reference": "case_reference",
    "Event Reference": "event_reference",
    "Agency Function": "agency_function",
    "Water Impact": "water_impact",
    "Land Impact": "land_impact",
    "Air Impact": "air_impact",
    "Act": "act",
    "Section": "section",
}


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split())


def parse_date(value: str | None) -> date | None:
    text = clean_text(value)
    if not text:
        return None
    for pattern in DATE_PATTERNS:
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue
    return None


def parse_money(value: str | None) -> Decimal | None:
    """
    Parse amounts such as '£12,500.00' into a Decimal.
    """

    text = clean_text(value)
    if not text:
        return None
    match = MONEY_REGEX.search(text)
    if match is None:
        return None
    try:
        return Decimal(match.group(0).replace(",", ""))
    except InvalidOperation:
        return None


class HSEPageParser:
    """
    Parsers for the HSE convictions, appeals and notices registers.
    """

    @classmethod
    def parse_case_rows(cls, html: str, *, page: int) -> list[RawSummary]:
        summaries: list[RawSummary] = []
        for cells in cls._table_rows(html):
            if len(cells) != 5:
                continue
            link = cells[0].find("a")
            if link is None:
                continue
            regulator_id = clean_text(link.get_text())
            if not regulator_id:
                continue
            summaries.append(
                RawSummary(
                    regulator_id=regulator_id,
                    subject_name=clean_text(cells[1].get_text()) or None,
                    action_date=parse_date(cells[2].get_text()),
                    action_type="Court Case",
                    page=page,
                    fields={
                        "local_authority": clean_text(cells[3].get_text()) or None,
                        "main_activity": clean_text(cells[4].get_text()) or None,
                    },
                )
            )
        return summaries

    @classmethod
    def parse_notice_rows(cls, html: str, *, page: int) -> list[RawSummary]:
        summaries: list[RawSummary] = []
        for cells in cls._table_rows(html):
            if len(cells) != 6:
                continue
            link = cells[0].find("a")
            if link is None:
                continue
            regulator_id = clean_text(link.get_text())
            if not regulator_id:
                continue
            summaries.append(
                RawSummary(
                    regulator_id=regulator_id,
                    subject_name=clean_text(cells[1].get_text()) or None,
                    action_type=clean_text(cells[2].get_text()) or None,
                    action_date=parse_date(cells[3].get_text()),
                    page=page,
                    fields={
                        "local_authority": clean_text(cells[4].get_text()) or None,
                        "sic_code": clean_text(cells[5].get_text()) or None,
                    },
                )
            )
        return summaries

    @classmethod
    def parse_detail(cls, html: str, *, labels: dict[str, str]) -> dict[str, Any]:
        """
        Read label/value cell pairs, including rows that hold two pairs.
        """

        details: dict[str, Any] = {}
        for cells in cls._table_rows(html):
            texts = [clean_text(cell.get_text(" ", strip=True)) for cell in cells]
            for index in range(len(texts) - 1):
                key = labels.get(texts[index])
                if key and key not in details:
                    details[key] = texts[index + 1] or None
        return details

    @staticmethod
    def _table_rows(html: str) -> list[list[Tag]]:
        soup = BeautifulSoup(html, "html.parser")
        rows: list[list[Tag]] = []
        for row in soup.find_all("tr"):
            cells = row.find_all("td", recursive=False)
            if cells:
                rows.append(cells)
        return rows


class EARegisterParser:
    """
    Parsers for the Environment Agency enforcement-action public register.
    """

    @classmethod
    def parse_summary_rows(cls, html: str, *, base_url: str, action_type: str) -> list[RawSummary]:
        soup = BeautifulSoup(html, "html.parser")
        summaries: list[RawSummary] = []
        for row in soup.select("table tbody tr"):
            cells = row.find_all("td")
            if len(cells) < 2:
                continue

            name_cell = cells[0]
            link = name_cell.find("a")
            detail_url = urljoin(base_url, link["href"]) if link is not None and link.get("href") else None
            regulator_id = cls.extract_registration_id(detail_url)
            if not regulator_id:
                continue

            address = clean_text(cells[1].get_text()) if len(cells) >= 3 else None
            date_cell = cells[2] if len(cells) >= 3 else cells[1]
            summaries.append(
                RawSummary(
                    regulator_id=regulator_id,
                    subject_name=clean_text(name_cell.get_text()) or None,
                    action_date=parse_date(date_cell.get_text()),
                    action_type=action_type,
                    detail_url=detail_url,
                    fields={"address": address or None},
                )
            )
        return summaries

    @classmethod
    def parse_detail(cls, html: str) -> dict[str, Any]:
        soup = BeautifulSoup(html, "html.parser")
        details: dict[str, Any] = {}

        for term in soup.find_all("dt"):
            key = EA_DETAIL_LABELS.get(clean_text(term.get_text()))
            value_node = term.find_next_sibling("dd")
            if key and value_node is not None and key not in details:
                details[key] = clean_text(value_node.get_text(" ", strip=True)) or None

        for cell in soup.find_all("td"):
            key = EA_DETAIL_LABELS.get(clean_text(cell.get_text()))
            if not key or key in details:
                continue
            value_node = cell.find_next_sibling("td")
            if value_node is not None:
                details[key] = clean_text(value_node.get_text(" ", strip=True)) or None

        return details

    @staticmethod
    def extract_registration_id(url: str | None) -> str | None:
        if not url:
            return None
        match = EA_REGISTRATION_ID_REGEX.search(url)
        return match.group(1) if match else None
