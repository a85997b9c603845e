"""
HSE convictions, appeals and notices register fetchers.
"""

from __future__ import annotations

from dataclasses import replace

from app.scraping.fetchers.base import HTTPFetcher
from app.scraping.parsing.html_parsers import (
    HSE_CASE_DETAIL_LABELS,
    HSE_NOTICE_DETAIL_LABELS,
    HSEPageParser,
    parse_date,
    parse_money,
)
from app.scraping.types import (
    Agency,
    EnforcementType,
    EnrichedRecord,
    PageRequest,
    RangeRequest,
    RawSummary,
)

CASE_LIST_PATH = "/{database}/case/case_list.asp?PN={page}&ST=C&EO=LIKE&SN=F&SF=DN&SV=&SO=DODS"
CASE_DETAIL_PATH = "/{database}/case/case_details.asp?SF=CN&SV={regulator_id}"
NOTICE_LIST_PATH = "/notices/notices/notice_list.asp?PN={page}&ST=N&CO=,AND&SN=F&EO==&SF=CTR&SV={country}&SO=DNIS"
NOTICE_DETAIL_PATH = "/notices/notices/notice_details.asp?SF=CN&SV={regulator_id}"


class HSECaseFetcher(HTTPFetcher):
    def list_summaries(self, request: PageRequest | RangeRequest) -> list[RawSummary]:
        if not isinstance(request, PageRequest):
            raise TypeError("HSE case listings are paginated; expected PageRequest.")
        url = self.case_list_url(page=request.page, database=request.database)
        summaries = HSEPageParser.parse_case_rows(self._get_html(url), page=request.page)
        return [replace(summary, fields={**summary.fields, "database": request.database}) for summary in summaries]

    def fetch_detail(self, summary: RawSummary) -> EnrichedRecord:
        database = summary.fields.get("database") or "convictions"
        url = summary.detail_url or self.case_detail_url(database=database, regulator_id=summary.regulator_id)
        details = HSEPageParser.parse_detail(self._get_html(url), labels=HSE_CASE_DETAIL_LABELS)

        attributes = {key: value for key, value in summary.fields.items() if value is not None}
        attributes.update({key: value for key, value in details.items() if value is not None})
        return EnrichedRecord(
            agency=Agency.HSE,
            enforcement_type=EnforcementType.CASE,
            regulator_id=summary.regulator_id,
            subject_name=summary.subject_name,
            action_date=summary.action_date,
            action_type=summary.action_type,
            fine_amount=parse_money(details.get("total_fine")),
            costs_amount=parse_money(details.get("total_costs")),
            regulator_url=url,
            attributes=attributes,
        )

    def case_list_url(self, *, page: int, database: str) -> str:
        return self.settings.hse_base_url.rstrip("/") + CASE_LIST_PATH.format(database=database, page=page)

    def case_detail_url(self, *, database: str, regulator_id: str) -> str:
        return self.settings.hse_base_url.rstrip("/") + CASE_DETAIL_PATH.format(
            database=database,
            regulator_id=regulator_id,
        )


class HSENoticeFetcher(HTTPFetcher):
    def list_summaries(self, request: PageRequest | RangeRequest) -> list[RawSummary]:
        if not isinstance(request, PageRequest):
            raise TypeError("HSE notice listings are paginated; expected PageRequest.")
        url = self.notice_list_url(page=request.page, country=request.country or "All")
        return HSEPageParser.parse_notice_rows(self._get_html(url), page=request.page)

    def fetch_detail(self, summary: RawSummary) -> EnrichedRecord:
        url = summary.detail_url or self.notice_detail_url(regulator_id=summary.regulator_id)
        details = HSEPageParser.parse_detail(self._get_html(url), labels=HSE_NOTICE_DETAIL_LABELS)

        attributes = {key: value for key, value in summary.fields.items() if value is not None}
        attributes.update({key: value for key, value in details.items() if value is not None})
        compliance_date = parse_date(details.get("compliance_date"))
        if compliance_date is not None:
            attributes["compliance_date"] = compliance_date.isoformat()
        return EnrichedRecord(
            agency=Agency.HSE,
            enforcement_type=EnforcementType.NOTICE,
            regulator_id=summary.regulator_id,
            subject_name=summary.subject_name,
            action_date=summary.action_date,
            action_type=summary.action_type,
            regulator_url=url,
            attributes=attributes,
        )

    def notice_list_url(self, *, page: int, country: str) -> str:
        return self.settings.hse_base_url.rstrip("/") + NOTICE_LIST_PATH.format(page=page, country=country)

    def notice_detail_url(self, *, regulator_id: str) -> str:
        return self.settings.hse_base_url.rstrip("/") + NOTICE_DETAIL_PATH.format(regulator_id=regulator_id)
