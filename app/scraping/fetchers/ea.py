"""
Environment Agency enforcement-action register fetcher.
"""

from __future__ import annotations

from app.scraping.fetchers.base import HTTPFetcher
from app.scraping.parsing.html_parsers import EARegisterParser, parse_money
from app.scraping.types import (
    Agency,
    EnforcementType,
    EnrichedRecord,
    PageRequest,
    RangeRequest,
    RawSummary,
)

ACTION_TYPE_SLUGS = {
    "court_case": "court-case",
    "caution": "caution",
    "enforcement_notice": "enforcement-notice",
}
ACTION_TYPE_URI = "http://environment.data.gov.uk/public-register/enforcement-action/def/action-type/{slug}"


class EARegisterFetcher(HTTPFetcher):
    """
    Searches the register once per action type, then reads each registration page.
    """

    enforcement_type: str = EnforcementType.CASE

    def list_summaries(self, request: PageRequest | RangeRequest) -> list[RawSummary]:
        if not isinstance(request, RangeRequest):
            raise TypeError("EA register searches are date ranges; expected RangeRequest.")
        url = self.search_url()
        html = self._get_html(url, params=self.search_params(request))
        return EARegisterParser.parse_summary_rows(html, base_url=url, action_type=request.action_type)

    def fetch_detail(self, summary: RawSummary) -> EnrichedRecord:
        url = summary.detail_url or f"{self.search_url()}/{summary.regulator_id}"
        details = EARegisterParser.parse_detail(self._get_html(url))

        attributes = {key: value for key, value in summary.fields.items() if value is not None}
        attributes.update({key: value for key, value in details.items() if value is not None})
        return EnrichedRecord(
            agency=Agency.EA,
            enforcement_type=self.enforcement_type,
            regulator_id=summary.regulator_id,
            subject_name=summary.subject_name,
            action_date=summary.action_date,
            action_type=summary.action_type,
            fine_amount=parse_money(details.get("total_fine")),
            regulator_url=url,
            attributes=attributes,
        )

    def search_url(self) -> str:
        return self.settings.ea_base_url.rstrip("/") + "/registration"

    @staticmethod
    def search_params(request: RangeRequest) -> dict[str, str]:
        slug = ACTION_TYPE_SLUGS.get(request.action_type, request.action_type.replace("_", "-"))
        return {
            "name-search": "",
            "actionType": ACTION_TYPE_URI.format(slug=slug),
            "offenceType": "",
            "agencyFunction": "",
            "after": request.date_from.isoformat(),
            "before": request.date_to.isoformat(),
        }


class EANoticeFetcher(EARegisterFetcher):
    enforcement_type = EnforcementType.NOTICE
