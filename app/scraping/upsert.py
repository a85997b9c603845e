"""
Idempotent create-or-classify pipeline for enriched enforcement records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from app.domain.scrape_session import EnforcementRecordInput, StoredEnforcementRecord
from app.scraping.errors import DuplicateError, ProcessingError
from app.scraping.logging_utils import log_event
from app.scraping.types import EnrichedRecord, NaturalKey, RecordOutcome, ScrapedItemSummary

logger = logging.getLogger(__name__)


class EnforcementRecordRepository(Protocol):
    """
    Domain repository with atomic create-or-conflict semantics.
    """

    def create(self, record: EnforcementRecordInput) -> StoredEnforcementRecord:
        ...

    def find_by_natural_key(self, natural_key: NaturalKey) -> StoredEnforcementRecord | None:
        ...

    def touch_last_synced(self, entity: StoredEnforcementRecord) -> StoredEnforcementRecord:
        ...


@dataclass(frozen=True)
class UpsertResult:
    outcome: str
    regulator_id: str
    item: ScrapedItemSummary | None = None
    entity: StoredEnforcementRecord | None = None
    error: str | None = None


def summarize_record(record: EnrichedRecord) -> ScrapedItemSummary:
    return ScrapedItemSummary(
        regulator_id=record.regulator_id,
        subject_name=record.subject_name,
        action_date=record.action_date,
        amount=record.fine_amount,
    )


class UpsertPipeline:
    """
    Classifies each record as created, existing or error. Never raises per record.
    """

    def __init__(self, repository: EnforcementRecordRepository) -> None:
        self._repository = repository

    def write(self, record: EnrichedRecord) -> UpsertResult:
        item = summarize_record(record)
        try:
            payload = self.transform(record)
            entity = self._repository.create(payload)
        except DuplicateError as exc:
            return self._classify_existing(record, item, exc.natural_key)
        except ProcessingError as exc:
            return self._error(record, item, str(exc))
        except Exception as exc:
            return self._error(record, item, f"{type(exc).__name__}: {exc}")

        return UpsertResult(
            outcome=RecordOutcome.CREATED,
            regulator_id=record.regulator_id,
            item=item,
            entity=entity,
        )

    @staticmethod
    def transform(record: EnrichedRecord) -> EnforcementRecordInput:
        regulator_id = (record.regulator_id or "").strip()
        if not regulator_id:
            raise ProcessingError("Record has no regulator identifier.")
        offender_name = (record.subject_name or "").strip()
        if not offender_name:
            raise ProcessingError(f"Record {regulator_id} has no offender name.")

        return EnforcementRecordInput(
            natural_key=NaturalKey(
                agency=record.agency,
                enforcement_type=record.enforcement_type,
                regulator_id=regulator_id,
            ),
            offender_name=offender_name,
            action_date=record.action_date,
            action_type=record.action_type,
            fine_amount=record.fine_amount,
            costs_amount=record.costs_amount,
            regulator_url=record.regulator_url,
            attributes=dict(record.attributes),
        )

    def _classify_existing(
        self,
        record: EnrichedRecord,
        item: ScrapedItemSummary,
        natural_key: NaturalKey,
    ) -> UpsertResult:
        entity: StoredEnforcementRecord | None = None
        try:
            entity = self._repository.find_by_natural_key(natural_key)
            if entity is None:
                log_event(
                    logger,
                    logging.WARNING,
                    "duplicate_record_not_found",
                    **natural_key.to_dict(),
                )
            else:
                entity = self._repository.touch_last_synced(entity)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "duplicate_record_touch_failed",
                error=f"{type(exc).__name__}: {exc}",
                **natural_key.to_dict(),
            )

        return UpsertResult(
            outcome=RecordOutcome.EXISTING,
            regulator_id=record.regulator_id,
            item=item,
            entity=entity,
        )

    @staticmethod
    def _error(record: EnrichedRecord, item: ScrapedItemSummary, message: str) -> UpsertResult:
        log_event(
            logger,
            logging.WARNING,
            "record_upsert_failed",
            agency=record.agency,
            enforcement_type=record.enforcement_type,
            regulator_id=record.regulator_id,
            error=message,
        )
        return UpsertResult(
            outcome=RecordOutcome.ERROR,
            regulator_id=record.regulator_id,
            item=item,
            error=f"{record.regulator_id}: {message}",
        )
