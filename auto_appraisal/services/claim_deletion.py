"""
Claim delete cascade.

There is no transaction across the three phases. Storage removals that fail
are recorded and skipped, so a run can leave orphaned objects in the
bucket. The claim row is removed last.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from auto_appraisal.db.store import RemoteStore
from auto_appraisal.errors import StoreError

log = structlog.get_logger()


@dataclass
class DeletionReport:
    claim_id: str
    objects_removed: List[str] = field(default_factory=list)
    objects_failed: List[str] = field(default_factory=list)
    photo_rows_deleted: bool = False
    claim_deleted: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "claim_id": self.claim_id,
            "objects_removed": self.objects_removed,
            "objects_failed": self.objects_failed,
            "photo_rows_deleted": self.photo_rows_deleted,
            "claim_deleted": self.claim_deleted,
            "error": self.error,
        }


async def delete_claim_cascade(store: RemoteStore, claim_id: str, storage_paths: List[str]) -> DeletionReport:
    report = DeletionReport(claim_id=claim_id)

    for path in storage_paths:
        try:
            await store.remove_object(path)
            report.objects_removed.append(path)
        except StoreError as e:
            log.warning("claims.delete.object_failed", claim_id=claim_id, path=path, error=e.message)
            report.objects_failed.append(path)

    try:
        await store.delete_photos_for_claim(claim_id)
        report.photo_rows_deleted = True
    except StoreError as e:
        # the claim delete below still runs and reports its own outcome
        log.warning("claims.delete.photo_rows_failed", claim_id=claim_id, error=e.message)

    try:
        await store.delete_claim(claim_id)
        report.claim_deleted = True
    except StoreError as e:
        report.error = e.message

    log.info("claims.delete.finished", **report.to_dict())
    return report
