"""Audit and repair (status, coordination_status) pairings on stored requests."""

import logging

from sqlalchemy.orm import Session

from freightmatch.core.state_machine import CANONICAL_COORDINATION, is_consistent_pair
from freightmatch.db.base import utcnow
from freightmatch.db.enums import RequestStatus
from freightmatch.db.models.transport_request import TransportRequest
from freightmatch.services.workflow import configured_substatuses

logger = logging.getLogger(__name__)


def find_inconsistent(db: Session) -> tuple[int, list[tuple[TransportRequest, str]]]:
    """Return (rows checked, [(request, expected coordination status)])."""
    substatuses = configured_substatuses(db)
    rows = db.query(TransportRequest).all()
    bad = []
    for req in rows:
        if is_consistent_pair(req.status, req.coordination_status, substatuses):
            continue
        try:
            expected = CANONICAL_COORDINATION[RequestStatus(req.status)].value
        except ValueError:
            # unknown status value; treat as open
            expected = CANONICAL_COORDINATION[RequestStatus.OPEN].value
        bad.append((req, expected))
    return len(rows), bad


def repair_inconsistent(db: Session) -> tuple[int, list[tuple[TransportRequest, str]]]:
    """Rewrite every violating row to the canonical coordination status for its status."""
    checked, bad = find_inconsistent(db)
    now = utcnow()
    for req, expected in bad:
        if req.status not in {s.value for s in RequestStatus}:
            req.status = RequestStatus.OPEN.value
        logger.info("Repairing %s: %s/%s -> %s", req.reference_id, req.status, req.coordination_status, expected)
        req.coordination_status = expected
        req.coordination_updated_at = now
    db.commit()
    return checked, bad
