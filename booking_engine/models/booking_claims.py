"""Per-provider booking claim rows.

Every booking commit upserts its provider's row first, inside the commit
transaction. The row write lock is held until commit, so concurrent commits
for one provider run their re-check one after another even across worker
processes.
"""

from sqlalchemy import Column, Integer, Table, Uuid

from booking_engine.models.base import UTCDateTime, metadata, utcnow

provider_booking_claims = Table(
    "provider_booking_claims",
    metadata,
    Column("provider_id", Uuid, primary_key=True),
    Column("claim_count", Integer, nullable=False, default=0),
    Column("claimed_at", UTCDateTime, nullable=False, default=utcnow),
)
