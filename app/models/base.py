from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    pass

# set client side: sqlite's CURRENT_TIMESTAMP only has second resolution,
# which would make newest-first ordering ambiguous
def utcnow() -> datetime:
    return datetime.now(timezone.utc)
