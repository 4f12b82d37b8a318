"""Client number allocation backed by an autoincrement table."""

from sqlalchemy.orm import Session

from freightmatch.db.models.user import ClientIdSequence, User

CLIENT_ID_FORMAT = "C-%04d"


def format_client_id(value: int) -> str:
    return CLIENT_ID_FORMAT % value


def next_client_id(db: Session) -> str:
    """
    Draw the next value from client_id_sequence. The database hands out each
    value once, so concurrent callers never see the same number. Values already
    held by users (assigned before the sequence existed) are skipped.
    """
    while True:
        row = ClientIdSequence()
        db.add(row)
        db.flush()
        candidate = format_client_id(row.id)
        taken = db.query(User.id).filter(User.client_id == candidate).first()
        if not taken:
            return candidate
