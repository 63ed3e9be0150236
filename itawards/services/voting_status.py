from datetime import datetime

from sqlalchemy.orm import Session

from itawards.config import LOGGER
from itawards.constants import VOTING_STATUS_KEY
from itawards.models.setting import Setting

OPEN = "open"
CLOSED = "closed"


def is_voting_open(session: Session) -> bool:
    """Check whether votes are being accepted. Voting is open until closed."""
    setting = session.query(Setting).filter_by(key=VOTING_STATUS_KEY).first()
    return setting is None or setting.value == OPEN


def set_voting_open(session: Session, is_open: bool) -> None:
    """Open or close voting."""
    value = OPEN if is_open else CLOSED
    setting = session.query(Setting).filter_by(key=VOTING_STATUS_KEY).first()

    if setting:
        setting.value = value
        setting.updated_at = datetime.now()
    else:
        setting = Setting(key=VOTING_STATUS_KEY, value=value, updated_at=datetime.now())
        session.add(setting)

    LOGGER.info(f"Voting is now {value}")
