# Gate Custody Ledger: database models
# Import all models here for SQLAlchemy discovery

from app.models.person import Person                            # noqa
from app.models.asset import Asset                              # noqa
from app.models.custody_transaction import CustodyTransaction   # noqa
from app.models.presence_record import PresenceRecord           # noqa
