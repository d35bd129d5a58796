# Mountain entry/exit log — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.member import Member                        # noqa
from app.models.presence_record import PresenceRecord       # noqa
from app.models.presence_archive import PresenceArchive     # noqa
from app.models.alert import Alert                          # noqa
