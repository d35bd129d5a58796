"""Out-of-band maintenance: daily archive rotation of the presence log."""

from fastapi import APIRouter, Depends

from app.deps import get_archive_store, get_log_store
from app.exceptions import PresenceError
from app.repositories.sql import SqlArchiveStore, SqlPresenceLogStore
from app.services.archive_service import rotate_presence_log

router = APIRouter()


@router.post("/maintenance/rotate", summary="Archive and clear the live presence log")
def rotate(
    log: SqlPresenceLogStore = Depends(get_log_store),
    archive: SqlArchiveStore = Depends(get_archive_store),
):
    try:
        result = rotate_presence_log(log, archive)
    except PresenceError as e:
        return {"success": False, "message": str(e)}
    return {"success": True, "data": result.model_dump()}
