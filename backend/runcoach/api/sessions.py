from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from runcoach.db import get_db
from runcoach.schemas.session import SessionRead, SessionSummary
from runcoach.services.gpx_export import gpx_filename, to_gpx
from runcoach.services.store import SessionStore

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_or_404(db: Session, session_id: str):
    session = SessionStore(db).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.get("/", response_model=list[SessionSummary])
def list_sessions(db: Session = Depends(get_db)):
    """Saved sessions, newest first."""
    return [SessionSummary.from_session(s) for s in SessionStore(db).list_sessions()]


@router.get("/{session_id}", response_model=SessionRead)
def get_session(session_id: str, db: Session = Depends(get_db)):
    return SessionRead.from_session(_get_or_404(db, session_id))


@router.get("/{session_id}/gpx")
def export_gpx(session_id: str, db: Session = Depends(get_db)):
    session = _get_or_404(db, session_id)
    return Response(
        content=to_gpx(session),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="{gpx_filename(session)}"'},
    )
