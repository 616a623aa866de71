import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from runcoach.api.deps import get_coach_client
from runcoach.core.errors import CoachConfigError, CoachServiceError
from runcoach.db import get_db
from runcoach.schemas.coach import ChatEntry, ChatReply, ChatRequest
from runcoach.services.coach import CoachClient, describe_session
from runcoach.services.store import ChatLog, KeyValueStore, SessionStore

router = APIRouter(prefix="/coach", tags=["coach"])


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.post("/chat", response_model=ChatReply)
def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    coach: CoachClient = Depends(get_coach_client),
):
    log = ChatLog(KeyValueStore(db))
    history = log.history()
    context = describe_session(SessionStore(db).latest())
    try:
        reply = coach.chat(payload.message, history, context)
    except CoachConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except CoachServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))

    log.append("user", payload.message, ts=_now_ms())
    log.append("assistant", reply, ts=_now_ms())
    return ChatReply(reply=reply)


@router.get("/history", response_model=list[ChatEntry])
def chat_history(db: Session = Depends(get_db)):
    return ChatLog(KeyValueStore(db)).history()
