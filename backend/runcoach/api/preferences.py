from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from runcoach.db import get_db
from runcoach.schemas.preferences import Preferences
from runcoach.services.store import KeyValueStore, PreferencesStore

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/", response_model=Preferences)
def get_preferences(db: Session = Depends(get_db)):
    return PreferencesStore(KeyValueStore(db)).load()


@router.put("/", response_model=Preferences)
def update_preferences(payload: Preferences, db: Session = Depends(get_db)):
    """Replace the stored preferences; they apply from the next run on."""
    return PreferencesStore(KeyValueStore(db)).save(payload)
