# schemas/transfer_schemas.py
"""
Pydantic v2 schemas for the Transfer Concierge
Covers the itinerary draft and the HTTP request/response bodies
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from enum import Enum


# ============================================
# Enums
# ============================================

class DraftStatus(str, Enum):
    COLLECTING = "collecting"
    COMPLETE = "complete"


class VehicleCategory(str, Enum):
    CAR = "car"
    MINIVAN = "minivan"
    BUS = "bus"


# ============================================
# Itinerary Draft
# ============================================

DRAFT_FIELDS = ("from_", "to", "passengers", "luggage", "date", "time")


def _coerce_count(value: Any) -> Optional[int]:
    """Accept ints and numeric strings; anything else is treated as absent"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class ItineraryDraft(BaseModel):
    """
    Partially filled transfer request accumulated across chat turns.
    Only `from` is aliased; every other field keeps its wire name.
    """
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None
    passengers: Optional[int] = None
    luggage: Optional[int] = None
    date: Optional[str] = None  # YYYY-MM-DD
    time: Optional[str] = None  # HH:MM
    status: DraftStatus = DraftStatus.COLLECTING

    @property
    def is_complete(self) -> bool:
        return bool(
            self.from_ and self.to and (self.date or self.time)
            and self.passengers is not None and self.luggage is not None
        )

    def merge(self, updates: Dict[str, Any]) -> "ItineraryDraft":
        """
        Merge new values into a copy of this draft (last write wins).
        None values never clear a field; status is always re-derived.
        """
        merged = self.model_dump(exclude={"status"})

        for key, value in (updates or {}).items():
            field_name = "from_" if key == "from" else key
            if field_name not in DRAFT_FIELDS or value is None:
                continue
            if field_name in ("passengers", "luggage"):
                value = _coerce_count(value)
                if value is None:
                    continue
            elif isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            else:
                value = str(value)
            merged[field_name] = value

        draft = ItineraryDraft(**merged)
        draft.status = DraftStatus.COMPLETE if draft.is_complete else DraftStatus.COLLECTING
        return draft

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ============================================
# Chat API
# ============================================

class ProcessMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    message: Optional[str] = None
    user_language: Optional[str] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None


class ProcessMessageResponse(BaseModel):
    """Reply for one chat turn"""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    response: str
    extracted_data: Dict[str, Any]
    needs_clarification: bool
    session_id: Optional[str] = None


class AnalyzeTransfersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    transfer_data: Optional[Dict[str, Any]] = None
    user_language: Optional[str] = None


class AnalyzeTransfersResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Optional[List[Dict[str, Any]]] = None


class TranscriptionResponse(BaseModel):
    transcription: str


# ============================================
# Chat History
# ============================================

class ChatSessionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: Optional[str] = None
