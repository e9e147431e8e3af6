# app/routers/scan.py
"""
Barcode input endpoints.
Terminals stream raw input per terminal id; the server keeps one ScanSession each.
"""

from fastapi import APIRouter

from app.schemas.scan import NormalizeIn, ScanEventIn, ScanResultOut, ScanSourceIn
from app.services.errors import Result, ValidationError, raise_for_result
from app.services.scan_normalizer import ScanSource, normalize_token, scan_sessions

router = APIRouter()


def _source(value: str) -> ScanSource:
    try:
        return ScanSource(value)
    except ValueError:
        return raise_for_result(Result.failure(ValidationError(f"Unknown scan source '{value}'")))


@router.post("/scan/normalize", response_model=ScanResultOut, summary="Canonical token for typed input")
def normalize(body: NormalizeIn):
    token = normalize_token(body.raw)
    return ScanResultOut(accepted=token is not None, token=token)


@router.post("/scan/sessions/{terminal_id}/events", response_model=ScanResultOut,
             summary="Feed one input event from a terminal")
def scan_event(terminal_id: str, body: ScanEventIn):
    token = scan_sessions.handle(terminal_id, body.raw, _source(body.source), body.timestamp)
    return ScanResultOut(accepted=token is not None, token=token)


@router.post("/scan/sessions/{terminal_id}/activate", summary="Switch a terminal's scan source")
def activate_source(terminal_id: str, body: ScanSourceIn):
    source = _source(body.source)
    scan_sessions.activate(terminal_id, source)
    return {"terminal_id": terminal_id, "source": source.value, "status": "active"}


@router.delete("/scan/sessions/{terminal_id}", summary="End a terminal's scan session")
def end_session(terminal_id: str):
    return {"terminal_id": terminal_id, "ended": scan_sessions.end(terminal_id)}
