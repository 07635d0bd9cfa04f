"""Audit Routes — filtered listing, summary and CSV export of the moderation trail.

Invariants:
    - Reading requires access_all_logs or audit_territories; export requires
      export_all_data or audit_territories. Refusals are 403 {allowed, reason}
    - Invalid filters (naive or inverted dates, severity out of range) are 400
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.api.dependencies import get_current_moderator
from tribunal.core.records import AuthorizationDecision, Moderator
from tribunal.infrastructure.database import get_db
from tribunal.schemas.audit import AuditQuery, AuditSummaryResponse
from tribunal.schemas.moderation import AuditEntryResponse
from tribunal.services.audit_service import AuditService

router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


def _forbidden(decision: AuthorizationDecision) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=decision.to_dict(),
    )


@router.get("")
async def list_audit_entries(
    query: Annotated[AuditQuery, Query()],
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    service = AuditService(db)
    decision = service.authorize_read(actor)
    if not decision.allowed:
        return _forbidden(decision)
    entries = await service.list_entries(query.to_filters())
    return {
        "entries": [
            AuditEntryResponse.from_record(e).model_dump(mode="json")
            for e in entries
        ],
        "total": len(entries),
    }


@router.get("/summary", response_model=AuditSummaryResponse)
async def summarize_audit_entries(
    query: Annotated[AuditQuery, Query()],
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    service = AuditService(db)
    decision = service.authorize_read(actor)
    if not decision.allowed:
        return _forbidden(decision)
    return await service.summarize(query.to_filters())


@router.get("/export")
async def export_audit_entries(
    query: Annotated[AuditQuery, Query()],
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    service = AuditService(db)
    decision = service.authorize_export(actor)
    if not decision.allowed:
        return _forbidden(decision)
    csv_text = await service.export(query.to_filters())
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="audit-log.csv"'},
    )
