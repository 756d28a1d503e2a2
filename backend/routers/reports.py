from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from core.daily_reset import reset_daily_quantities
from core.reports import (
    PDF_MOVEMENTS_LIMIT,
    WORD_MOVEMENTS_LIMIT,
    render_csv_report,
    render_pdf_report,
    render_word_report,
    report_filename,
)
from db.database import get_async_session
from db.users import User
from routers.common import fetch_items, fetch_movements, resolve_read_scope
from routers.inventory import compute_summary

router = APIRouter()


def _attachment(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _load(db: AsyncSession, user: User, warehouse_id: Optional[str]):
    scope = await resolve_read_scope(db, user, warehouse_id)
    await reset_daily_quantities(db, warehouse_id=scope)
    items = await fetch_items(db, scope)
    return scope, items


@router.get("/csv")
async def csv_report(
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    _scope, items = await _load(db, user, warehouse_id)
    return _attachment(render_csv_report(items), "text/csv; charset=utf-8", report_filename("inventory", "csv"))


@router.get("/word")
async def word_report(
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    scope, items = await _load(db, user, warehouse_id)
    movements = await fetch_movements(db, scope, limit=WORD_MOVEMENTS_LIMIT)
    summary = await compute_summary(db, scope)
    html = render_word_report(items, movements, summary)
    return _attachment(html, "application/msword", report_filename("inventory_report", "doc"))


@router.get("/pdf")
async def pdf_report(
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    scope, items = await _load(db, user, warehouse_id)
    movements = await fetch_movements(db, scope, limit=PDF_MOVEMENTS_LIMIT)
    summary = await compute_summary(db, scope)
    pdf = render_pdf_report(items, movements, summary)
    return _attachment(pdf, "application/pdf", report_filename("inventory_report", "pdf"))
