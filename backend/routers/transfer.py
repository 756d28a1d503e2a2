from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from core.csv_io import TEMPLATE_CSV, CsvFormatError, decode_csv_bytes, export_items_csv, parse_inventory_csv
from core.log import get_logger
from core.reports import report_filename
from db.database import get_async_session
from db.inventory.item import InventoryItem as InventoryItemModel
from db.users import User
from routers.common import fetch_items, resolve_read_scope, resolve_write_warehouse
from routers.inventory import add_item_with_movement, name_key
from schemas.inventory import ImportResult, ImportRowError

router = APIRouter()
logger = get_logger("transfer")


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResult)
async def import_inventory_csv(
    file: UploadFile = File(...),
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Create one item per valid CSV row in the selected warehouse.

    Rows that fail validation (or repeat a code / name already in the
    warehouse or earlier in the file) are reported with their line number;
    the rest are still imported.
    """
    wh = await resolve_write_warehouse(db, user, warehouse_id)

    raw = await file.read()
    try:
        parsed = parse_inventory_csv(decode_csv_bytes(raw))
    except CsvFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    res = await db.execute(
        select(InventoryItemModel.code, InventoryItemModel.name).where(InventoryItemModel.warehouse_id == wh.id)
    )
    existing = res.all()
    codes = {code for (code, _name) in existing}
    names = {name_key(name) for (_code, name) in existing}

    errors = [ImportRowError(line=e.line, message=e.message) for e in parsed.errors]
    imported = 0
    try:
        for row in parsed.rows:
            if row.code in codes:
                errors.append(ImportRowError(line=row.line, message=f"Duplicate code: {row.code}"))
                continue
            if name_key(row.name) in names:
                errors.append(ImportRowError(line=row.line, message=f"Duplicate name: {row.name}"))
                continue
            add_item_with_movement(
                db,
                user=user,
                warehouse_id=wh.id,
                code=row.code,
                name=row.name,
                quantity=row.quantity,
                price=row.price,
                description=f"Imported product: {row.name}",
            )
            codes.add(row.code)
            names.add(name_key(row.name))
            imported += 1
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("import_inventory_csv failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to import CSV: {e}")

    errors.sort(key=lambda e: e.line)
    logger.info(
        "CSV import into warehouse %s: %d imported, %d failed (%s)",
        wh.id, imported, len(errors), file.filename,
    )
    return ImportResult(imported=imported, failed=len(errors), errors=errors)


@router.get("/export")
async def export_inventory_csv(
    warehouse_id: Optional[str] = None,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    scope = await resolve_read_scope(db, user, warehouse_id)
    rows = await fetch_items(db, scope)
    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No products to export")
    return _csv_response(export_items_csv([it for (it, _wh_name) in rows]), report_filename("inventory", "csv"))


@router.get("/import/template")
async def import_template(user: User = Depends(current_active_user)):
    return _csv_response(TEMPLATE_CSV, "inventory_example.csv")
