from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import UserManager, get_user_manager
from core.log import get_logger
from db.database import get_async_session
from db.users import User
from routers.users import create_account, username_taken
from schemas.users import SetupAdminRequest, SetupAdminResponse

router = APIRouter()
logger = get_logger("setup")


async def has_active_admin(db: AsyncSession) -> bool:
    res = await db.execute(
        select(User.id).where(User.is_superuser == True, User.is_active == True).limit(1)  # noqa: E712
    )
    return res.first() is not None


@router.get("/status")
async def setup_status(db: AsyncSession = Depends(get_async_session)):
    return {"needs_setup": not await has_active_admin(db)}


@router.post("/admin", response_model=SetupAdminResponse)
async def setup_admin(
    payload: SetupAdminRequest,
    db: AsyncSession = Depends(get_async_session),
    user_manager: UserManager = Depends(get_user_manager),
):
    """
    Bootstrap the first administrator.

    Only allowed while there is no active superuser. An existing account with
    the same email is promoted (its password is left untouched); otherwise a
    new account is created.
    """
    if await has_active_admin(db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="An administrator already exists")

    res = await db.execute(select(User).where(User.email == payload.email))
    existing = res.scalar_one_or_none()
    if existing is not None:
        if await username_taken(db, payload.username, exclude_id=existing.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
        existing.username = payload.username
        existing.full_name = payload.full_name
        existing.is_superuser = True
        existing.is_active = True
        existing.is_verified = True
        await db.commit()
        logger.info("Promoted %s (%s) to administrator", existing.username, existing.id)
        return SetupAdminResponse(success=True, message="User updated successfully", user_id=existing.id)

    payload.is_superuser = True
    created = await create_account(user_manager, db, payload)
    logger.info("Administrator %s (%s) created", created.username, created.id)
    return SetupAdminResponse(success=True, message="Administrator created successfully", user_id=created.id)
