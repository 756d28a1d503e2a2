from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import UserManager, current_active_superuser, exceptions, get_user_manager
from core.log import get_logger
from db.database import get_async_session
from db.users import User
from schemas.users import AdminUserCreate, UserCreate, UserRead

router = APIRouter()
logger = get_logger("users")


async def username_taken(db: AsyncSession, username: str, exclude_id: UUID = None) -> bool:
    stmt = select(User.id).where(func.lower(User.username) == username.lower())
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    res = await db.execute(stmt.limit(1))
    return res.first() is not None


async def create_account(
    user_manager: UserManager,
    db: AsyncSession,
    payload: AdminUserCreate,
) -> User:
    """Create a verified, active account; 409 on a taken email or username."""
    if await username_taken(db, payload.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    try:
        return await user_manager.create(
            UserCreate(
                email=payload.email,
                password=payload.password,
                username=payload.username,
                full_name=payload.full_name,
                is_superuser=payload.is_superuser,
                is_active=True,
                is_verified=True,
            ),
            safe=False,
        )
    except exceptions.UserAlreadyExists:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    except exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e.reason))


@router.get("/", response_model=List[UserRead])
async def list_users(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_superuser),
):
    res = await db.execute(select(User).order_by(User.created_at.desc()))
    return [UserRead.model_validate(u) for u in res.scalars().all()]


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: AdminUserCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_superuser),
    user_manager: UserManager = Depends(get_user_manager),
):
    created = await create_account(user_manager, db, payload)
    logger.info("Admin %s created user %s", user.username, created.username)
    return UserRead.model_validate(created)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    user: User = Depends(current_active_superuser),
    user_manager: UserManager = Depends(get_user_manager),
):
    if user_id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    try:
        target = await user_manager.get(user_id)
    except exceptions.UserNotExists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await user_manager.delete(target)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
