from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud, schemas
from ..db import get_session
from ..deps import get_current_user

router = APIRouter(prefix="/api/movements", tags=["Movements"])


@router.get("", response_model=List[schemas.MovementRead], summary="List Movements")
async def list_movements(
	year: int | None = Query(default=None, ge=1970, le=9999),
	month: int | None = Query(default=None, ge=1, le=12),
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	return await crud.list_movements(session, user.id, year=year, month=month)


@router.post("", response_model=schemas.MovementRead, status_code=status.HTTP_201_CREATED, summary="Add Movement")
async def create_movement(
	payload: schemas.MovementCreate,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	return await crud.create_movement(session, user.id, payload)


@router.get("/{movement_id}", response_model=schemas.MovementRead, summary="Get Movement")
async def get_movement(
	movement_id: int,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	return await crud.get_movement(session, user.id, movement_id)


@router.put("/{movement_id}", response_model=schemas.MovementRead, summary="Update Movement")
async def update_movement(
	movement_id: int,
	payload: schemas.MovementUpdate,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	movement = await crud.get_movement(session, user.id, movement_id)
	return await crud.update_movement(session, movement, payload.model_dump(exclude_unset=True))


@router.delete("/{movement_id}", response_model=schemas.MessageRead, summary="Delete Movement")
async def delete_movement(
	movement_id: int,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	movement = await crud.get_movement(session, user.id, movement_id)
	await crud.delete_movement(session, movement)
	return {"message": "Movement deleted"}
