from __future__ import annotations

from typing import List, Sequence

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import alerts, crud, schemas
from ..db import get_session
from ..deps import get_current_user
from ..models import Alert, Movement

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


@router.get("", response_model=List[schemas.AlertRead], summary="List Alerts")
async def list_alerts(
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	return await crud.list_alerts(session, user.id)


@router.get("/check", response_model=schemas.AlertCheckRead, summary="Check Alerts")
async def check_alerts(
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	active = await crud.list_alerts(session, user.id, active_only=True)

	async def fetch_expenses(alert: Alert, period: alerts.Period) -> Sequence[Movement]:
		return await crud.list_expenses_between(session, alert.user_id, period.start, period.end)

	result = await alerts.check_all(active, fetch_expenses)
	return schemas.AlertCheckRead(
		alerts_checked=result.alerts_checked,
		triggered_alerts=[
			schemas.TriggeredAlertRead(
				alert=schemas.AlertRead.model_validate(evaluation.alert),
				triggered=evaluation.triggered,
				total_expenses=evaluation.total_expenses,
				period=schemas.PeriodRead(start=evaluation.period.start, end=evaluation.period.end),
				due=evaluation.due,
			)
			for evaluation in result.triggered_alerts
		],
	)


@router.post("", response_model=schemas.AlertRead, status_code=status.HTTP_201_CREATED, summary="Create Alert")
async def create_alert(
	payload: schemas.AlertCreate,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	return await crud.create_alert(session, user.id, payload)


@router.put("/{alert_id}", response_model=schemas.AlertRead, summary="Update Alert")
async def update_alert(
	alert_id: int,
	payload: schemas.AlertUpdate,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	alert = await crud.get_alert(session, user.id, alert_id)
	return await crud.update_alert(session, alert, payload.model_dump(exclude_unset=True))


@router.delete("/{alert_id}", response_model=schemas.MessageRead, summary="Delete Alert")
async def delete_alert(
	alert_id: int,
	user: schemas.Principal = Depends(get_current_user),
	session: AsyncSession = Depends(get_session),
):
	alert = await crud.get_alert(session, user.id, alert_id)
	await crud.delete_alert(session, alert)
	return {"message": "Alert deleted"}
