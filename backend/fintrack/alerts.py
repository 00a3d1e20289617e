"""Spending alert evaluation.

Everything here is pure given its inputs: expenses are fetched by the caller
(or by the fetcher passed to ``check_all``) and ``last_sent`` is only read.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from .db import utcnow
from .models import Alert, Movement

logger = logging.getLogger(__name__)

LOOKBACK = {
	"daily": relativedelta(days=1),
	"weekly": relativedelta(days=7),
	"monthly": relativedelta(months=1),
}

ExpenseFetcher = Callable[[Alert, "Period"], Awaitable[Sequence[Movement]]]


@dataclass(frozen=True)
class Period:
	start: datetime
	end: datetime


@dataclass(frozen=True)
class Evaluation:
	alert: Alert
	triggered: bool
	total_expenses: float
	period: Period
	due: bool = False


@dataclass
class CheckResult:
	alerts_checked: int = 0
	triggered_alerts: list[Evaluation] = field(default_factory=list)


def compute_window(frequency: str, now: Optional[datetime] = None) -> Period:
	"""Lookback window ending at ``now``; monthly windows follow the calendar."""
	now = now or utcnow()
	try:
		lookback = LOOKBACK[frequency]
	except KeyError:
		raise ValueError(f"Unknown alert frequency: {frequency}") from None
	return Period(start=now - lookback, end=now)


def evaluate(alert: Alert, expenses: Iterable[Movement], period: Period) -> Evaluation:
	total = float(sum(expense.amount for expense in expenses))
	return Evaluation(
		alert=alert,
		triggered=total > alert.threshold,
		total_expenses=total,
		period=period,
	)


def should_send(alert: Alert, now: Optional[datetime] = None) -> bool:
	"""Whether a notification for this alert is due, based on when it last went out."""
	if not alert.active:
		return False
	if alert.last_sent is None:
		return True
	now = now or utcnow()
	last = alert.last_sent
	if alert.frequency == "daily":
		return now.date() != last.date()
	if alert.frequency == "weekly":
		return (now - last) // timedelta(days=7) >= 1
	if alert.frequency == "monthly":
		return (now.year, now.month) != (last.year, last.month)
	return False


async def check_all(
	alerts: Iterable[Alert],
	fetch_expenses: ExpenseFetcher,
	now: Optional[datetime] = None,
) -> CheckResult:
	now = now or utcnow()
	result = CheckResult()
	for alert in alerts:
		result.alerts_checked += 1
		period = compute_window(alert.frequency, now)
		expenses = await fetch_expenses(alert, period)
		evaluation = evaluate(alert, expenses, period)
		if not evaluation.triggered:
			continue
		logger.info(
			"Alert %s triggered: %.2f spent against threshold %.2f (%s)",
			alert.id, evaluation.total_expenses, alert.threshold, alert.frequency,
		)
		result.triggered_alerts.append(replace(evaluation, due=should_send(alert, now)))
	return result
