import unittest
from datetime import datetime, timedelta

from fintrack.alerts import Period, check_all, compute_window, evaluate, should_send
from fintrack.models import Alert, Movement

NOW = datetime(2024, 6, 15, 10, 30)


def make_alert(threshold=1000, frequency="daily", last_sent=None, active=True, id=1):
	return Alert(id=id, user_id=1, threshold=threshold, frequency=frequency, last_sent=last_sent, active=active)


def expense(amount, when=NOW):
	return Movement(user_id=1, type="expense", amount=amount, date=when)


class TestComputeWindow(unittest.TestCase):
	def test_window_ends_now_and_starts_before(self):
		for frequency in ("daily", "weekly", "monthly"):
			period = compute_window(frequency, NOW)
			self.assertEqual(period.end, NOW)
			self.assertLess(period.start, period.end)

	def test_daily_and_weekly_lookback(self):
		self.assertEqual(compute_window("daily", NOW).start, NOW - timedelta(days=1))
		self.assertEqual(compute_window("weekly", NOW).start, NOW - timedelta(days=7))

	def test_monthly_rolls_back_the_year_in_january(self):
		start = compute_window("monthly", datetime(2024, 1, 15, 9, 0)).start
		self.assertEqual(start, datetime(2023, 12, 15, 9, 0))

	def test_monthly_clamps_to_end_of_shorter_month(self):
		start = compute_window("monthly", datetime(2024, 3, 31)).start
		self.assertEqual(start, datetime(2024, 2, 29))

	def test_unknown_frequency(self):
		with self.assertRaises(ValueError):
			compute_window("hourly", NOW)


class TestEvaluate(unittest.TestCase):
	def setUp(self):
		self.period = compute_window("daily", NOW)

	def test_exactly_threshold_does_not_trigger(self):
		result = evaluate(make_alert(1000), [expense(600), expense(400)], self.period)
		self.assertEqual(result.total_expenses, 1000)
		self.assertFalse(result.triggered)

	def test_above_threshold_triggers(self):
		result = evaluate(make_alert(1000), [expense(600), expense(400.01)], self.period)
		self.assertTrue(result.triggered)
		self.assertAlmostEqual(result.total_expenses, 1000.01)
		self.assertEqual(result.period, self.period)

	def test_no_expenses(self):
		result = evaluate(make_alert(0.01), [], self.period)
		self.assertEqual(result.total_expenses, 0)
		self.assertFalse(result.triggered)


class TestShouldSend(unittest.TestCase):
	def test_never_sent(self):
		for frequency in ("daily", "weekly", "monthly"):
			self.assertTrue(should_send(make_alert(frequency=frequency), NOW))

	def test_inactive_never_sends(self):
		for last_sent in (None, NOW - timedelta(days=400)):
			self.assertFalse(should_send(make_alert(active=False, last_sent=last_sent), NOW))

	def test_daily_uses_calendar_day(self):
		self.assertFalse(should_send(make_alert(frequency="daily", last_sent=datetime(2024, 6, 15, 0, 5)), NOW))
		late = datetime(2024, 6, 14, 23, 59)
		self.assertTrue(should_send(make_alert(frequency="daily", last_sent=late), datetime(2024, 6, 15, 0, 1)))
		self.assertTrue(should_send(make_alert(frequency="daily", last_sent=datetime(2023, 6, 15, 10)), NOW))

	def test_weekly_needs_seven_full_days(self):
		almost = NOW - timedelta(days=6, hours=23)
		self.assertFalse(should_send(make_alert(frequency="weekly", last_sent=almost), NOW))
		self.assertTrue(should_send(make_alert(frequency="weekly", last_sent=NOW - timedelta(days=7)), NOW))

	def test_monthly_uses_calendar_month(self):
		self.assertFalse(should_send(make_alert(frequency="monthly", last_sent=datetime(2024, 6, 1)), NOW))
		self.assertTrue(should_send(make_alert(frequency="monthly", last_sent=datetime(2024, 5, 31)), NOW))
		january = datetime(2024, 1, 2)
		self.assertTrue(should_send(make_alert(frequency="monthly", last_sent=datetime(2023, 12, 30)), january))


class TestCheckAll(unittest.IsolatedAsyncioTestCase):
	async def test_collects_only_triggered_alerts(self):
		daily = make_alert(threshold=400, frequency="daily", id=1)
		monthly = make_alert(threshold=5000, frequency="monthly", id=2)
		calls = []

		async def fetch(alert, period):
			calls.append((alert.id, period))
			return [expense(500)]

		result = await check_all([daily, monthly], fetch, now=NOW)

		self.assertEqual(result.alerts_checked, 2)
		self.assertEqual(len(result.triggered_alerts), 1)
		triggered = result.triggered_alerts[0]
		self.assertIs(triggered.alert, daily)
		self.assertEqual(triggered.total_expenses, 500)
		self.assertEqual(triggered.period, Period(start=NOW - timedelta(days=1), end=NOW))
		self.assertTrue(triggered.due)
		self.assertEqual([alert_id for alert_id, _ in calls], [1, 2])
		self.assertEqual(calls[1][1].start, datetime(2024, 5, 15, 10, 30))

	async def test_does_not_touch_last_sent(self):
		sent = NOW - timedelta(hours=1)
		alert = make_alert(threshold=1, frequency="daily", last_sent=sent)

		async def fetch(alert, period):
			return [expense(10)]

		result = await check_all([alert], fetch, now=NOW)
		self.assertFalse(result.triggered_alerts[0].due)
		self.assertEqual(alert.last_sent, sent)

	async def test_no_alerts(self):
		async def fetch(alert, period):
			raise AssertionError("should not fetch")

		result = await check_all([], fetch, now=NOW)
		self.assertEqual(result.alerts_checked, 0)
		self.assertEqual(result.triggered_alerts, [])


if __name__ == "__main__":
	unittest.main()
