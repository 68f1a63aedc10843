from datetime import date

from django.test import SimpleTestCase

from core.constants import CoveragePeriodType
from fees.periods import add_period, coverage_end, current_period, describe_coverage


class PeriodArithmeticTests(SimpleTestCase):

    def test_monthly_coverage_ends_day_before_next_boundary(self):
        self.assertEqual(coverage_end(date(2024, 1, 1), 1, CoveragePeriodType.MONTH), date(2024, 1, 31))
        self.assertEqual(coverage_end(date(2024, 1, 15), 3, CoveragePeriodType.MONTH), date(2024, 4, 14))

    def test_month_steps_clamp_to_short_months(self):
        self.assertEqual(add_period(date(2024, 1, 31), 1, CoveragePeriodType.MONTH), date(2024, 2, 29))
        self.assertEqual(add_period(date(2023, 1, 31), 1, CoveragePeriodType.MONTH), date(2023, 2, 28))

    def test_weeks_and_years(self):
        self.assertEqual(coverage_end(date(2024, 3, 4), 2, CoveragePeriodType.WEEK), date(2024, 3, 17))
        self.assertEqual(coverage_end(date(2024, 2, 29), 1, CoveragePeriodType.YEAR), date(2025, 2, 27))

    def test_current_period_rolls_forward_to_anchor(self):
        period = current_period(date(2024, 1, 1), 1, CoveragePeriodType.MONTH, date(2024, 3, 15))
        self.assertEqual(period.start, date(2024, 3, 1))
        self.assertEqual(period.end, date(2024, 3, 31))

    def test_current_period_includes_its_last_day(self):
        period = current_period(date(2024, 1, 1), 1, CoveragePeriodType.MONTH, date(2024, 1, 31))
        self.assertEqual(period.start, date(2024, 1, 1))

    def test_anchor_before_origin_yields_first_period(self):
        period = current_period(date(2024, 6, 1), 3, CoveragePeriodType.MONTH, date(2024, 1, 1))
        self.assertEqual((period.start, period.end), (date(2024, 6, 1), date(2024, 8, 31)))

    def test_no_drift_after_clamped_month(self):
        period = current_period(date(2024, 1, 31), 1, CoveragePeriodType.MONTH, date(2024, 3, 31))
        self.assertEqual(period.start, date(2024, 3, 31))

    def test_invalid_value_rejected(self):
        with self.assertRaises(ValueError):
            current_period(date(2024, 1, 1), 0, CoveragePeriodType.MONTH, date(2024, 1, 1))

    def test_describe_coverage(self):
        self.assertEqual(describe_coverage(1, CoveragePeriodType.MONTH), "1 month")
        self.assertEqual(describe_coverage(3, CoveragePeriodType.MONTH), "3 months")
