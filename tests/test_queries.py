import unittest
from datetime import datetime

from models import SUSPICIOUS, NOT_SUSPICIOUS
from queries import (
    AGE_GROUP_ORDER,
    age_group,
    bucket_by_month,
    bucket_by_weekday,
    months_ago,
    percentage,
    start_of_day,
    total_pages,
    week_start,
)


class TestPercentage(unittest.TestCase):

    def test_zero_denominator(self):
        self.assertEqual(percentage(5, 0), 0)
        self.assertEqual(percentage(0, 0), 0)

    def test_rounding(self):
        self.assertEqual(percentage(1, 3), 33.33)
        self.assertEqual(percentage(1, 3, 1), 33.3)
        self.assertEqual(percentage(2, 2), 100.0)

    def test_complementary_shares_stay_within_hundred(self):
        healthy = percentage(2, 3)
        suspicious = percentage(1, 3)
        self.assertAlmostEqual(healthy + suspicious, 100.0, places=6)


class TestAgeGroup(unittest.TestCase):

    def test_boundaries(self):
        self.assertEqual(age_group(0), '0-5')
        self.assertEqual(age_group(5), '0-5')
        self.assertEqual(age_group(6), '6-10')
        self.assertEqual(age_group(10), '6-10')
        self.assertEqual(age_group(11), '11-15')
        self.assertEqual(age_group(16), '16-18')
        self.assertEqual(age_group(18), '16-18')

    def test_outside_buckets(self):
        self.assertEqual(age_group(19), 'other')
        self.assertEqual(age_group(None), 'other')

    def test_order(self):
        self.assertEqual(AGE_GROUP_ORDER, ['0-5', '6-10', '11-15', '16-18', 'other'])


class TestPagination(unittest.TestCase):

    def test_total_pages(self):
        self.assertEqual(total_pages(0, 10), 0)
        self.assertEqual(total_pages(10, 10), 1)
        self.assertEqual(total_pages(21, 10), 3)
        self.assertEqual(total_pages(1, 100), 1)


class TestTimeWindows(unittest.TestCase):

    def test_week_starts_on_monday(self):
        # Wednesday
        now = datetime(2024, 5, 15, 14, 30)
        self.assertEqual(week_start(now), datetime(2024, 5, 13))
        monday = datetime(2024, 5, 13, 8, 0)
        self.assertEqual(week_start(monday), datetime(2024, 5, 13))

    def test_start_of_day(self):
        self.assertEqual(start_of_day(datetime(2024, 5, 15, 23, 59)), datetime(2024, 5, 15))

    def test_months_ago_crosses_year(self):
        self.assertEqual(months_ago(datetime(2024, 3, 15, 9), 6), datetime(2023, 9, 15, 9))

    def test_months_ago_clamps_day(self):
        self.assertEqual(months_ago(datetime(2024, 8, 31), 6), datetime(2024, 2, 29))


class TestBuckets(unittest.TestCase):

    def test_bucket_by_month_newest_first(self):
        rows = [
            (datetime(2024, 4, 20), NOT_SUSPICIOUS),
            (datetime(2024, 5, 1), SUSPICIOUS),
            (datetime(2024, 5, 2), NOT_SUSPICIOUS),
            (datetime(2024, 5, 3), NOT_SUSPICIOUS),
        ]
        trends = bucket_by_month(rows)
        self.assertEqual([t['month'] for t in trends], ['2024-05', '2024-04'])
        may = trends[0]
        self.assertEqual(may['monthName'], 'May 2024')
        self.assertEqual((may['total'], may['suspicious'], may['healthy']), (3, 1, 2))
        self.assertEqual(may['suspiciousPercentage'], 33.33)

    def test_bucket_by_month_empty(self):
        self.assertEqual(bucket_by_month([]), [])

    def test_bucket_by_weekday_sunday_first(self):
        timestamps = [
            datetime(2024, 5, 15),  # Wednesday
            datetime(2024, 5, 8),   # Wednesday
            datetime(2024, 5, 12),  # Sunday
            datetime(2024, 5, 18),  # Saturday
        ]
        self.assertEqual(bucket_by_weekday(timestamps), [
            {'day': 'Sunday', 'screenings': 1},
            {'day': 'Wednesday', 'screenings': 2},
            {'day': 'Saturday', 'screenings': 1},
        ])


if __name__ == '__main__':
    unittest.main()
