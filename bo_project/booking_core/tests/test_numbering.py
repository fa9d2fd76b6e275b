import threading
import unittest

from django.db import connection, connections
from django.test import TestCase, TransactionTestCase

from booking_core.models import NumberSequence
from booking_core.services.numbering import HALL_BOOKING, INVOICE, next_number


class NextNumberTests(TestCase):

    def test_numbers_are_sequential_per_prefix_and_year(self):
        self.assertEqual(next_number(HALL_BOOKING, 2030), "HB-2030-0001")
        self.assertEqual(next_number(HALL_BOOKING, 2030), "HB-2030-0002")
        self.assertEqual(next_number(INVOICE, 2030), "INV-2030-0001")
        self.assertEqual(next_number(HALL_BOOKING, 2031), "HB-2031-0001")

    def test_counter_row_holds_last_value(self):
        for _ in range(5):
            next_number(HALL_BOOKING, 2030)
        seq = NumberSequence.objects.get(prefix=HALL_BOOKING, year=2030)
        self.assertEqual(seq.last_value, 5)

    def test_many_numbers_are_distinct(self):
        numbers = [next_number(INVOICE, 2030) for _ in range(200)]
        self.assertEqual(len(set(numbers)), 200)


@unittest.skipUnless(connection.vendor == "postgresql",
                     "row locking needs a real database server")
class ConcurrentNumberingTests(TransactionTestCase):

    def test_parallel_callers_never_share_a_number(self):
        next_number(HALL_BOOKING, 2030)  # counter row exists up front
        results = []
        lock = threading.Lock()

        def worker():
            try:
                for _ in range(10):
                    number = next_number(HALL_BOOKING, 2030)
                    with lock:
                        results.append(number)
            finally:
                connections.close_all()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(results), 80)
        self.assertEqual(len(set(results)), 80)
