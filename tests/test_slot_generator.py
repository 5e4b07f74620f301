import unittest

from lesson_scheduler.core.errors import ConflictReason, ValidationError
from lesson_scheduler.models import AvailabilityBlock, Weekday
from lesson_scheduler.services.availability_store import AvailabilityStore
from lesson_scheduler.services.booking_store import BookingStore
from lesson_scheduler.services.slot_generator import SlotGenerator


def _times(slots):
    return [(row.start_time, row.end_time) for row in slots]


class SlotGeneratorTests(unittest.TestCase):
    def setUp(self):
        self.availability = AvailabilityStore('teacher-1')
        self.block = self.availability.add(
            AvailabilityBlock(weekday=Weekday.SUNDAY, start_minute='14:00', end_minute='18:00', location='Room 25')
        )
        self.bookings = BookingStore('teacher-1', self.availability)
        self.generator = SlotGenerator(self.bookings.checker)

    def test_partitions_block_and_drops_remainder(self):
        slots = self.generator.generate_slots(Weekday.SUNDAY, 45)
        self.assertEqual(
            _times(slots),
            [
                ('14:00', '14:45'),
                ('14:45', '15:30'),
                ('15:30', '16:15'),
                ('16:15', '17:00'),
                ('17:00', '17:45'),
            ],
        )
        self.assertTrue(all(row.block_id == self.block.id for row in slots))
        self.assertTrue(all(row.location == 'Room 25' for row in slots))

    def test_windows_are_contiguous_for_any_duration(self):
        for duration in (1, 7, 30, 45, 60, 100, 240):
            with self.subTest(duration=duration):
                slots = self.generator.generate_slots(Weekday.SUNDAY, duration)
                self.assertEqual(len(slots), 240 // duration)
                self.assertEqual(slots[0].start_minute, self.block.start_minute)
                for previous, current in zip(slots, slots[1:]):
                    self.assertEqual(previous.end_minute, current.start_minute)
                self.assertTrue(all(row.duration_minutes == duration for row in slots))
                self.assertLess(self.block.end_minute - slots[-1].end_minute, duration)

    def test_duration_longer_than_block_gives_nothing(self):
        self.assertEqual(self.generator.generate_slots(Weekday.SUNDAY, 241), [])

    def test_booked_window_is_skipped(self):
        self.bookings.assign('student-1', Weekday.SUNDAY, '15:30', '16:15')
        slots = self.generator.generate_slots(Weekday.SUNDAY, 45)
        self.assertEqual(len(slots), 4)
        self.assertNotIn(('15:30', '16:15'), _times(slots))

    def test_misaligned_booking_removes_every_window_it_touches(self):
        self.bookings.assign('student-1', Weekday.SUNDAY, '15:00', '16:00')
        slots = self.generator.generate_slots(Weekday.SUNDAY, 45)
        self.assertEqual(_times(slots), [('14:00', '14:45'), ('16:15', '17:00'), ('17:00', '17:45')])

    def test_freed_booking_returns_as_slot(self):
        booking = self.bookings.assign('student-1', Weekday.SUNDAY, '15:30', '16:15')
        self.bookings.remove(booking.id)
        slots = self.generator.generate_slots(Weekday.SUNDAY, 45)
        self.assertIn(('15:30', '16:15'), _times(slots))
        self.assertEqual(len(slots), 5)

    def test_fully_booked_block_contributes_nothing(self):
        for start, end in (('14:00', '15:00'), ('15:00', '16:00'), ('16:00', '17:00'), ('17:00', '18:00')):
            self.bookings.assign('student-1', Weekday.SUNDAY, start, end)
        self.assertEqual(self.generator.generate_slots(Weekday.SUNDAY, 30), [])

    def test_no_blocks_is_an_empty_list(self):
        self.assertEqual(self.generator.generate_slots(Weekday.MONDAY, 45), [])

    def test_invalid_duration(self):
        for duration in (0, -45):
            with self.subTest(duration=duration):
                with self.assertRaises(ValidationError):
                    self.generator.generate_slots(Weekday.SUNDAY, duration)

    def test_long_durations_partition_a_full_day_block(self):
        self.availability.add(AvailabilityBlock(weekday=Weekday.MONDAY, start_minute=0, end_minute=1440))
        slots = self.generator.generate_slots(Weekday.MONDAY, 720)
        self.assertEqual([(row.start_minute, row.end_minute) for row in slots], [(0, 720), (720, 1440)])
        self.assertEqual(_times(slots), [('00:00', '12:00'), ('12:00', '24:00')])
        self.assertEqual(len(self.generator.generate_slots(Weekday.MONDAY, 1440)), 1)
        self.assertEqual(self.generator.generate_slots(Weekday.MONDAY, 1441), [])

    def test_multiple_blocks_sorted_by_start_with_stable_ties(self):
        evening = self.availability.add(AvailabilityBlock(weekday=Weekday.SUNDAY, start_minute='19:00', end_minute='20:00'))
        morning = self.availability.add(AvailabilityBlock(weekday=Weekday.SUNDAY, start_minute='09:00', end_minute='10:00'))
        twin = self.availability.add(
            AvailabilityBlock(weekday=Weekday.SUNDAY, start_minute='14:00', end_minute='15:00', location='Hall')
        )
        slots = self.generator.generate_slots(Weekday.SUNDAY, 60)
        self.assertEqual(
            [(row.start_time, row.block_id) for row in slots],
            [
                ('09:00', morning.id),
                ('14:00', self.block.id),
                ('14:00', twin.id),
                ('15:00', self.block.id),
                ('16:00', self.block.id),
                ('17:00', self.block.id),
                ('19:00', evening.id),
            ],
        )

    def test_validate_arbitrary_start(self):
        self.bookings.assign('student-1', Weekday.SUNDAY, '15:30', '16:15')
        self.assertTrue(self.generator.validate_arbitrary_start(Weekday.SUNDAY, '14:10', 45).ok)
        overlapping = self.generator.validate_arbitrary_start(Weekday.SUNDAY, '15:50', 30)
        self.assertEqual(overlapping.reason, ConflictReason.OVERLAPS_BOOKING)
        outside = self.generator.validate_arbitrary_start(Weekday.SUNDAY, '17:30', 45)
        self.assertEqual(outside.reason, ConflictReason.OUT_OF_AVAILABILITY)
        with self.assertRaises(ValidationError):
            self.generator.validate_arbitrary_start(Weekday.SUNDAY, '23:30', 45)
        with self.assertRaises(ValidationError):
            self.generator.validate_arbitrary_start(Weekday.SUNDAY, '14:00', 0)

    def test_suggest_slots_walks_the_week(self):
        self.availability.add(AvailabilityBlock(weekday=Weekday.MONDAY, start_minute='10:00', end_minute='12:00'))
        suggestions = self.generator.suggest_slots(60, limit=5)
        self.assertEqual(
            [(row.weekday, row.start_time) for row in suggestions],
            [
                (Weekday.SUNDAY, '14:00'),
                (Weekday.SUNDAY, '15:00'),
                (Weekday.SUNDAY, '16:00'),
                (Weekday.SUNDAY, '17:00'),
                (Weekday.MONDAY, '10:00'),
            ],
        )
        only_monday = self.generator.suggest_slots(60, weekdays=['monday'])
        self.assertEqual([row.start_time for row in only_monday], ['10:00', '11:00'])
        with self.assertRaises(ValidationError):
            self.generator.suggest_slots(60, limit=0)


if __name__ == '__main__':
    unittest.main()
