import unittest

from lesson_scheduler.core.errors import ConflictError, ConflictReason, ValidationError
from lesson_scheduler.models import AvailabilityBlock, Booking, Weekday
from lesson_scheduler.services.availability_store import AvailabilityStore
from lesson_scheduler.services.booking_store import BookingStore


class ConflictCheckerTests(unittest.TestCase):
    def setUp(self):
        self.availability = AvailabilityStore('teacher-1')
        self.availability.add(AvailabilityBlock(weekday=Weekday.SUNDAY, start_minute='14:00', end_minute='18:00'))
        self.bookings = BookingStore('teacher-1', self.availability)
        self.checker = self.bookings.checker

    def test_containment_requires_a_single_block(self):
        self.assertTrue(self.checker.is_within_availability(Weekday.SUNDAY, '14:00', '18:00'))
        self.assertTrue(self.checker.is_within_availability(Weekday.SUNDAY, '15:00', '15:45'))
        self.assertFalse(self.checker.is_within_availability(Weekday.SUNDAY, '13:45', '14:30'))
        self.assertFalse(self.checker.is_within_availability(Weekday.SUNDAY, '17:30', '18:15'))
        self.assertFalse(self.checker.is_within_availability(Weekday.MONDAY, '15:00', '15:45'))

    def test_adjacent_blocks_do_not_combine(self):
        self.availability.add(AvailabilityBlock(weekday=Weekday.SUNDAY, start_minute='18:00', end_minute='20:00'))
        self.assertFalse(self.checker.is_within_availability(Weekday.SUNDAY, '17:30', '18:30'))

    def test_outside_availability_without_bookings(self):
        result = self.checker.validate_assignment(Weekday.SUNDAY, '13:00', '13:45')
        self.assertFalse(result.ok)
        self.assertEqual(result.reason, ConflictReason.OUT_OF_AVAILABILITY)

    def test_overlap_detection_excludes_given_booking(self):
        booking = self.bookings.assign('student-1', Weekday.SUNDAY, '15:30', '16:15')

        self.assertTrue(self.checker.has_booking_conflict(Weekday.SUNDAY, '16:00', '16:45'))
        self.assertFalse(self.checker.has_booking_conflict(Weekday.SUNDAY, '16:15', '17:00'))
        self.assertFalse(self.checker.has_booking_conflict(Weekday.SUNDAY, '14:45', '15:30'))
        self.assertFalse(self.checker.has_booking_conflict(Weekday.SUNDAY, '15:30', '16:15', exclude_booking_id=booking.id))

        result = self.checker.validate_assignment(Weekday.SUNDAY, '16:00', '16:45')
        self.assertFalse(result.ok)
        self.assertEqual(result.reason, ConflictReason.OVERLAPS_BOOKING)
        self.assertEqual([row.id for row in result.conflicts], [booking.id])
        self.assertTrue(self.checker.validate_assignment(Weekday.SUNDAY, '15:30', '16:15', exclude_id=booking.id).ok)

    def test_availability_is_reported_before_overlap(self):
        self.bookings.load(
            [
                Booking(
                    weekday=Weekday.SUNDAY,
                    start_minute='13:00',
                    end_minute='13:45',
                    student_id='legacy',
                    teacher_id='teacher-1',
                )
            ]
        )
        result = self.checker.validate_assignment(Weekday.SUNDAY, '13:00', '13:45')
        self.assertEqual(result.reason, ConflictReason.OUT_OF_AVAILABILITY)

    def test_valid_assignment(self):
        result = self.checker.validate_assignment('sunday', 840, 885)
        self.assertTrue(result.ok)
        self.assertIsNone(result.reason)
        self.assertEqual(result.as_dict(), {'ok': True, 'reason': None, 'conflicts': []})

    def test_malformed_input_raises_validation_error(self):
        with self.assertRaises(ValidationError):
            self.checker.validate_assignment(Weekday.SUNDAY, '15:00', '14:00')
        with self.assertRaises(ValidationError):
            self.checker.validate_assignment(Weekday.SUNDAY, '1500', '16:00')
        with self.assertRaises(ValidationError):
            self.checker.validate_assignment('funday', '15:00', '16:00')

    def test_ensure_assignment_raises_with_reason(self):
        with self.assertRaises(ConflictError) as ctx:
            self.checker.ensure_assignment(Weekday.SUNDAY, '13:00', '13:45')
        self.assertEqual(ctx.exception.reason, ConflictReason.OUT_OF_AVAILABILITY)
        self.checker.ensure_assignment(Weekday.SUNDAY, '14:00', '14:45')

    def test_inactive_block_gives_no_availability(self):
        block = self.availability.blocks_for_day(Weekday.SUNDAY)[0]
        self.availability.update(block.id, is_active=False)
        result = self.checker.validate_assignment(Weekday.SUNDAY, '14:00', '14:45')
        self.assertEqual(result.reason, ConflictReason.OUT_OF_AVAILABILITY)


if __name__ == '__main__':
    unittest.main()
