# students/tests/test_models.py
from django.test import TestCase
from django.utils import timezone

from students.models import Student, Subject


class StudentRollNumberTest(TestCase):
    def setUp(self):
        self.prefix = f"STU-{timezone.now().year}-"

    def _student(self, **kwargs):
        return Student.objects.create(first_name='Sara', last_name='Ali', class_level='o-level', **kwargs)

    def test_first_roll_number_of_the_year(self):
        self.assertEqual(self._student().roll_number, f"{self.prefix}0001")

    def test_sequence_passes_9999(self):
        self._student(roll_number=f"{self.prefix}9999")
        self._student(roll_number=f"{self.prefix}10000")

        self.assertEqual(self._student().roll_number, f"{self.prefix}10001")


class SubjectClassLevelTest(TestCase):
    def test_offered_everywhere_without_levels(self):
        subject = Subject(name='Mathematics', code='MATH', base_fee=5000)
        self.assertTrue(subject.is_offered_at('a-level'))

    def test_restricted_levels(self):
        subject = Subject(name='Urdu', code='URDU', base_fee=3000, class_levels=['o-level'])
        self.assertTrue(subject.is_offered_at('o-level'))
        self.assertFalse(subject.is_offered_at('a-level'))
