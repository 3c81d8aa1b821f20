# students/management/commands/seed_catalog.py
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from students.models import AddOn, Subject


SUBJECTS = [
    {'code': 'MATH', 'name': 'Mathematics', 'class_levels': ['o-level', 'a-level'], 'base_fee': '5000'},
    {'code': 'ENG', 'name': 'English', 'class_levels': ['o-level', 'a-level'], 'base_fee': '4000'},
    {'code': 'PHY', 'name': 'Physics', 'class_levels': ['o-level', 'a-level'], 'base_fee': '6000'},
    {'code': 'CHEM', 'name': 'Chemistry', 'class_levels': ['o-level', 'a-level'], 'base_fee': '6000'},
    {'code': 'BIO', 'name': 'Biology', 'class_levels': ['o-level', 'a-level'], 'base_fee': '5500'},
    {'code': 'CS', 'name': 'Computer Science', 'class_levels': ['o-level', 'a-level'], 'base_fee': '5500'},
    {'code': 'URDU', 'name': 'Urdu', 'class_levels': ['o-level'], 'base_fee': '3000'},
    {'code': 'ISL', 'name': 'Islamiyat', 'class_levels': ['o-level'], 'base_fee': '3000'},
    {'code': 'PST', 'name': 'Pakistan Studies', 'class_levels': ['o-level'], 'base_fee': '3000'},
    {'code': 'ECON', 'name': 'Economics', 'class_levels': ['a-level'], 'base_fee': '5000'},
]

ADD_ONS = [
    {'name': 'Registration Fees', 'category': 'registration', 'price': '5000'},
    {'name': 'Resource Pack', 'category': 'resources', 'price': '4000'},
    {'name': 'Online Access', 'category': 'online', 'price': '6900'},
]


class Command(BaseCommand):
    help = 'Seed the subject and add-on catalog'

    def add_arguments(self, parser):
        parser.add_argument(
            '--update-prices',
            action='store_true',
            help='Overwrite fees of catalog entries that already exist',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        update_prices = options['update_prices']

        for order, data in enumerate(SUBJECTS, start=1):
            subject, created = Subject.objects.get_or_create(
                code=data['code'],
                defaults={
                    'name': data['name'],
                    'class_levels': data['class_levels'],
                    'base_fee': Decimal(data['base_fee']),
                    'description': f"{data['name']} subject",
                    'order': order,
                }
            )
            if created:
                self.stdout.write(f'Created subject: {subject.name}')
            elif update_prices:
                subject.base_fee = Decimal(data['base_fee'])
                subject.save(update_fields=['base_fee'])
                self.stdout.write(f'Updated subject fee: {subject.name}')

        for order, data in enumerate(ADD_ONS, start=1):
            add_on, created = AddOn.objects.get_or_create(
                name=data['name'],
                defaults={
                    'category': data['category'],
                    'price': Decimal(data['price']),
                    'order': order,
                }
            )
            if created:
                self.stdout.write(f'Created add-on: {add_on.name}')
            elif update_prices:
                add_on.price = Decimal(data['price'])
                add_on.save(update_fields=['price'])
                self.stdout.write(f'Updated add-on price: {add_on.name}')

        self.stdout.write(self.style.SUCCESS(
            f'Catalog ready: {Subject.objects.count()} subjects, {AddOn.objects.count()} add-ons'
        ))
