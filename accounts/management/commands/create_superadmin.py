import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = 'Create the platform super admin user'

    def add_arguments(self, parser):
        parser.add_argument('--username', default='superadmin')
        parser.add_argument('--email', default='admin@example.com')
        parser.add_argument(
            '--password',
            default=os.environ.get('NETBILL_SUPERADMIN_PASSWORD'),
            help='Defaults to $NETBILL_SUPERADMIN_PASSWORD'
        )

    def handle(self, *args, **options):
        User = get_user_model()

        username = options['username']
        password = options['password']

        if User.objects.filter(username=username).exists():
            self.stdout.write(
                self.style.WARNING('SuperAdmin already exists!')
            )
            return

        if not password:
            raise CommandError('A password is required (--password or NETBILL_SUPERADMIN_PASSWORD)')

        User.objects.create_superuser(
            username=username,
            email=options['email'],
            password=password,
            role=User.ROLE_SUPERADMIN
        )
        self.stdout.write(
            self.style.SUCCESS(f'SuperAdmin {username} created successfully!')
        )
