import shutil
import tempfile
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.utils import timezone

from accounts.exceptions import CrossTenantViolation
from accounts.models import User
from accounts.tenancy import TenantContext
from support.models import SupportTicket, SupportToken, TicketAttachment, TicketLog
from support.services import SupportTicketService

from .base import TenantTestCase


class SupportTicketTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.service = SupportTicketService(self.ctx)
        self.operator = self.make_user(User.ROLE_OPERATOR, first_name='Rana', last_name='Das')

    def open_ticket(self, **data):
        data.setdefault('subject', 'No internet since morning')
        return self.service.create_ticket(data, self.operator)

    def test_new_ticket_is_open_and_logged(self):
        customer = self.make_customer()

        ticket = self.open_ticket(customer=customer.pk, category='Connectivity', priority='high')

        self.assertEqual(ticket.company, self.company)
        self.assertEqual(ticket.status, SupportTicket.STATUS_OPEN)
        self.assertEqual(ticket.category, 'connectivity')
        self.assertTrue(ticket.is_high_priority)
        log = ticket.logs.get()
        self.assertEqual(log.action, TicketLog.ACTION_CREATED)
        self.assertEqual(log.user, self.operator)

    def test_defaults_for_category_and_priority(self):
        ticket = self.open_ticket()

        self.assertEqual(ticket.category, 'general')
        self.assertEqual(ticket.priority, SupportTicket.PRIORITY_MEDIUM)

    def test_customer_of_another_company_is_rejected(self):
        foreign = self.make_customer(company=self.other_company)

        with self.assertRaises(ValidationError) as raised:
            self.open_ticket(customer=foreign.pk)
        self.assertIn('customer', raised.exception.message_dict)
        self.assertFalse(SupportTicket.objects.exists())

    def test_assignment_is_logged_with_assignee_name(self):
        ticket = self.open_ticket()

        self.service.assign_ticket(ticket, self.operator, self.operator)

        ticket.refresh_from_db()
        self.assertEqual(ticket.assigned_to, self.operator)
        log = ticket.logs.get(action=TicketLog.ACTION_ASSIGNED)
        self.assertEqual(log.description, 'Ticket assigned to Rana Das')

    def test_assignee_must_belong_to_the_ticket_company(self):
        ticket = self.open_ticket()
        outsider = self.make_user(User.ROLE_OPERATOR, company=self.other_company)

        with self.assertRaises(ValidationError):
            self.service.assign_ticket(ticket, self.operator, outsider)
        ticket.refresh_from_db()
        self.assertIsNone(ticket.assigned_to)

    def test_status_change_records_old_and_new_status(self):
        ticket = self.open_ticket()

        self.service.change_ticket_status(ticket, self.operator, SupportTicket.STATUS_IN_PROGRESS)

        log = ticket.logs.get(action=TicketLog.ACTION_STATUS_CHANGED)
        self.assertEqual(log.description, 'Status changed from open to in_progress')

    def test_unknown_status_is_rejected(self):
        ticket = self.open_ticket()

        with self.assertRaises(ValidationError):
            self.service.change_ticket_status(ticket, self.operator, 'escalated')
        ticket.refresh_from_db()
        self.assertEqual(ticket.status, SupportTicket.STATUS_OPEN)

    def test_close_and_reopen(self):
        ticket = self.open_ticket()

        self.service.close_ticket(ticket, self.operator)
        self.assertEqual(SupportTicket.objects.get(pk=ticket.pk).status, SupportTicket.STATUS_CLOSED)
        self.service.reopen_ticket(ticket, self.operator)
        self.assertEqual(SupportTicket.objects.get(pk=ticket.pk).status, SupportTicket.STATUS_OPEN)

        actions = list(ticket.logs.values_list('action', flat=True))
        self.assertEqual(actions, [TicketLog.ACTION_CREATED, TicketLog.ACTION_CLOSED, TicketLog.ACTION_REOPENED])

    def test_comments_are_logged_and_must_not_be_blank(self):
        ticket = self.open_ticket()

        log = self.service.add_comment(ticket, self.operator, 'Technician dispatched')

        self.assertEqual(log.action, TicketLog.ACTION_COMMENT_ADDED)
        self.assertEqual(log.description, 'Technician dispatched')
        with self.assertRaises(ValidationError):
            self.service.add_comment(ticket, self.operator, '   ')

    def test_ticket_logs_are_append_only(self):
        log = self.open_ticket().logs.get()

        log.description = 'rewritten'
        with self.assertRaises(ValidationError):
            log.save()

    def test_other_tenant_cannot_touch_ticket(self):
        ticket = self.open_ticket()
        beta = SupportTicketService(TenantContext.for_company(self.other_company))

        with self.assertRaises(CrossTenantViolation):
            beta.close_ticket(ticket, self.operator)
        with self.assertRaises(CrossTenantViolation):
            beta.add_comment(ticket, self.operator, 'hello')
        ticket.refresh_from_db()
        self.assertEqual(ticket.status, SupportTicket.STATUS_OPEN)
        self.assertEqual(ticket.logs.count(), 1)

    def test_statistics_ignore_deleted_tickets(self):
        self.open_ticket(priority='urgent', category='billing')
        in_progress = self.open_ticket(priority='low', category='billing')
        self.service.change_ticket_status(in_progress, self.operator, SupportTicket.STATUS_IN_PROGRESS)
        closed = self.open_ticket(priority='low', category='connectivity')
        self.service.close_ticket(closed, self.operator)
        self.service.delete_ticket(self.open_ticket(priority='high'))

        self.assertEqual(
            self.service.get_ticket_stats(),
            {'total': 3, 'open': 1, 'in_progress': 1, 'resolved': 0, 'closed': 1},
        )
        self.assertEqual(self.service.get_tickets_by_priority(), {'low': 2, 'urgent': 1})
        self.assertEqual(self.service.get_tickets_by_category(), {'billing': 2, 'connectivity': 1})

    def test_ticket_report_groups_by_category(self):
        self.open_ticket(category='billing')
        self.service.close_ticket(self.open_ticket(category='billing'), self.operator)
        self.open_ticket(category='connectivity')
        today = timezone.localdate()

        report = self.service.ticket_report(today - timedelta(days=1), today)

        self.assertEqual(report[0]['category'], 'billing')
        self.assertEqual(report[0]['total'], 2)
        self.assertEqual(report[0]['closed'], 1)
        self.assertEqual(report[1]['category'], 'connectivity')
        self.assertEqual(report[1]['open'], 1)
        self.assertEqual(self.service.ticket_report(today - timedelta(days=9), today - timedelta(days=2)), [])
        with self.assertRaises(ValidationError):
            self.service.ticket_report(today, today - timedelta(days=1))


class TicketAttachmentTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root, SUPPORT_MAX_ATTACHMENT_SIZE=1024)
        self.override.enable()
        self.service = SupportTicketService(self.ctx)
        self.operator = self.make_user(User.ROLE_OPERATOR)
        self.ticket = self.service.create_ticket({'subject': 'Router LED blinking'}, self.operator)

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)
        super().tearDown()

    def test_file_is_stored_and_logged(self):
        upload = SimpleUploadedFile('speedtest.png', b'x' * 600, content_type='image/png')

        attachment = self.service.attach_file(self.ticket, self.operator, upload)

        self.assertEqual(attachment.file_name, 'speedtest.png')
        self.assertEqual(attachment.file_size, 600)
        self.assertEqual(attachment.formatted_size, '600 B')
        self.assertTrue(attachment.file.storage.exists(attachment.file.name))
        log = self.ticket.logs.get(action=TicketLog.ACTION_ATTACHMENT_ADDED)
        self.assertEqual(log.description, 'File attached: speedtest.png')

    def test_oversized_file_is_rejected(self):
        upload = SimpleUploadedFile('dump.bin', b'x' * 2048)

        with self.assertRaises(ValidationError):
            self.service.attach_file(self.ticket, self.operator, upload)
        self.assertFalse(TicketAttachment.objects.exists())

    def test_formatted_size_units(self):
        self.assertEqual(TicketAttachment(file_size=1536).formatted_size, '1.5 KB')
        self.assertEqual(TicketAttachment(file_size=3 * 1024 * 1024).formatted_size, '3.0 MB')


class SupportTokenTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.service = SupportTicketService(self.ctx)
        self.operator = self.make_user(User.ROLE_OPERATOR)

    def test_token_numbers_run_per_company_per_day(self):
        stamp = timezone.localdate().strftime('%Y%m%d')
        beta = SupportTicketService(TenantContext.for_company(self.other_company))
        beta_operator = self.make_user(User.ROLE_OPERATOR, company=self.other_company)

        first = self.service.create_token({'category': 'billing'}, self.operator)
        second = self.service.create_token({}, self.operator)
        theirs = beta.create_token({}, beta_operator)

        self.assertEqual(first.token_number, f'{stamp}0001')
        self.assertEqual(second.token_number, f'{stamp}0002')
        self.assertEqual(theirs.token_number, f'{stamp}0001')
        self.assertEqual(first.status, SupportToken.STATUS_OPEN)

    def test_token_may_reference_own_ticket_only(self):
        ticket = self.service.create_ticket({'subject': 'Slow speed'}, self.operator)
        beta = SupportTicketService(TenantContext.for_company(self.other_company))
        beta_operator = self.make_user(User.ROLE_OPERATOR, company=self.other_company)

        token = self.service.create_token({'ticket': ticket.pk}, self.operator)
        self.assertEqual(token.ticket, ticket)
        with self.assertRaises(ValidationError):
            beta.create_token({'ticket': ticket.pk}, beta_operator)

    def test_print_and_status_tracking(self):
        token = self.service.create_token({}, self.operator)

        self.service.mark_token_printed(token)
        self.service.change_token_status(token, SupportToken.STATUS_RESOLVED)

        token.refresh_from_db()
        self.assertTrue(token.printed)
        self.assertEqual(
            self.service.get_token_stats(),
            {'total': 1, 'open': 0, 'in_progress': 0, 'resolved': 1, 'closed': 0},
        )
