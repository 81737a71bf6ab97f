# support/services.py
import logging
import os

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone as tz

from accounts.models import Company
from billing.services import TenantService

from .forms import SupportTicketForm, SupportTokenForm
from .models import STATUS_CHOICES, SupportTicket, SupportToken, TicketAttachment, TicketLog

logger = logging.getLogger(__name__)

VALID_STATUSES = [value for value, _ in STATUS_CHOICES]


def _display_name(user):
    return user.get_full_name() or user.username


class SupportTicketService(TenantService):
    """Tickets, queue tokens and their action log"""

    def _tickets(self, company=None):
        company = self._company_for(company)
        return self.ctx.scope(SupportTicket).filter(company=company, deleted_at__isnull=True)

    def _tokens(self, company=None):
        company = self._company_for(company)
        return self.ctx.scope(SupportToken).filter(company=company)

    def _status_counts(self, queryset):
        return queryset.aggregate(
            total=Count('id'),
            **{status: Count('id', filter=Q(status=status)) for status in VALID_STATUSES}
        )

    # Tickets

    def create_ticket(self, data, user, company=None):
        company = self._company_for(company)
        form = SupportTicketForm(data, company=company)
        if not form.is_valid():
            raise ValidationError(form.errors.as_data())

        ticket = form.save(commit=False)
        ticket.company = company
        ticket.status = SupportTicket.STATUS_OPEN
        with transaction.atomic():
            self.ctx.save(ticket)
            self.log_ticket_action(ticket, user, TicketLog.ACTION_CREATED, 'Ticket created')

        logger.info(f"Ticket #{ticket.pk} opened for {company.name}: {ticket.subject}")
        return ticket

    def assign_ticket(self, ticket, user, assignee):
        self._check_owned(ticket)
        if assignee.company_id != ticket.company_id:
            raise ValidationError({'assigned_to': f"{assignee.username} does not belong to this company"})

        with transaction.atomic():
            ticket.assigned_to = assignee
            self.ctx.save(ticket, update_fields=['assigned_to', 'updated_at'])
            self.log_ticket_action(
                ticket, user, TicketLog.ACTION_ASSIGNED, f"Ticket assigned to {_display_name(assignee)}"
            )

        logger.info(f"Ticket #{ticket.pk} assigned to {assignee.username}")
        return ticket

    def change_ticket_status(self, ticket, user, status):
        if status not in VALID_STATUSES:
            raise ValidationError({'status': f"Invalid status: {status}"})
        self._check_owned(ticket)

        old_status = ticket.status
        with transaction.atomic():
            ticket.status = status
            self.ctx.save(ticket, update_fields=['status', 'updated_at'])
            self.log_ticket_action(
                ticket, user, TicketLog.ACTION_STATUS_CHANGED, f"Status changed from {old_status} to {status}"
            )

        logger.info(f"Ticket #{ticket.pk} status {old_status} -> {status}")
        return ticket

    def close_ticket(self, ticket, user):
        return self._set_status(ticket, user, SupportTicket.STATUS_CLOSED, TicketLog.ACTION_CLOSED, 'Ticket closed')

    def reopen_ticket(self, ticket, user):
        return self._set_status(ticket, user, SupportTicket.STATUS_OPEN, TicketLog.ACTION_REOPENED, 'Ticket reopened')

    def _set_status(self, ticket, user, status, action, description):
        self._check_owned(ticket)
        with transaction.atomic():
            ticket.status = status
            self.ctx.save(ticket, update_fields=['status', 'updated_at'])
            self.log_ticket_action(ticket, user, action, description)
        logger.info(f"Ticket #{ticket.pk} {action}")
        return ticket

    def delete_ticket(self, ticket):
        """Soft delete; the ticket drops out of lists and statistics"""
        self._check_owned(ticket)
        ticket.deleted_at = tz.now()
        self.ctx.save(ticket, update_fields=['deleted_at', 'updated_at'])
        logger.info(f"Ticket #{ticket.pk} deleted")
        return ticket

    def add_comment(self, ticket, user, comment):
        self._check_owned(ticket)
        comment = (comment or '').strip()
        if not comment:
            raise ValidationError({'comment': 'Comment cannot be empty'})
        return self.log_ticket_action(ticket, user, TicketLog.ACTION_COMMENT_ADDED, comment)

    def attach_file(self, ticket, user, uploaded_file):
        self._check_owned(ticket)
        if uploaded_file.size > settings.SUPPORT_MAX_ATTACHMENT_SIZE:
            raise ValidationError({'file': f"File exceeds {settings.SUPPORT_MAX_ATTACHMENT_SIZE} bytes"})

        file_name = os.path.basename(uploaded_file.name)
        with transaction.atomic():
            attachment = self.ctx.create(
                TicketAttachment,
                company_id=ticket.company_id,
                ticket=ticket,
                file=uploaded_file,
                file_name=file_name,
                file_size=uploaded_file.size,
                uploaded_by=user,
            )
            self.log_ticket_action(ticket, user, TicketLog.ACTION_ATTACHMENT_ADDED, f"File attached: {file_name}")
        return attachment

    def log_ticket_action(self, ticket, user, action, description):
        return self.ctx.create(
            TicketLog,
            company_id=ticket.company_id,
            ticket=ticket,
            user=user,
            action=action,
            description=description,
        )

    # Tokens

    def create_token(self, data, user, company=None):
        company = self._company_for(company)
        form = SupportTokenForm(data, company=company)
        if not form.is_valid():
            raise ValidationError(form.errors.as_data())

        token = form.save(commit=False)
        token.company = company
        token.status = SupportToken.STATUS_OPEN
        with transaction.atomic():
            token.token_number = self.next_token_number(company)
            self.ctx.save(token)

        logger.info(f"Token {token.token_number} issued by {user.username} for {company.name}")
        return token

    def next_token_number(self, company, on_date=None):
        """YYYYMMDDNNNN, counting per company per day"""
        on_date = on_date or tz.localdate()
        prefix = f"{on_date:%Y%m%d}"
        with transaction.atomic():
            # Serialise numbering within the company
            Company.objects.select_for_update().get(pk=company.pk)
            last = (
                self.ctx.scope(SupportToken)
                .filter(company=company, token_number__startswith=prefix)
                .order_by('-token_number')
                .values_list('token_number', flat=True)
                .first()
            )
        sequence = int(last[-4:]) + 1 if last else 1
        return f"{prefix}{sequence:04d}"

    def change_token_status(self, token, status):
        if status not in VALID_STATUSES:
            raise ValidationError({'status': f"Invalid status: {status}"})
        self._check_owned(token)
        token.status = status
        self.ctx.save(token, update_fields=['status'])
        return token

    def mark_token_printed(self, token):
        self._check_owned(token)
        token.printed = True
        self.ctx.save(token, update_fields=['printed'])
        return token

    # Statistics

    def get_ticket_stats(self, company=None):
        return self._status_counts(self._tickets(company))

    def get_token_stats(self, company=None):
        return self._status_counts(self._tokens(company))

    def get_tickets_by_priority(self, company=None):
        rows = self._tickets(company).values('priority').annotate(count=Count('id')).order_by('priority')
        return {row['priority']: row['count'] for row in rows}

    def get_tickets_by_category(self, company=None):
        rows = self._tickets(company).values('category').annotate(count=Count('id')).order_by('category')
        return {row['category']: row['count'] for row in rows}

    def ticket_report(self, start_date, end_date, company=None):
        """Per-category status counts for tickets opened between the dates, inclusive"""
        if start_date > end_date:
            raise ValidationError({'end_date': 'End date cannot be before start date'})
        rows = (
            self._tickets(company)
            .filter(created_at__date__range=(start_date, end_date))
            .values('category')
            .annotate(
                total=Count('id'),
                **{status: Count('id', filter=Q(status=status)) for status in VALID_STATUSES}
            )
            .order_by('category')
        )
        return list(rows)
