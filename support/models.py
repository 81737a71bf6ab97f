# support/models.py
from django.core.exceptions import ValidationError
from django.db import models

from accounts.models import TenantOwnedModel, User
from billing.models import Customer

STATUS_OPEN = 'open'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_RESOLVED = 'resolved'
STATUS_CLOSED = 'closed'
STATUS_CHOICES = [
    (STATUS_OPEN, 'Open'),
    (STATUS_IN_PROGRESS, 'In Progress'),
    (STATUS_RESOLVED, 'Resolved'),
    (STATUS_CLOSED, 'Closed'),
]


class SupportTicket(TenantOwnedModel):
    """Customer complaint or request handled by company staff"""

    PRIORITY_LOW = 'low'
    PRIORITY_MEDIUM = 'medium'
    PRIORITY_HIGH = 'high'
    PRIORITY_URGENT = 'urgent'
    PRIORITY_CHOICES = [
        (PRIORITY_LOW, 'Low'),
        (PRIORITY_MEDIUM, 'Medium'),
        (PRIORITY_HIGH, 'High'),
        (PRIORITY_URGENT, 'Urgent'),
    ]

    STATUS_OPEN = STATUS_OPEN
    STATUS_IN_PROGRESS = STATUS_IN_PROGRESS
    STATUS_RESOLVED = STATUS_RESOLVED
    STATUS_CLOSED = STATUS_CLOSED
    STATUS_CHOICES = STATUS_CHOICES

    customer = models.ForeignKey(Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='tickets')
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tickets'
    )
    category = models.CharField(max_length=50, default='general')
    subject = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'support_tickets'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'status'], name='support_tic_company_4d2a1f_idx'),
        ]

    def __str__(self):
        return f"#{self.pk} {self.subject} ({self.status})"

    @property
    def is_open(self):
        return self.status == self.STATUS_OPEN

    @property
    def is_closed(self):
        return self.status == self.STATUS_CLOSED

    @property
    def is_high_priority(self):
        return self.priority in (self.PRIORITY_HIGH, self.PRIORITY_URGENT)


class SupportToken(TenantOwnedModel):
    """Walk-in or phone queue token, optionally tied to a ticket"""

    STATUS_OPEN = STATUS_OPEN
    STATUS_IN_PROGRESS = STATUS_IN_PROGRESS
    STATUS_RESOLVED = STATUS_RESOLVED
    STATUS_CLOSED = STATUS_CLOSED
    STATUS_CHOICES = STATUS_CHOICES

    customer = models.ForeignKey(Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='support_tokens')
    ticket = models.ForeignKey(SupportTicket, on_delete=models.SET_NULL, null=True, blank=True, related_name='tokens')
    token_number = models.CharField(max_length=20)
    category = models.CharField(max_length=50, default='general')
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tokens'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN)
    printed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'support_tokens'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['company', 'token_number'], name='support_tokens_company_number_uniq'),
        ]

    def __str__(self):
        return f"Token {self.token_number} ({self.status})"


class TicketLog(TenantOwnedModel):
    """Append-only history of a ticket"""

    ACTION_CREATED = 'created'
    ACTION_ASSIGNED = 'assigned'
    ACTION_STATUS_CHANGED = 'status_changed'
    ACTION_PRIORITY_CHANGED = 'priority_changed'
    ACTION_COMMENT_ADDED = 'comment_added'
    ACTION_ATTACHMENT_ADDED = 'attachment_added'
    ACTION_CLOSED = 'closed'
    ACTION_REOPENED = 'reopened'
    ACTION_CHOICES = [
        (ACTION_CREATED, 'Ticket Created'),
        (ACTION_ASSIGNED, 'Ticket Assigned'),
        (ACTION_STATUS_CHANGED, 'Status Changed'),
        (ACTION_PRIORITY_CHANGED, 'Priority Changed'),
        (ACTION_COMMENT_ADDED, 'Comment Added'),
        (ACTION_ATTACHMENT_ADDED, 'Attachment Added'),
        (ACTION_CLOSED, 'Ticket Closed'),
        (ACTION_REOPENED, 'Ticket Reopened'),
    ]

    ticket = models.ForeignKey(SupportTicket, on_delete=models.CASCADE, related_name='logs')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='ticket_logs')
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ticket_logs'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.ticket_id} {self.get_action_display()}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Ticket logs cannot be modified')
        super().save(*args, **kwargs)


class TicketAttachment(TenantOwnedModel):
    ticket = models.ForeignKey(SupportTicket, on_delete=models.CASCADE, related_name='attachments')
    file = models.FileField(upload_to='ticket_attachments/%Y/%m/')
    file_name = models.CharField(max_length=255)
    file_size = models.PositiveBigIntegerField(default=0)
    uploaded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ticket_attachments'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ticket_attachments'
        ordering = ['created_at']

    def __str__(self):
        return self.file_name

    @property
    def formatted_size(self):
        size = self.file_size
        for unit in ('B', 'KB', 'MB'):
            if size < 1024:
                return f"{round(size, 2)} {unit}"
            size /= 1024
        return f"{round(size, 2)} GB"
