from django.db import models
from django.utils import timezone

from apps.profiles.models import Person
from apps.gatherings.models import Group
from .constants import MAX_MESSAGE_LENGTH


# HUDDLE MESSAGE Manager --------------------------------------------------------------------------------
class HuddleMessage(models.Model):
    id = models.BigAutoField(primary_key=True)
    huddle = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='messages', verbose_name='Huddle')
    sender = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='huddle_messages', verbose_name='Sender')
    content = models.CharField(max_length=MAX_MESSAGE_LENGTH, verbose_name='Content')
    created_at = models.DateTimeField(default=timezone.now, verbose_name='Created At')
    deleted_at = models.DateTimeField(null=True, blank=True, verbose_name='Deleted At')

    class Meta:
        verbose_name = 'Huddle Message'
        verbose_name_plural = 'Huddle Messages'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['huddle', 'created_at'], name='huddle_message_timeline_idx'),
        ]

    def __str__(self):
        return f"{self.sender} in {self.huddle_id}: {self.content[:30]}"

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])
