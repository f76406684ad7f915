from django.db import models
from django.utils import timezone

from apps.profiles.models import Person
from .constants import MAX_PRAYER_LENGTH


# PRAYER POST Manager -----------------------------------------------------------------------------------
class PrayerPost(models.Model):
    id = models.BigAutoField(primary_key=True)
    author = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='prayer_posts', verbose_name='Author')
    content = models.CharField(max_length=MAX_PRAYER_LENGTH, verbose_name='Content')
    prayer_count = models.PositiveIntegerField(default=0, verbose_name='Prayer Count')
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name='Created At')
    updated_at = models.DateTimeField(auto_now=True, verbose_name='Updated At')
    deleted_at = models.DateTimeField(null=True, blank=True, verbose_name='Deleted At')

    class Meta:
        verbose_name = 'Prayer Post'
        verbose_name_plural = 'Prayer Posts'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['author', 'created_at'], name='prayer_author_created_idx'),
        ]

    def __str__(self):
        return f"{self.author}: {self.content[:30]}"

    @property
    def is_deleted(self):
        return self.deleted_at is not None


# PRAYER RESPONSE Manager -------------------------------------------------------------------------------
class PrayerResponse(models.Model):
    id = models.BigAutoField(primary_key=True)
    prayer = models.ForeignKey(PrayerPost, on_delete=models.CASCADE, related_name='responses', verbose_name='Prayer')
    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='prayer_responses', verbose_name='Person')
    created_at = models.DateTimeField(default=timezone.now, verbose_name='Created At')

    class Meta:
        verbose_name = 'Prayer Response'
        verbose_name_plural = 'Prayer Responses'
        constraints = [
            models.UniqueConstraint(fields=['prayer', 'person'], name='unique_prayer_response'),
        ]

    def __str__(self):
        return f"{self.person} prayed for {self.prayer_id}"
