from django.db import models


class Video(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    category = models.CharField(max_length=100, null=True, blank=True)

    # Either a blob in the object store or a Vimeo reference backs the record
    video_url = models.URLField(max_length=1000, null=True, blank=True)
    blob_url = models.URLField(max_length=1000, null=True, blank=True)
    thumbnail_url = models.URLField(max_length=1000, null=True, blank=True)

    file_name = models.CharField(max_length=255, null=True, blank=True)
    file_size = models.BigIntegerField(null=True, blank=True)  # bytes
    duration = models.FloatField(null=True, blank=True)  # seconds

    sort_order = models.IntegerField(null=True, blank=True)

    # Hidden records stay in the database but drop out of the public gallery
    is_visible = models.BooleanField(null=True, default=True)
    display_date = models.DateField(null=True, blank=True)

    vimeo_id = models.CharField(max_length=32, null=True, blank=True)
    vimeo_hash = models.CharField(max_length=64, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "videos"

    def __str__(self):
        return self.title or self.file_name or f"video {self.pk}"
