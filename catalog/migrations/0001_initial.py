from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Video",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, null=True)),
                ("category", models.CharField(blank=True, max_length=100, null=True)),
                ("video_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("blob_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("thumbnail_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("file_name", models.CharField(blank=True, max_length=255, null=True)),
                ("file_size", models.BigIntegerField(blank=True, null=True)),
                ("duration", models.FloatField(blank=True, null=True)),
                ("sort_order", models.IntegerField(blank=True, null=True)),
                ("vimeo_id", models.CharField(blank=True, max_length=32, null=True)),
                ("vimeo_hash", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "videos",
            },
        ),
    ]
