from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="video",
            name="is_visible",
            field=models.BooleanField(default=True, null=True),
        ),
        migrations.AddField(
            model_name="video",
            name="display_date",
            field=models.DateField(blank=True, null=True),
        ),
    ]
