import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Encounter",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("patient_id", models.UUIDField(db_index=True)),
                ("provider_id", models.BigIntegerField(db_index=True)),
                ("appointment_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("type", models.CharField(max_length=64)),
                (
                    "mode",
                    models.CharField(
                        choices=[
                            ("in_person", "In person"),
                            ("telemedicine", "Telemedicine"),
                            ("phone", "Phone"),
                            ("messaging", "Messaging"),
                        ],
                        default="in_person",
                        max_length=16,
                    ),
                ),
                ("start_time", models.DateTimeField(db_index=True)),
                ("end_time", models.DateTimeField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=255, null=True)),
                ("rendering_provider_id", models.BigIntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="scheduled",
                        max_length=16,
                    ),
                ),
                ("started_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "encounters_encounter",
                "indexes": [
                    models.Index(fields=["patient_id", "start_time"], name="enc_patient_start_idx"),
                    models.Index(fields=["provider_id", "start_time"], name="enc_provider_start_idx"),
                ],
            },
        ),
    ]
