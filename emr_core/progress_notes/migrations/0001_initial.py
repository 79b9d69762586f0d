import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("encounters", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ProgressNote",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("patient_id", models.UUIDField(db_index=True)),
                ("author_id", models.BigIntegerField(db_index=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("finalized", "Finalized"), ("amended", "Amended")],
                        db_index=True,
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("subjective", models.TextField(blank=True, null=True)),
                ("objective", models.TextField(blank=True, null=True)),
                ("assessment", models.TextField(blank=True, null=True)),
                ("plan", models.TextField(blank=True, null=True)),
                ("summary", models.CharField(blank=True, max_length=500, null=True)),
                ("attachments", models.JSONField(blank=True, default=list)),
                ("autosaved_at", models.DateTimeField(blank=True, null=True)),
                ("finalized_at", models.DateTimeField(blank=True, null=True)),
                ("signature_hash", models.CharField(blank=True, max_length=512, null=True)),
                (
                    "encounter",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="progress_notes",
                        to="encounters.encounter",
                    ),
                ),
            ],
            options={
                "db_table": "progress_notes_progress_note",
                "indexes": [
                    models.Index(fields=["encounter", "created_at"], name="note_encounter_created_idx"),
                    models.Index(fields=["patient_id", "updated_at"], name="note_patient_updated_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("finalized_at__isnull", True), ("signature_hash__isnull", True), ("status", "draft")),
                            models.Q(
                                ("finalized_at__isnull", False),
                                ("signature_hash__isnull", False),
                                ("status__in", ["finalized", "amended"]),
                            ),
                            _connector="OR",
                        ),
                        name="ck_note_signature_matches_status",
                    ),
                ],
            },
        ),
    ]
