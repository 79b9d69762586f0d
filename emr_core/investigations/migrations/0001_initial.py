import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="InvestigationOrder",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("patient_id", models.UUIDField(db_index=True)),
                ("provider_id", models.BigIntegerField(db_index=True)),
                ("encounter_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("code", models.CharField(blank=True, max_length=64, null=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("ordered", "Ordered"), ("completed", "Completed"), ("cancelled", "Cancelled")],
                        db_index=True,
                        default="ordered",
                        max_length=16,
                    ),
                ),
                ("ordered_at", models.DateTimeField(db_index=True)),
                ("notes", models.TextField(blank=True, null=True)),
            ],
            options={
                "db_table": "investigations_order",
                "indexes": [
                    models.Index(fields=["patient_id", "ordered_at"], name="inv_order_patient_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvestigationResult",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(blank=True, max_length=64, null=True)),
                ("name", models.CharField(blank=True, max_length=255, null=True)),
                ("value", models.CharField(blank=True, max_length=255, null=True)),
                ("units", models.CharField(blank=True, max_length=32, null=True)),
                ("reference_range_low", models.CharField(blank=True, max_length=32, null=True)),
                ("reference_range_high", models.CharField(blank=True, max_length=32, null=True)),
                ("reference_range_text", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "interpretation",
                    models.CharField(
                        blank=True,
                        choices=[("normal", "Normal"), ("abnormal", "Abnormal"), ("critical", "Critical")],
                        max_length=16,
                        null=True,
                    ),
                ),
                ("performer", models.CharField(blank=True, max_length=255, null=True)),
                ("observed_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("reviewed", models.BooleanField(db_index=True, default=False)),
                ("reviewer_id", models.BigIntegerField(blank=True, null=True)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("attachments", models.JSONField(blank=True, default=list)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="results",
                        to="investigations.investigationorder",
                    ),
                ),
            ],
            options={
                "db_table": "investigations_result",
                "indexes": [
                    models.Index(fields=["order", "observed_at"], name="inv_result_order_obs_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("reviewed", True), ("reviewer_id__isnull", False), ("reviewed_at__isnull", False)),
                            models.Q(("reviewed", False), ("reviewer_id__isnull", True), ("reviewed_at__isnull", True)),
                            _connector="OR",
                        ),
                        name="ck_result_review_consistent",
                    ),
                ],
            },
        ),
    ]
