# Generated manually for the trust app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('rooms', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TrustAction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action', models.CharField(choices=[('chore_completed', 'Chore completed'), ('chore_confirmed', 'Chore confirmed'), ('chore_disputed_valid', 'Chore disputed (valid)'), ('chore_disputed_invalid', 'Chore disputed (invalid)'), ('false_completion', 'False completion'), ('bill_paid_on_time', 'Bill paid on time'), ('bill_paid_late', 'Bill paid late'), ('helpful_action', 'Helpful action'), ('manual_adjustment', 'Manual adjustment')], max_length=32)),
                ('points', models.IntegerField()),
                ('reason', models.CharField(max_length=500)),
                ('related_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_by', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('room', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trust_actions', to='rooms.room')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='trust_actions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'trust_actions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'created_at'], name='trust_user_created_idx'),
                    models.Index(fields=['room', 'created_at'], name='trust_room_created_idx'),
                    models.Index(fields=['user', 'action', 'created_at'], name='trust_user_action_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WeeklySweepMarker',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('week_start', models.DateTimeField()),
                ('bonuses_applied', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('room', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sweep_markers', to='rooms.room')),
            ],
            options={
                'db_table': 'trust_weekly_sweep_markers',
                'ordering': ['-week_start'],
                'unique_together': {('room', 'week_start')},
            },
        ),
    ]
