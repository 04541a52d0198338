# Initial schema for staff profiles and the audit trail

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StaffProfile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('role', models.CharField(choices=[('SUPERADMIN', 'Super Administrator'), ('ADMIN', 'Administrator'), ('EDITOR', 'Editor'), ('SUB_EDITOR', 'Sub-Editor'), ('JOURNALIST', 'Journalist'), ('INTERN', 'Intern')], db_index=True, default='JOURNALIST', help_text='Newsroom role determining workflow permissions', max_length=20, verbose_name='Role')),
                ('translation_language', models.CharField(blank=True, choices=[('ENGLISH', 'English'), ('AFRIKAANS', 'Afrikaans'), ('XHOSA', 'Xhosa')], db_index=True, help_text='Language this staff member translates into, if any', max_length=20, null=True, verbose_name='Translation Language')),
                ('user', models.OneToOneField(help_text='The associated Django user account', on_delete=django.db.models.deletion.CASCADE, related_name='staff_profile', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Staff Profile',
                'verbose_name_plural': 'Staff Profiles',
                'db_table': 'staff_profiles',
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(db_index=True, help_text='Event name, e.g. STAGE_TRANSITION or TASK_COMPLETED', max_length=64, verbose_name='Action')),
                ('target_type', models.CharField(db_index=True, max_length=32, verbose_name='Target Type')),
                ('target_id', models.UUIDField(db_index=True, verbose_name='Target ID')),
                ('from_state', models.CharField(blank=True, max_length=40, verbose_name='From State')),
                ('to_state', models.CharField(blank=True, max_length=40, verbose_name='To State')),
                ('details', models.JSONField(blank=True, default=dict, verbose_name='Details')),
                ('request_id', models.CharField(blank=True, help_text='X-Request-ID of the request that produced the event', max_length=64, verbose_name='Request ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, verbose_name='Created At')),
                ('actor', models.ForeignKey(blank=True, help_text='User who caused the event (empty for system events)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_events', to=settings.AUTH_USER_MODEL, verbose_name='Actor')),
            ],
            options={
                'verbose_name': 'Audit Event',
                'verbose_name_plural': 'Audit Events',
                'db_table': 'audit_events',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['target_type', 'target_id', 'created_at'], name='audit_target_idx')],
            },
        ),
    ]
