# Initial schema for translation assignments

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('stories', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TranslationAssignment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('target_language', models.CharField(choices=[('ENGLISH', 'English'), ('AFRIKAANS', 'Afrikaans'), ('XHOSA', 'Xhosa')], max_length=20, verbose_name='Target Language')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('IN_PROGRESS', 'In Progress'), ('NEEDS_REVIEW', 'Needs Review'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], db_index=True, default='PENDING', max_length=20, verbose_name='Status')),
                ('priority', models.CharField(choices=[('LOW', 'Low'), ('MEDIUM', 'Medium'), ('HIGH', 'High'), ('URGENT', 'Urgent')], default='MEDIUM', max_length=10, verbose_name='Priority')),
                ('translator_notes', models.TextField(blank=True, verbose_name='Translator Notes')),
                ('reviewer_notes', models.TextField(blank=True, verbose_name='Reviewer Notes')),
                ('rejection_reason', models.TextField(blank=True, verbose_name='Rejection Reason')),
                ('due_date', models.DateTimeField(blank=True, null=True, verbose_name='Due Date')),
                ('started_at', models.DateTimeField(blank=True, null=True, verbose_name='Started At')),
                ('submitted_at', models.DateTimeField(blank=True, null=True, verbose_name='Submitted At')),
                ('reviewed_at', models.DateTimeField(blank=True, null=True, verbose_name='Reviewed At')),
                ('approved_at', models.DateTimeField(blank=True, null=True, verbose_name='Approved At')),
                ('rejected_at', models.DateTimeField(blank=True, null=True, verbose_name='Rejected At')),
                ('original', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='translation_assignments', to='stories.story', verbose_name='Original Story')),
                ('translated_story', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='translation_assignment', to='stories.story', verbose_name='Translated Story')),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='translation_assignments', to=settings.AUTH_USER_MODEL, verbose_name='Translator')),
                ('requested_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='requested_translations', to=settings.AUTH_USER_MODEL, verbose_name='Requested By')),
                ('reviewer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='translations_to_review', to=settings.AUTH_USER_MODEL, verbose_name='Reviewer')),
            ],
            options={
                'verbose_name': 'Translation Assignment',
                'verbose_name_plural': 'Translation Assignments',
                'db_table': 'translation_assignments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['assigned_to', 'status'], name='translation_assignee_idx'),
                    models.Index(fields=['reviewer', 'status'], name='translation_reviewer_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('original', 'target_language'), name='translation_one_per_language'),
                ],
            },
        ),
    ]
