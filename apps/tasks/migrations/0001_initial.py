# Initial schema for editorial tasks

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
            name='Task',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('task_type', models.CharField(choices=[('STORY_CREATE', 'Create Story'), ('STORY_REVIEW', 'Review Story'), ('STORY_REVISION_TO_AUTHOR', 'Revise Story (Author)'), ('STORY_APPROVAL', 'Approve Story'), ('STORY_REVISION_TO_JOURNALIST', 'Revise Story (Journalist)'), ('STORY_TRANSLATE', 'Translate Story'), ('STORY_TRANSLATION_REVIEW', 'Review Translation'), ('STORY_PUBLISH', 'Publish Story'), ('STORY_FOLLOW_UP', 'Follow Up Story'), ('BULLETIN_CREATE', 'Create Bulletin'), ('BULLETIN_REVIEW', 'Review Bulletin'), ('BULLETIN_PUBLISH', 'Publish Bulletin'), ('SHOW_CREATE', 'Create Show'), ('SHOW_REVIEW', 'Review Show'), ('SHOW_PUBLISH', 'Publish Show')], db_index=True, max_length=40, verbose_name='Type')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('BLOCKED', 'Blocked'), ('PENDING_ASSIGNMENT', 'Pending Assignment')], db_index=True, default='PENDING', max_length=20, verbose_name='Status')),
                ('priority', models.CharField(choices=[('LOW', 'Low'), ('MEDIUM', 'Medium'), ('HIGH', 'High'), ('URGENT', 'Urgent')], default='MEDIUM', max_length=10, verbose_name='Priority')),
                ('title', models.CharField(max_length=300, verbose_name='Title')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('content_kind', models.CharField(choices=[('STORY', 'Story'), ('TRANSLATION', 'Translation'), ('BULLETIN', 'Bulletin'), ('SHOW', 'Show')], max_length=20, verbose_name='Content Kind')),
                ('content_id', models.UUIDField(db_index=True, verbose_name='Content ID')),
                ('source_language', models.CharField(blank=True, choices=[('ENGLISH', 'English'), ('AFRIKAANS', 'Afrikaans'), ('XHOSA', 'Xhosa')], max_length=20, verbose_name='Source Language')),
                ('target_language', models.CharField(blank=True, choices=[('ENGLISH', 'English'), ('AFRIKAANS', 'Afrikaans'), ('XHOSA', 'Xhosa')], max_length=20, verbose_name='Target Language')),
                ('due_date', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Due Date')),
                ('started_at', models.DateTimeField(blank=True, null=True, verbose_name='Started At')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='Completed At')),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Outcome, notes and reassignment history', verbose_name='Metadata')),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_tasks', to=settings.AUTH_USER_MODEL, verbose_name='Assigned To')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_tasks', to=settings.AUTH_USER_MODEL, verbose_name='Created By')),
            ],
            options={
                'verbose_name': 'Task',
                'verbose_name_plural': 'Tasks',
                'db_table': 'tasks',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['assigned_to', 'status'], name='tasks_assignee_status_idx'),
                    models.Index(fields=['content_kind', 'content_id'], name='tasks_content_ref_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status__in', ['PENDING', 'IN_PROGRESS', 'BLOCKED', 'PENDING_ASSIGNMENT'])), fields=('content_kind', 'content_id', 'task_type'), name='tasks_one_open_per_step'),
                ],
            },
        ),
    ]
