# Stage checklists, revision requests and story comments

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    dependencies = [
        ('stories', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.AddField(
            model_name='story',
            name='author_checklist',
            field=models.JSONField(blank=True, default=dict, verbose_name='Author Checklist'),
        ),
        migrations.AddField(
            model_name='story',
            name='reviewer_checklist',
            field=models.JSONField(blank=True, default=dict, verbose_name='Reviewer Checklist'),
        ),
        migrations.AddField(
            model_name='story',
            name='approver_checklist',
            field=models.JSONField(blank=True, default=dict, verbose_name='Approver Checklist'),
        ),
        migrations.AddField(
            model_name='story',
            name='translation_checklist',
            field=models.JSONField(blank=True, default=dict, help_text='Translator checklist recorded when a translation is submitted for review', verbose_name='Translation Checklist'),
        ),
        migrations.CreateModel(
            name='RevisionRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('edge', models.CharField(help_text='Revise edge that sent the story back', max_length=32, verbose_name='Transition')),
                ('requested_by_role', models.CharField(blank=True, max_length=20, verbose_name='Requester Role')),
                ('reason', models.TextField(verbose_name='Reason')),
                ('resolved_at', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Resolved At')),
                ('story', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='revision_requests', to='stories.story', verbose_name='Story')),
                ('requested_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='revisions_requested', to=settings.AUTH_USER_MODEL, verbose_name='Requested By')),
                ('assigned_to', models.ForeignKey(blank=True, help_text='Who reworks the story; empty while the revision task awaits an assignee', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='revisions_assigned', to=settings.AUTH_USER_MODEL, verbose_name='Assigned To')),
            ],
            options={
                'verbose_name': 'Revision Request',
                'verbose_name_plural': 'Revision Requests',
                'db_table': 'story_revision_requests',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Comment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('comment_type', models.CharField(choices=[('GENERAL', 'General'), ('REVISION_REQUEST', 'Revision Request'), ('APPROVAL', 'Approval'), ('REJECTION', 'Rejection'), ('EDITORIAL_NOTE', 'Editorial Note')], default='GENERAL', max_length=20, verbose_name='Type')),
                ('content', models.TextField(verbose_name='Content')),
                ('story', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='comments', to='stories.story', verbose_name='Story')),
                ('author', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='story_comments', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='replies', to='stories.comment', verbose_name='Reply To')),
            ],
            options={
                'verbose_name': 'Comment',
                'verbose_name_plural': 'Comments',
                'db_table': 'story_comments',
                'ordering': ['-created_at'],
            },
        ),
    ]
