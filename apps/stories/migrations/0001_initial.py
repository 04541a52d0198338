# Initial schema for stories and their translations

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
            name='Story',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('title', models.CharField(help_text='Story headline', max_length=300, verbose_name='Title')),
                ('slug', models.SlugField(help_text='URL-safe identifier; immutable once published', max_length=320, unique=True, verbose_name='Slug')),
                ('content', models.TextField(blank=True, help_text='Story body', verbose_name='Content')),
                ('stage', models.CharField(choices=[('DRAFT', 'Draft'), ('NEEDS_JOURNALIST_REVIEW', 'Needs Journalist Review'), ('NEEDS_SUB_EDITOR_APPROVAL', 'Needs Sub-Editor Approval'), ('APPROVED', 'Approved'), ('TRANSLATED', 'Translated'), ('PUBLISHED', 'Published')], db_index=True, default='DRAFT', help_text='Current editorial stage', max_length=32, verbose_name='Stage')),
                ('language', models.CharField(choices=[('ENGLISH', 'English'), ('AFRIKAANS', 'Afrikaans'), ('XHOSA', 'Xhosa')], db_index=True, default='ENGLISH', max_length=20, verbose_name='Language')),
                ('category', models.SlugField(blank=True, help_text='Category slug; required before approval', max_length=100, verbose_name='Category')),
                ('is_translation', models.BooleanField(db_index=True, default=False, verbose_name='Is Translation')),
                ('audio_refs', models.JSONField(blank=True, default=list, help_text='Storage keys of audio clips attached to the story', verbose_name='Audio References')),
                ('follow_up_date', models.DateTimeField(blank=True, null=True, verbose_name='Follow-up Date')),
                ('scheduled_publish_at', models.DateTimeField(blank=True, null=True, verbose_name='Scheduled Publish At')),
                ('published_at', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Published At')),
                ('original', models.ForeignKey(blank=True, help_text='Source story this item translates', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='translations', to='stories.story', verbose_name='Original Story')),
                ('author', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='authored_stories', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
                ('assigned_reviewer', models.ForeignKey(blank=True, help_text='Journalist reviewing an intern-authored story', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stories_to_review', to=settings.AUTH_USER_MODEL, verbose_name='Assigned Reviewer')),
                ('assigned_approver', models.ForeignKey(blank=True, help_text='Sub-editor or above approving the story', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stories_to_approve', to=settings.AUTH_USER_MODEL, verbose_name='Assigned Approver')),
            ],
            options={
                'verbose_name': 'Story',
                'verbose_name_plural': 'Stories',
                'db_table': 'stories',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['stage', 'is_translation'], name='stories_stage_transl_idx'),
                    models.Index(fields=['stage', 'updated_at'], name='stories_stage_updated_idx'),
                    models.Index(fields=['assigned_reviewer', 'stage'], name='stories_reviewer_stage_idx'),
                    models.Index(fields=['assigned_approver', 'stage'], name='stories_approver_stage_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(models.Q(('is_translation', False), ('original__isnull', True)), models.Q(('is_translation', True), ('original__isnull', False)), _connector='OR'), name='stories_translation_has_original'),
                ],
            },
        ),
    ]
