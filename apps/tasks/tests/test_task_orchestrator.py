"""
Tests for the task orchestrator.

Tests cover:
- Task creation, supersession and default due dates
- Completion guards (assignee, role, outcome, terminal status)
- Starting work
- Reassignment and assignee mirroring
- Claiming unassigned tasks
- Task comments
"""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.core.audit import history_for
from apps.core.exceptions import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from apps.stories.models import Story
from apps.tasks.models import ContentKind, ContentRef, Task
from apps.tasks.orchestrator import (
    add_task_comment,
    allowed_outcomes,
    claim_task,
    complete_task,
    create_task,
    reassign_task,
    start_task,
    task_candidates,
    task_comments,
)


def bulletin_ref():
    return ContentRef(ContentKind.BULLETIN, uuid.uuid4())


# ============================================================================
# Creation
# ============================================================================

@pytest.mark.django_db
class TestCreateTask:

    def test_unassigned_task_waits_for_assignment(self):
        task = create_task('BULLETIN_CREATE', bulletin_ref())

        assert task.status == 'PENDING_ASSIGNMENT'
        assert task.assigned_to is None
        assert task.title == 'Create Bulletin'

    def test_new_task_supersedes_open_task_for_same_step(self, journalist):
        ref = bulletin_ref()
        first = create_task('BULLETIN_CREATE', ref, assignee=journalist)
        second = create_task('BULLETIN_CREATE', ref, assignee=journalist)

        first.refresh_from_db()
        assert first.status == 'CANCELLED'
        assert second.status == 'PENDING'

    def test_unknown_task_type(self):
        with pytest.raises(ValidationFailedError) as excinfo:
            create_task('STORY_ARCHIVE', bulletin_ref())
        assert excinfo.value.field == 'task_type'

    def test_ineligible_assignee(self, journalist):
        with pytest.raises(ValidationFailedError) as excinfo:
            create_task('BULLETIN_REVIEW', bulletin_ref(), assignee=journalist)
        assert excinfo.value.field == 'assignee'

    def test_due_date_follows_stage_threshold(self, sub_editor):
        before = timezone.now()
        task = create_task(
            'STORY_APPROVAL',
            ContentRef(ContentKind.STORY, uuid.uuid4()),
            assignee=sub_editor,
        )

        assert before + timedelta(days=2) <= task.due_date <= timezone.now() + timedelta(days=2)

    def test_types_without_threshold_have_no_due_date(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)
        assert task.due_date is None


# ============================================================================
# Completion
# ============================================================================

@pytest.mark.django_db
class TestCompleteTask:

    def test_completes_opaque_task_with_default_outcome(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        completed = complete_task(task.pk, journalist, {'notes': 'Filed'})

        task.refresh_from_db()
        assert completed.status == 'COMPLETED'
        assert task.completed_at is not None
        assert task.metadata == {'notes': 'Filed', 'outcome': 'done'}

        event = history_for(task, action='TASK_COMPLETED').get()
        assert event.target_type == 'TASK'
        assert event.details == {'task_type': 'BULLETIN_CREATE', 'outcome': 'done'}

    def test_non_assignee_is_forbidden(self, journalist, make_staff):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)
        colleague = make_staff('colleague', 'JOURNALIST')

        with pytest.raises(ForbiddenError):
            complete_task(task.pk, colleague)

        task.refresh_from_db()
        assert task.status == 'PENDING'

    def test_role_must_cover_task_type(self, journalist):
        task = create_task(
            'STORY_APPROVAL',
            ContentRef(ContentKind.STORY, uuid.uuid4()),
            assignee=journalist,
            validate_assignee=False,
        )

        with pytest.raises(ForbiddenError):
            complete_task(task.pk, journalist, {'outcome': 'approve'})

    def test_outcome_required_when_several_exist(self, journalist, sub_editor, story_factory, open_task):
        story = story_factory(journalist)
        complete_task(open_task(story, 'STORY_CREATE').pk, journalist)
        approval = open_task(story, 'STORY_APPROVAL')

        with pytest.raises(ValidationFailedError) as excinfo:
            complete_task(approval.pk, sub_editor)

        assert excinfo.value.error_details == {'allowed_outcomes': ['approve', 'revise']}

    def test_invalid_outcome(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        with pytest.raises(ValidationFailedError):
            complete_task(task.pk, journalist, {'outcome': 'approve'})

    def test_completed_task_is_terminal(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)
        complete_task(task.pk, journalist)

        with pytest.raises(AlreadyTerminalError):
            complete_task(task.pk, journalist)

    def test_unknown_task(self, journalist):
        with pytest.raises(NotFoundError):
            complete_task(uuid.uuid4(), journalist)

    def test_allowed_outcomes_by_content_kind(self):
        commission = Task(task_type='STORY_TRANSLATE', content_kind='STORY')
        translate = Task(task_type='STORY_TRANSLATE', content_kind='TRANSLATION')

        assert allowed_outcomes(commission) == ('commission',)
        assert allowed_outcomes(translate) == ('submit',)


# ============================================================================
# Start
# ============================================================================

@pytest.mark.django_db
class TestStartTask:

    def test_assignee_starts_task(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        started = start_task(task.pk, journalist)

        assert started.status == 'IN_PROGRESS'
        assert started.started_at is not None
        assert start_task(task.pk, journalist).status == 'IN_PROGRESS'

    def test_non_assignee_cannot_start(self, journalist, make_staff):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        with pytest.raises(ForbiddenError):
            start_task(task.pk, make_staff('colleague', 'JOURNALIST'))


# ============================================================================
# Reassignment
# ============================================================================

@pytest.mark.django_db
class TestReassignTask:

    @pytest.fixture
    def approval_task(self, journalist, sub_editor, story_factory, open_task):
        story = story_factory(journalist)
        complete_task(open_task(story, 'STORY_CREATE').pk, journalist)
        return open_task(story, 'STORY_APPROVAL')

    def test_reassign_to_another_approver(self, approval_task, sub_editor, make_staff):
        deputy = make_staff('deputy', 'SUB_EDITOR')

        task = reassign_task(approval_task.pk, deputy.pk, sub_editor, notes='On leave')

        assert task.assigned_to == deputy
        assert task.metadata['previous_assignee'] == str(sub_editor.pk)
        assert task.metadata['reassigned_by'] == str(sub_editor.pk)
        assert task.metadata['reassignment_notes'] == 'On leave'
        assert Story.objects.get(pk=approval_task.content_id).assigned_approver == deputy

        event = history_for(task, action='TASK_REASSIGNED').get()
        assert event.details == {
            'previous_assignee': str(sub_editor.pk),
            'new_assignee': str(deputy.pk),
        }

    def test_new_assignee_completes_task(self, approval_task, sub_editor, make_staff):
        deputy = make_staff('deputy', 'SUB_EDITOR')
        reassign_task(approval_task.pk, deputy.pk, sub_editor)

        with pytest.raises(ForbiddenError):
            complete_task(approval_task.pk, sub_editor, {'outcome': 'approve'})

        complete_task(approval_task.pk, deputy, {'outcome': 'approve'})
        assert Story.objects.get(pk=approval_task.content_id).stage == 'APPROVED'

    def test_ineligible_assignee(self, approval_task, sub_editor, make_staff):
        reporter = make_staff('reporter', 'JOURNALIST')

        with pytest.raises(ValidationFailedError) as excinfo:
            reassign_task(approval_task.pk, reporter.pk, sub_editor)

        assert excinfo.value.field == 'assignee_id'

    def test_author_cannot_approve_own_story(self, approval_task, sub_editor, journalist):
        with pytest.raises(ValidationFailedError):
            reassign_task(approval_task.pk, journalist.pk, sub_editor)

    def test_unrelated_journalist_cannot_reassign(self, approval_task, make_staff):
        deputy = make_staff('deputy', 'SUB_EDITOR')
        bystander = make_staff('bystander', 'JOURNALIST')

        with pytest.raises(ForbiddenError):
            reassign_task(approval_task.pk, deputy.pk, bystander)

    def test_unknown_assignee(self, approval_task, sub_editor):
        with pytest.raises(NotFoundError):
            reassign_task(approval_task.pk, 999999, sub_editor)

    def test_pending_assignment_becomes_pending(self, intern, editor, story_factory, open_task, make_staff):
        # No journalists exist yet, so the review task has nobody to go to
        story = story_factory(intern)
        complete_task(open_task(story, 'STORY_CREATE').pk, intern)
        review = open_task(story, 'STORY_REVIEW')
        assert review.status == 'PENDING_ASSIGNMENT'

        reviewer = make_staff('reviewer', 'JOURNALIST')
        task = reassign_task(review.pk, reviewer.pk, editor)

        assert task.status == 'PENDING'
        assert task.metadata['previous_assignee'] is None
        assert Story.objects.get(pk=story.pk).assigned_reviewer == reviewer

    def test_author_task_stays_with_author_or_editor(
        self, journalist, sub_editor, editor, story_factory, open_task, make_staff,
    ):
        colleague = make_staff('colleague', 'JOURNALIST')
        story = story_factory(journalist)
        create = open_task(story, 'STORY_CREATE')

        assert set(task_candidates(create)) == {journalist, editor}
        with pytest.raises(ValidationFailedError) as excinfo:
            reassign_task(create.pk, colleague.pk, sub_editor)
        assert excinfo.value.field == 'assignee_id'

        create.refresh_from_db()
        assert create.assigned_to == journalist

    def test_editor_can_finish_reassigned_author_task(
        self, journalist, sub_editor, editor, story_factory, open_task,
    ):
        story = story_factory(journalist)
        create = open_task(story, 'STORY_CREATE')

        reassign_task(create.pk, editor.pk, sub_editor, notes='Author is off sick')
        complete_task(create.pk, editor)

        assert Story.objects.get(pk=story.pk).stage == 'NEEDS_SUB_EDITOR_APPROVAL'


# ============================================================================
# Claiming
# ============================================================================

@pytest.mark.django_db
class TestClaimTask:

    @pytest.fixture
    def pool_review(self, intern, story_factory, open_task):
        # No journalists exist yet, so the review lands in the pool
        story = story_factory(intern)
        complete_task(open_task(story, 'STORY_CREATE').pk, intern)
        review = open_task(story, 'STORY_REVIEW')
        assert review.status == 'PENDING_ASSIGNMENT'
        return review

    def test_journalist_claims_and_completes_pool_review(self, pool_review, make_staff):
        reviewer = make_staff('reviewer', 'JOURNALIST')

        task = claim_task(pool_review.pk, reviewer)

        assert task.assigned_to == reviewer
        assert task.status == 'PENDING'
        assert task.metadata['reassigned_by'] == str(reviewer.pk)
        assert Story.objects.get(pk=pool_review.content_id).assigned_reviewer == reviewer

        complete_task(task.pk, reviewer, {'outcome': 'approve'})
        assert Story.objects.get(pk=pool_review.content_id).stage == 'NEEDS_SUB_EDITOR_APPROVAL'

    def test_ineligible_role_cannot_claim(self, pool_review, make_staff):
        other_intern = make_staff('intern2', 'INTERN')

        with pytest.raises(ValidationFailedError):
            claim_task(pool_review.pk, other_intern)

        pool_review.refresh_from_db()
        assert pool_review.assigned_to is None

    def test_author_cannot_claim_own_review(self, pool_review, intern):
        with pytest.raises(ValidationFailedError):
            claim_task(pool_review.pk, intern)

    def test_assigned_task_cannot_be_claimed(self, pool_review, make_staff):
        reviewer = make_staff('reviewer', 'JOURNALIST')
        other = make_staff('other', 'JOURNALIST')
        claim_task(pool_review.pk, reviewer)

        with pytest.raises(InvalidTransitionError):
            claim_task(pool_review.pk, other)

    def test_journalist_cannot_hand_pool_task_to_someone_else(self, pool_review, make_staff):
        reviewer = make_staff('reviewer', 'JOURNALIST')
        other = make_staff('other', 'JOURNALIST')

        with pytest.raises(ForbiddenError):
            reassign_task(pool_review.pk, other.pk, reviewer)


# ============================================================================
# Comments
# ============================================================================

@pytest.mark.django_db
class TestTaskComments:

    def test_assignee_comments_are_kept_in_metadata(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        comment = add_task_comment(task.pk, journalist, '  Waiting on the mayor  ')

        assert comment['content'] == 'Waiting on the mayor'
        assert comment['type'] == 'GENERAL'
        assert comment['author_id'] == journalist.pk
        task.refresh_from_db()
        assert task.metadata['comments'] == [comment]
        assert history_for(task, action='TASK_COMMENTED').count() == 1

    def test_comments_survive_completion(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)
        add_task_comment(task.pk, journalist, 'First pass done', comment_type='EDITORIAL_NOTE')

        completed = complete_task(task.pk, journalist)

        assert [c['type'] for c in completed.metadata['comments']] == ['EDITORIAL_NOTE']

    def test_sub_editor_reads_any_task(self, journalist, sub_editor):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)
        add_task_comment(task.pk, journalist, 'Need a sound bite')
        add_task_comment(task.pk, sub_editor, 'Try the spokesperson')

        comments = task_comments(Task.objects.get(pk=task.pk), sub_editor)

        assert [c['content'] for c in comments] == ['Need a sound bite', 'Try the spokesperson']

    def test_bystander_is_forbidden(self, journalist, make_staff):
        bystander = make_staff('bystander', 'JOURNALIST')
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        with pytest.raises(ForbiddenError):
            add_task_comment(task.pk, bystander, 'Can I help?')
        with pytest.raises(ForbiddenError):
            task_comments(task, bystander)

    def test_length_limits(self, journalist):
        task = create_task('BULLETIN_CREATE', bulletin_ref(), assignee=journalist)

        for content in ('   ', 'x' * 1001):
            with pytest.raises(ValidationFailedError) as excinfo:
                add_task_comment(task.pk, journalist, content)
            assert excinfo.value.field == 'content'

    def test_unknown_task(self, journalist):
        with pytest.raises(NotFoundError):
            add_task_comment(uuid.uuid4(), journalist, 'Hello')
