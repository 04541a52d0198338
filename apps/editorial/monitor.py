"""
Pipeline Metrics / SLA Monitor.

Read-only dashboards over the current story population:
- per-stage counts, dwell times and SLA breaches
- reviewer and approver workload
- overall workflow health (throughput and bottleneck)
- stage queues and time-sensitive stories

Nothing here takes locks or writes; metrics never participate in
transitions.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import connection
from django.db.models import Count, Min, Q
from django.utils import timezone

from apps.core.exceptions import ValidationFailedError
from apps.core.permissions import APPROVER_ROLES
from apps.stories.models import Story

logger = logging.getLogger(__name__)

User = get_user_model()

SECONDS_PER_DAY = 24 * 60 * 60

PIPELINE_STAGES = (
    'DRAFT',
    'NEEDS_JOURNALIST_REVIEW',
    'NEEDS_SUB_EDITOR_APPROVAL',
    'APPROVED',
    'TRANSLATED',
)

DEFAULT_SLA_THRESHOLDS = {
    'DRAFT': 7,
    'NEEDS_JOURNALIST_REVIEW': 2,
    'NEEDS_SUB_EDITOR_APPROVAL': 2,
    'APPROVED': 7,
    'TRANSLATED': 1,
}

# Workload population per reviewer tier: (roles, stage, story assignee field)
WORKLOAD_TIERS = {
    'JOURNALIST': (('JOURNALIST',), 'NEEDS_JOURNALIST_REVIEW', 'assigned_reviewer'),
    'SUB_EDITOR': (APPROVER_ROLES, 'NEEDS_SUB_EDITOR_APPROVAL', 'assigned_approver'),
}


@dataclass
class StageMetrics:
    stage: str
    count: int = 0
    oldest_story_id: Optional[str] = None
    oldest_story_title: Optional[str] = None
    oldest_story_days: Optional[int] = None
    average_days_in_stage: float = 0.0
    stories_exceeding_sla: int = 0


def days_between(earlier, later) -> int:
    """Whole days elapsed, floored."""
    return math.floor((later - earlier).total_seconds() / SECONDS_PER_DAY)


def display_name(user) -> str:
    return user.get_full_name() or user.get_username()


class SLAMonitor:
    """
    On-demand pipeline metrics.

    Args:
        thresholds: Stage → allowed days; defaults to
            settings.NEWSROOM_SLA_THRESHOLDS
        workers: Thread pool size for workflow_health; 1 runs inline
        now: Fixed clock, mainly for tests
    """

    def __init__(self, thresholds: Optional[Dict[str, int]] = None, workers: Optional[int] = None, now=None):
        if thresholds is None:
            thresholds = getattr(settings, 'NEWSROOM_SLA_THRESHOLDS', DEFAULT_SLA_THRESHOLDS)
        if workers is None:
            workers = getattr(settings, 'NEWSROOM_METRICS_WORKERS', 4)
        self.thresholds = dict(thresholds)
        self.workers = max(1, int(workers))
        self._now = now

    @property
    def now(self):
        return self._now or timezone.now()

    def exceeds_sla(self, stage: str, days: int) -> bool:
        threshold = self.thresholds.get(stage)
        return threshold is not None and days > threshold

    # =========================================================================
    # Pipeline
    # =========================================================================

    def pipeline_metrics(self) -> Dict[str, Any]:
        """
        Per-stage metrics for unpublished original stories.

        Returns:
            {'stages': [StageMetrics dicts...], 'skipped_records': int}
        """
        now = self.now
        grouped = {stage: [] for stage in PIPELINE_STAGES}
        skipped = 0

        rows = (
            Story.objects
            .filter(is_translation=False)
            .exclude(stage='PUBLISHED')
            .values('id', 'title', 'stage', 'updated_at')
        )
        for row in rows:
            if row['stage'] not in grouped or row['updated_at'] is None:
                skipped += 1
                continue
            days = days_between(row['updated_at'], now)
            if days < 0:
                skipped += 1
                continue
            grouped[row['stage']].append((days, row))

        if skipped:
            logger.warning(f"Pipeline metrics skipped {skipped} malformed story record(s)")

        stages = []
        for stage in PIPELINE_STAGES:
            entries = grouped[stage]
            metrics = StageMetrics(stage=stage, count=len(entries))
            if entries:
                oldest_days, oldest = min(entries, key=lambda entry: entry[1]['updated_at'])
                metrics.oldest_story_id = str(oldest['id'])
                metrics.oldest_story_title = oldest['title']
                metrics.oldest_story_days = oldest_days
                metrics.average_days_in_stage = round(
                    sum(days for days, _ in entries) / len(entries), 1
                )
                metrics.stories_exceeding_sla = sum(
                    1 for days, _ in entries if self.exceeds_sla(stage, days)
                )
            stages.append(asdict(metrics))

        return {'stages': stages, 'skipped_records': skipped}

    # =========================================================================
    # Workload
    # =========================================================================

    def reviewer_workload(self, role: str) -> List[Dict[str, Any]]:
        """
        Stories waiting on each reviewer (JOURNALIST) or approver (SUB_EDITOR).

        Users with nothing assigned are included with a zero count.
        """
        if role not in WORKLOAD_TIERS:
            raise ValidationFailedError(
                f"Workload is available for {' and '.join(WORKLOAD_TIERS)}, not '{role}'",
                field='role',
            )
        roles, stage, assignee_field = WORKLOAD_TIERS[role]
        now = self.now

        users = list(
            User.objects
            .filter(is_active=True, staff_profile__role__in=roles)
            .select_related('staff_profile')
            .order_by('pk')
        )
        loads = {
            row[f'{assignee_field}_id']: row
            for row in (
                Story.objects
                .filter(stage=stage, **{f'{assignee_field}__in': users})
                .values(f'{assignee_field}_id')
                .annotate(stories_assigned=Count('id'), oldest=Min('updated_at'))
            )
        }

        workload = []
        for user in users:
            load = loads.get(user.pk)
            oldest_days = None
            if load and load['oldest'] is not None:
                oldest_days = max(0, days_between(load['oldest'], now))
            workload.append({
                'user_id': user.pk,
                'name': display_name(user),
                'email': user.email,
                'role': user.staff_profile.role,
                'stories_assigned': load['stories_assigned'] if load else 0,
                'oldest_assigned_days': oldest_days,
            })

        workload.sort(key=lambda entry: entry['stories_assigned'], reverse=True)
        return workload

    # =========================================================================
    # Health
    # =========================================================================

    def _pipeline_queryset(self):
        return Story.objects.filter(is_translation=False).exclude(stage='PUBLISHED')

    def _count_in_pipeline(self):
        return self._pipeline_queryset().count()

    def _count_published_since(self, since):
        return Story.objects.filter(stage='PUBLISHED', published_at__gte=since).count()

    def _stage_counts(self):
        return list(
            self._pipeline_queryset()
            .values('stage')
            .annotate(count=Count('id'))
            .order_by('-count', 'stage')
        )

    def _run_jobs(self, jobs: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        """Run independent read jobs, on a thread pool when workers > 1."""
        if self.workers == 1:
            return {name: job() for name, job in jobs.items()}

        def run(job):
            try:
                return job()
            finally:
                # Worker threads own their connections
                connection.close()

        results = {}
        with ThreadPoolExecutor(max_workers=min(self.workers, len(jobs))) as executor:
            futures = {executor.submit(run, job): name for name, job in jobs.items()}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results

    def workflow_health(self) -> Dict[str, Any]:
        """Pipeline size, publishing throughput and the current bottleneck."""
        now = self.now
        today_start = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)

        results = self._run_jobs({
            'total_in_pipeline': self._count_in_pipeline,
            'published_today': lambda: self._count_published_since(today_start),
            'published_this_week': lambda: self._count_published_since(now - timedelta(days=7)),
            'published_last_30_days': lambda: self._count_published_since(now - timedelta(days=30)),
            'stage_counts': self._stage_counts,
        })

        bottleneck = results['stage_counts'][0] if results['stage_counts'] else None
        return {
            'total_in_pipeline': results['total_in_pipeline'],
            'published_today': results['published_today'],
            'published_this_week': results['published_this_week'],
            'average_throughput': round(results['published_last_30_days'] / 30, 1),
            'bottleneck_stage': bottleneck['stage'] if bottleneck else None,
            'bottleneck_count': bottleneck['count'] if bottleneck else 0,
        }

    # =========================================================================
    # Queues
    # =========================================================================

    def queue_details(self, stage: str) -> List[Dict[str, Any]]:
        """Original stories waiting in ``stage``, oldest first."""
        if stage not in PIPELINE_STAGES:
            raise ValidationFailedError(
                f"Unknown pipeline stage '{stage}'",
                field='stage',
                details={'stages': list(PIPELINE_STAGES)},
            )
        now = self.now
        assignee_field = {
            'NEEDS_JOURNALIST_REVIEW': 'assigned_reviewer',
            'NEEDS_SUB_EDITOR_APPROVAL': 'assigned_approver',
        }.get(stage)

        stories = (
            Story.objects
            .filter(stage=stage, is_translation=False)
            .select_related('author', 'assigned_reviewer', 'assigned_approver')
            .order_by('updated_at')
        )

        queue = []
        for story in stories:
            days = max(0, days_between(story.updated_at, now))
            assignee = getattr(story, assignee_field) if assignee_field else None
            queue.append({
                'id': str(story.pk),
                'title': story.title,
                'slug': story.slug,
                'stage': story.stage,
                'author_id': story.author_id,
                'author_name': display_name(story.author) if story.author else None,
                'assigned_to_id': assignee.pk if assignee else None,
                'assigned_to_name': display_name(assignee) if assignee else None,
                'days_in_stage': days,
                'exceeds_sla': self.exceeds_sla(stage, days),
                'last_modified': story.updated_at.isoformat(),
                'category': story.category or None,
                'language': story.language,
            })
        return queue

    def time_sensitive_stories(self, window_days: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Unpublished stories with a follow-up or scheduled publish date inside
        the window (or already past).
        """
        if window_days is None:
            window_days = getattr(settings, 'NEWSROOM_TIME_SENSITIVE_WINDOW_DAYS', 7)
        now = self.now
        horizon = now + timedelta(days=window_days)

        stories = (
            Story.objects
            .exclude(stage='PUBLISHED')
            .filter(Q(follow_up_date__lte=horizon) | Q(scheduled_publish_at__lte=horizon))
            .select_related('author')
        )

        results = []
        for story in stories:
            due = story.follow_up_date or story.scheduled_publish_at
            days_until_due = math.ceil((due - now).total_seconds() / SECONDS_PER_DAY)
            results.append({
                'id': str(story.pk),
                'title': story.title,
                'slug': story.slug,
                'stage': story.stage,
                'author_name': display_name(story.author) if story.author else None,
                'follow_up_date': story.follow_up_date.isoformat() if story.follow_up_date else None,
                'scheduled_publish_at': (
                    story.scheduled_publish_at.isoformat() if story.scheduled_publish_at else None
                ),
                'days_until_due': days_until_due,
                'is_overdue': days_until_due < 0,
            })
        results.sort(key=lambda entry: entry['days_until_due'])
        return results
