"""
Story Stage State Machine.

Owns the editorial lifecycle of a story:
- Named edges with declared source and target stages
- Role and ownership checks through the role policy
- Author-role routing (intern stories pass a journalist review)
- Optimistic check-and-set writes, so concurrent callers cannot both
  advance the same story from the same stage
- Audit event and metrics for every transition

States:
    DRAFT → NEEDS_JOURNALIST_REVIEW → NEEDS_SUB_EDITOR_APPROVAL → APPROVED → TRANSLATED → PUBLISHED
      ↑              ↓    ↑                  ↓       ↓
      └──── revise ──┘    └─── send back ────┘       └──── return to author ──→ DRAFT

Usage:
    machine = StoryStateMachine(story)
    machine.apply('submit_for_review', actor=user)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from django.db import transaction
from django.utils import timezone

from apps.core.audit import record_event
from apps.core.exceptions import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidTransitionError,
    StaleStateError,
    ValidationFailedError,
)
from apps.core.metrics import increment_stage_transition
from apps.core.permissions import can_manage_any_story, can_perform_edge, get_user_role

logger = logging.getLogger(__name__)


class StoryStage(Enum):
    """Editorial stages of a story."""
    DRAFT = 'DRAFT'
    NEEDS_JOURNALIST_REVIEW = 'NEEDS_JOURNALIST_REVIEW'
    NEEDS_SUB_EDITOR_APPROVAL = 'NEEDS_SUB_EDITOR_APPROVAL'
    APPROVED = 'APPROVED'
    TRANSLATED = 'TRANSLATED'
    PUBLISHED = 'PUBLISHED'

    @classmethod
    def from_string(cls, value: str) -> 'StoryStage':
        """Convert string to StoryStage."""
        for stage in cls:
            if stage.value == value:
                return stage
        raise ValueError(f"Unknown stage: {value}")

    @property
    def is_terminal(self) -> bool:
        return self is StoryStage.PUBLISHED


@dataclass(frozen=True)
class Edge:
    """A named transition between two stages."""
    name: str
    source: StoryStage
    target: StoryStage
    outcome: str
    system_only: bool = False
    requires_ownership: bool = False


EDGES: Dict[str, Edge] = {
    edge.name: edge for edge in (
        Edge('submit_for_review', StoryStage.DRAFT, StoryStage.NEEDS_JOURNALIST_REVIEW,
             'submit', requires_ownership=True),
        Edge('submit_for_approval', StoryStage.DRAFT, StoryStage.NEEDS_SUB_EDITOR_APPROVAL,
             'submit', requires_ownership=True),
        Edge('send_for_approval', StoryStage.NEEDS_JOURNALIST_REVIEW,
             StoryStage.NEEDS_SUB_EDITOR_APPROVAL, 'approve'),
        Edge('request_revision', StoryStage.NEEDS_JOURNALIST_REVIEW, StoryStage.DRAFT, 'revise'),
        Edge('send_back', StoryStage.NEEDS_SUB_EDITOR_APPROVAL,
             StoryStage.NEEDS_JOURNALIST_REVIEW, 'revise'),
        Edge('return_to_author', StoryStage.NEEDS_SUB_EDITOR_APPROVAL, StoryStage.DRAFT, 'revise'),
        Edge('approve', StoryStage.NEEDS_SUB_EDITOR_APPROVAL, StoryStage.APPROVED, 'approve'),
        Edge('mark_translated', StoryStage.APPROVED, StoryStage.TRANSLATED,
             'translated', system_only=True),
        Edge('publish', StoryStage.TRANSLATED, StoryStage.PUBLISHED, 'publish', system_only=True),
    )
}

# Stage graph derived from the edge table
VALID_TRANSITIONS: Dict[StoryStage, Set[StoryStage]] = {stage: set() for stage in StoryStage}
for _edge in EDGES.values():
    VALID_TRANSITIONS[_edge.source].add(_edge.target)


# Checklist field filled in by whoever leaves the source stage
CHECKLIST_FIELDS: Dict[str, str] = {
    'submit_for_review': 'author_checklist',
    'submit_for_approval': 'author_checklist',
    'send_for_approval': 'reviewer_checklist',
    'request_revision': 'reviewer_checklist',
    'approve': 'approver_checklist',
    'send_back': 'approver_checklist',
    'return_to_author': 'approver_checklist',
}


def get_edge(name: str) -> Edge:
    """Look up an edge by name."""
    try:
        return EDGES[name]
    except KeyError:
        raise InvalidTransitionError(
            f"Unknown transition '{name}'",
            field='transition',
            details={'valid_transitions': sorted(EDGES)},
        )


def clean_checklist(checklist) -> Dict[str, bool]:
    """Validate a stage checklist: item names mapped to checked flags."""
    if not isinstance(checklist, dict):
        raise ValidationFailedError("Checklist must be an object of item: bool", field='checklist')
    for item, checked in checklist.items():
        if not isinstance(item, str) or not item.strip() or not isinstance(checked, bool):
            raise ValidationFailedError(
                "Checklist must map item names to true or false",
                field='checklist',
                details={'item': str(item)},
            )
    return dict(checklist)


@dataclass
class StageTransition:
    """Record of a transition applied by a machine instance."""
    edge: str
    from_stage: StoryStage
    to_stage: StoryStage
    timestamp: datetime
    actor_id: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class StoryStateMachine:
    """
    State machine for a single story.

    The machine trusts the stage held by the story instance it was built
    with: the write is conditioned on that value, and a concurrent change
    surfaces as StaleStateError instead of being overwritten.
    """

    def __init__(self, story):
        self.story = story
        self._history: List[StageTransition] = []

    @property
    def current_state(self) -> StoryStage:
        return StoryStage.from_string(self.story.stage)

    @property
    def history(self) -> List[StageTransition]:
        return self._history.copy()

    @property
    def author_role(self) -> str:
        """Role of the story's author; stories of removed users route like a journalist's."""
        if self.story.author_id is None:
            return 'JOURNALIST'
        return get_user_role(self.story.author) or 'JOURNALIST'

    def get_valid_edges(self) -> List[Edge]:
        """Edges leaving the current stage that fit this story's author."""
        from .routing import next_edge

        edges = []
        for edge in EDGES.values():
            if edge.source is not self.current_state:
                continue
            try:
                routed = next_edge(edge.source, self.author_role, edge.outcome)
            except InvalidTransitionError:
                continue
            if routed is edge:
                edges.append(edge)
        return edges

    def can_apply(self, edge_name: str) -> bool:
        return any(edge.name == edge_name for edge in self.get_valid_edges())

    def apply(
        self,
        edge_name: str,
        actor=None,
        system: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
        audit_action: str = 'STAGE_TRANSITION',
        checklist: Optional[Dict[str, bool]] = None,
        require_reason: bool = False,
    ) -> Edge:
        """
        Move the story along a named edge.

        Args:
            edge_name: Name of the edge to apply
            actor: User requesting the transition
            system: True when the workflow itself applies the edge
                (mark_translated, publish)
            metadata: Extra context stored on the audit event
            audit_action: Audit event name
            checklist: Checklist of the stage being left, stored on the
                story field named in CHECKLIST_FIELDS
            require_reason: Revise edges must carry a reason in
                metadata ('reason' or 'notes')

        Returns:
            The applied Edge

        Raises:
            InvalidTransitionError: unknown or inapplicable edge, wrong stage
            AlreadyTerminalError: story already published
            ForbiddenError: actor lacks authority
            ValidationFailedError: story not ready for the edge
            StaleStateError: story changed concurrently
        """
        from .models import Story
        from .revisions import validate_revision_reason
        from .routing import next_edge

        edge = get_edge(edge_name)
        story = self.story

        if story.is_translation:
            raise InvalidTransitionError(
                "Translations advance through the translation workflow"
            )

        current = self.current_state
        if current.is_terminal:
            raise AlreadyTerminalError(f"Story {story.id} is already published")

        if edge.system_only and not system:
            raise InvalidTransitionError(
                f"'{edge.name}' is applied by the workflow and cannot be requested directly"
            )

        if not system:
            role = get_user_role(actor)
            if not can_perform_edge(role, edge.name):
                raise ForbiddenError(f"Role {role or 'none'} may not {edge.name.replace('_', ' ')}")
            if (
                edge.requires_ownership
                and actor.pk != story.author_id
                and not can_manage_any_story(role)
            ):
                raise ForbiddenError("Only the author or an editor can submit this story")

        author_role = self.author_role
        if next_edge(edge.source, author_role, edge.outcome) is not edge:
            raise InvalidTransitionError(
                f"'{edge.name}' does not apply to stories written by a {author_role.lower()}"
            )

        if current is not edge.source:
            raise InvalidTransitionError(
                f"Cannot {edge.name.replace('_', ' ')} from {current.value}",
                details={
                    'current_stage': current.value,
                    'required_stage': edge.source.value,
                },
            )

        if edge.target is StoryStage.APPROVED and not story.category:
            raise ValidationFailedError("A category is required before approval", field='category')

        if require_reason and edge.outcome == 'revise':
            meta = metadata or {}
            validate_revision_reason(meta.get('reason') or meta.get('notes'))

        now = timezone.now()
        changes = {'stage': edge.target.value, 'updated_at': now}
        if edge.target is StoryStage.PUBLISHED:
            changes['published_at'] = now
        if checklist is not None:
            checklist_field = CHECKLIST_FIELDS.get(edge.name)
            if checklist_field is None:
                raise ValidationFailedError(
                    f"'{edge.name}' does not take a checklist", field='checklist'
                )
            changes[checklist_field] = clean_checklist(checklist)

        with transaction.atomic():
            updated = Story.objects.filter(pk=story.pk, stage=current.value).update(**changes)
            if not updated:
                raise StaleStateError(
                    f"Story {story.id} left {current.value} before this transition was applied"
                )
            for name, value in changes.items():
                setattr(story, name, value)

            record_event(
                audit_action,
                story,
                actor=actor,
                from_state=current.value,
                to_state=edge.target.value,
                edge=edge.name,
                **(metadata or {}),
            )

        increment_stage_transition(edge.name)
        self._history.append(StageTransition(
            edge=edge.name,
            from_stage=current,
            to_stage=edge.target,
            timestamp=now,
            actor_id=getattr(actor, 'pk', None),
            metadata=metadata or {},
        ))

        logger.info(
            f"Story {story.id} transitioned: "
            f"{current.value} → {edge.target.value} ({edge.name})"
        )

        return edge
