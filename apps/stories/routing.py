"""
Author-role routing.

Stories share one stage graph, but which edge a given outcome takes
depends on who wrote the story: intern drafts go to a journalist for
review first and are sent back to that journalist; everyone else's
drafts go straight to sub-editor approval and back to the author.
"""

from apps.core.exceptions import InvalidTransitionError

from .state_machine import EDGES, Edge, StoryStage

OUTCOMES = ('submit', 'approve', 'revise', 'translated', 'publish')


def _is_intern(author_role):
    return author_role == 'INTERN'


def next_edge(current_stage, author_role: str, outcome: str) -> Edge:
    """
    Pick the edge an outcome takes from ``current_stage``.

    Args:
        current_stage: StoryStage or its string value
        author_role: Role of the story's author
        outcome: submit, approve, revise, translated or publish

    Raises:
        InvalidTransitionError: no route for the outcome from that stage
    """
    if isinstance(current_stage, str):
        current_stage = StoryStage.from_string(current_stage)

    intern = _is_intern(author_role)

    if current_stage is StoryStage.DRAFT and outcome == 'submit':
        return EDGES['submit_for_review'] if intern else EDGES['submit_for_approval']

    if current_stage is StoryStage.NEEDS_JOURNALIST_REVIEW:
        if outcome == 'approve':
            return EDGES['send_for_approval']
        if outcome == 'revise':
            return EDGES['request_revision']

    if current_stage is StoryStage.NEEDS_SUB_EDITOR_APPROVAL:
        if outcome == 'approve':
            return EDGES['approve']
        if outcome == 'revise':
            return EDGES['send_back'] if intern else EDGES['return_to_author']

    if current_stage is StoryStage.APPROVED and outcome == 'translated':
        return EDGES['mark_translated']

    if current_stage is StoryStage.TRANSLATED and outcome == 'publish':
        return EDGES['publish']

    raise InvalidTransitionError(
        f"No '{outcome}' route from {current_stage.value}",
        details={'stage': current_stage.value, 'outcome': outcome},
    )


def outcomes_for(current_stage, author_role: str):
    """Outcomes that have a route from ``current_stage`` for this author."""
    available = []
    for outcome in OUTCOMES:
        try:
            next_edge(current_stage, author_role, outcome)
        except InvalidTransitionError:
            continue
        available.append(outcome)
    return available
