"""
Tests for author-role routing.
"""

import pytest

from apps.core.exceptions import InvalidTransitionError
from apps.stories.routing import next_edge, outcomes_for
from apps.stories.state_machine import StoryStage


@pytest.mark.parametrize('stage, author_role, outcome, expected', [
    ('DRAFT', 'INTERN', 'submit', 'submit_for_review'),
    ('DRAFT', 'JOURNALIST', 'submit', 'submit_for_approval'),
    ('DRAFT', 'EDITOR', 'submit', 'submit_for_approval'),
    ('NEEDS_JOURNALIST_REVIEW', 'INTERN', 'approve', 'send_for_approval'),
    ('NEEDS_JOURNALIST_REVIEW', 'INTERN', 'revise', 'request_revision'),
    ('NEEDS_SUB_EDITOR_APPROVAL', 'INTERN', 'approve', 'approve'),
    ('NEEDS_SUB_EDITOR_APPROVAL', 'INTERN', 'revise', 'send_back'),
    ('NEEDS_SUB_EDITOR_APPROVAL', 'JOURNALIST', 'revise', 'return_to_author'),
    ('APPROVED', 'JOURNALIST', 'translated', 'mark_translated'),
    ('TRANSLATED', 'INTERN', 'publish', 'publish'),
])
def test_next_edge(stage, author_role, outcome, expected):
    assert next_edge(stage, author_role, outcome).name == expected


def test_accepts_stage_enum():
    assert next_edge(StoryStage.DRAFT, 'INTERN', 'submit').name == 'submit_for_review'


@pytest.mark.parametrize('stage, outcome', [
    ('DRAFT', 'approve'),
    ('APPROVED', 'publish'),
    ('PUBLISHED', 'revise'),
])
def test_no_route(stage, outcome):
    with pytest.raises(InvalidTransitionError) as excinfo:
        next_edge(stage, 'JOURNALIST', outcome)
    assert excinfo.value.error_details == {'stage': stage, 'outcome': outcome}


def test_outcomes_for_approval_stage():
    assert outcomes_for('NEEDS_SUB_EDITOR_APPROVAL', 'JOURNALIST') == ['approve', 'revise']


def test_published_has_no_outcomes():
    assert outcomes_for('PUBLISHED', 'INTERN') == []
