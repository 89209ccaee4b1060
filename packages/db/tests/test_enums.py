# This project was developed with assistance from AI tools.
"""Domain enum and model metadata tests (no database needed)."""

import pytest

from db import Base, DocumentGroup
from db.enums import GroupEvent, GroupStatus, PropertyStatus, UserRole


def test_operator_roles():
    assert UserRole.operator_roles() == {UserRole.ADMIN, UserRole.OPERATOR}
    assert UserRole.PARTNER not in UserRole.operator_roles()


def test_editable_and_under_review_are_disjoint():
    assert GroupStatus.editable() == {GroupStatus.NOT_SUBMITTED, GroupStatus.REJECTED}
    assert GroupStatus.under_review() == {GroupStatus.PENDING, GroupStatus.MANUAL_REVIEW}
    assert not GroupStatus.editable() & GroupStatus.under_review()


def test_every_transition_target_is_a_group_status():
    for event, table in GroupEvent.valid_transitions().items():
        assert table, f"{event} has no legal source status"
        for source, target in table.items():
            assert isinstance(source, GroupStatus)
            assert isinstance(target, GroupStatus)


def test_submit_only_from_editable_statuses():
    assert set(GroupEvent.valid_transitions()[GroupEvent.SUBMIT]) == GroupStatus.editable()


@pytest.mark.parametrize("event", [GroupEvent.APPROVE, GroupEvent.REJECT])
def test_decisions_only_from_review_statuses(event):
    assert set(GroupEvent.valid_transitions()[event]) == GroupStatus.under_review()


def test_override_statuses_exclude_pending():
    assert PropertyStatus.PENDING not in PropertyStatus.override_statuses()


def test_document_group_table_constraints():
    table = Base.metadata.tables["document_groups"]
    names = {c.name for c in table.constraints}
    assert "ck_document_groups_one_owner" in names
    assert "ck_document_groups_rejection_reason" in names
    assert DocumentGroup.__tablename__ == "document_groups"
