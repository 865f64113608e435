"""Tests for the project status engine.

All functions under test are pure: no database, deterministic given the
record and an explicit "today".
"""
from datetime import date, timedelta

import pytest

from tests.conftest import make_record
from tracker.services.status import (
    ProjectDerivation,
    ProjectStatus,
    can_access_links,
    derive,
    get_due_amount,
    get_missing_completion_requirements,
    get_missing_delivery_requirements,
    get_project_status,
    is_overdue,
    parse_iso_date,
)

pytestmark = pytest.mark.unit

TODAY = date(2024, 6, 1)


# --- Scenarios -------------------------------------------------------------

def test_fresh_project_is_not_started():
    p = make_record(total_amount=1000, total_received=0, advance_received=0)
    assert get_project_status(p) == ProjectStatus.NOT_STARTED
    assert get_due_amount(p) == 1000
    assert can_access_links(p) is False


def test_partial_payment_is_in_progress():
    p = make_record(total_amount=1000, total_received=400)
    assert get_project_status(p) == ProjectStatus.IN_PROGRESS
    assert get_due_amount(p) == 600


def test_completed_and_paid_is_ready_to_deliver():
    p = make_record(total_amount=1000, total_received=1000, completed_at="2024-01-01")
    assert get_project_status(p) == ProjectStatus.READY_TO_DELIVER
    assert get_due_amount(p) == 0
    assert can_access_links(p) is True


def test_completed_with_balance_is_payment_pending():
    p = make_record(total_amount=1000, total_received=600, completed_at="2024-01-01")
    assert get_project_status(p) == ProjectStatus.COMPLETED_PAYMENT_PENDING
    assert get_due_amount(p) == 400
    assert can_access_links(p) is False


def test_delivered_project():
    p = make_record(
        total_amount=1000,
        total_received=1000,
        completed_at="2024-01-01",
        delivered_at="2024-01-05",
    )
    assert get_project_status(p) == ProjectStatus.DELIVERED


def test_deadline_long_past_is_overdue():
    p = make_record(deadline="2023-01-01")
    assert is_overdue(p, today=TODAY) is True


# --- Due amount and link gate ---------------------------------------------

@pytest.mark.parametrize("received", [0, 1, 999, 1000, 1001, 50_000])
def test_due_amount_never_negative(received):
    p = make_record(total_amount=1000, total_received=received)
    assert get_due_amount(p) >= 0
    assert can_access_links(p) == (get_due_amount(p) == 0)


def test_overpayment_clamps_due_to_zero():
    p = make_record(total_amount=1000, total_received=1500)
    assert get_due_amount(p) == 0
    assert can_access_links(p) is True


def test_gate_ignores_lifecycle_fields():
    # Delivered but unpaid: links stay hidden
    p = make_record(total_received=0, completed_at="2024-01-01", delivered_at="2024-01-02")
    assert can_access_links(p) is False

    # Paid but not started on paper: links open
    p = make_record(total_received=1000)
    assert can_access_links(p) is True


# --- Status precedence -----------------------------------------------------

@pytest.mark.parametrize(
    "overrides",
    [
        {"total_received": 0},
        {"total_received": 300, "completed_at": None},
        {"total_received": 300, "completed_at": "2024-01-01"},
        {"total_received": 5000, "completed_at": "2024-01-01"},
    ],
)
def test_delivered_is_terminal(overrides):
    p = make_record(delivered_at="2024-02-01", **overrides)
    assert get_project_status(p) == ProjectStatus.DELIVERED


def test_completed_without_any_payment_is_payment_pending():
    p = make_record(total_received=0, completed_at="2024-01-01")
    assert get_project_status(p) == ProjectStatus.COMPLETED_PAYMENT_PENDING


def test_full_payment_before_completion_is_in_progress():
    p = make_record(total_received=1000)
    assert get_project_status(p) == ProjectStatus.IN_PROGRESS


def test_blank_timestamps_count_as_absent():
    p = make_record(total_received=100, completed_at="", delivered_at="  ")
    assert get_project_status(p) == ProjectStatus.IN_PROGRESS


def test_statuses_are_ordered_by_completeness():
    ordered = [
        ProjectStatus.NOT_STARTED,
        ProjectStatus.IN_PROGRESS,
        ProjectStatus.COMPLETED_PAYMENT_PENDING,
        ProjectStatus.READY_TO_DELIVER,
        ProjectStatus.DELIVERED,
    ]
    assert [s.rank for s in ordered] == [0, 1, 2, 3, 4]
    assert ProjectStatus.READY_TO_DELIVER.value == "Ready to Deliver"


# --- Regressions against the earlier advance-keyed rule ---------------------

def test_payment_without_advance_is_in_progress():
    """The earlier rule keyed off advance_received and reported Not Started here."""
    p = make_record(advance_received=0, total_received=500)
    assert get_project_status(p) == ProjectStatus.IN_PROGRESS


def test_overpaid_completed_project_is_ready_not_negative_due():
    """The earlier rule let due go negative; it must clamp to zero."""
    p = make_record(total_amount=1000, total_received=1200, completed_at="2024-01-01")
    assert get_due_amount(p) == 0
    assert get_project_status(p) == ProjectStatus.READY_TO_DELIVER


def test_delivered_with_no_payment_stays_delivered():
    """The earlier rule checked the advance first and reported Not Started."""
    p = make_record(advance_received=0, total_received=0, delivered_at="2024-01-05")
    assert get_project_status(p) == ProjectStatus.DELIVERED


def test_delivered_with_balance_stays_delivered():
    """The earlier rule checked due before delivery and reported Payment Pending."""
    p = make_record(
        advance_received=200,
        total_received=200,
        completed_at="2024-01-01",
        delivered_at="2024-01-05",
    )
    assert get_project_status(p) == ProjectStatus.DELIVERED


# --- Overdue ---------------------------------------------------------------

def test_deadline_today_is_not_overdue():
    p = make_record(deadline=TODAY.isoformat())
    assert is_overdue(p, today=TODAY) is False


def test_deadline_yesterday_is_overdue():
    p = make_record(deadline=(TODAY - timedelta(days=1)).isoformat())
    assert is_overdue(p, today=TODAY) is True


def test_future_deadline_is_not_overdue():
    p = make_record(deadline="2030-01-01")
    assert is_overdue(p, today=TODAY) is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"deadline": None},
        {"deadline": ""},
        {"deadline": "2000-01-01", "completed_at": "2000-02-01"},
        {"deadline": "2000-01-01", "delivered_at": "2000-02-01"},
    ],
)
def test_never_overdue_without_deadline_or_when_finished(overrides):
    p = make_record(**overrides)
    assert is_overdue(p, today=TODAY) is False


@pytest.mark.parametrize("deadline", ["not-a-date", "2024-13-45", "31/05/2024"])
def test_unparsable_deadline_is_not_overdue(deadline):
    p = make_record(deadline=deadline)
    assert is_overdue(p, today=TODAY) is False


def test_deadline_time_of_day_is_ignored():
    assert is_overdue(make_record(deadline="2024-05-31T23:59:59Z"), today=TODAY) is True
    assert is_overdue(make_record(deadline="2024-06-01T00:00:01Z"), today=TODAY) is False


def test_overdue_defaults_to_current_date():
    p = make_record(deadline=(date.today() - timedelta(days=3)).isoformat())
    assert is_overdue(p) is True


def test_parse_iso_date_variants():
    assert parse_iso_date("2024-02-29") == date(2024, 2, 29)
    assert parse_iso_date("2024-02-29T10:15:00+05:30") == date(2024, 2, 29)
    assert parse_iso_date("2024-02-29T10:15:00Z") == date(2024, 2, 29)
    assert parse_iso_date(None) is None
    assert parse_iso_date("garbage") is None


# --- Missing requirements --------------------------------------------------

def test_completion_requirements_all_missing_in_order():
    p = make_record()
    assert get_missing_completion_requirements(p) == ["Client name", "Tech stack", "Deliverables"]


def test_completion_requirements_treat_blank_and_empty_as_missing():
    p = make_record(client_name="   ", tech_stack=[], deliverables=["Source code"])
    assert get_missing_completion_requirements(p) == ["Client name", "Tech stack"]


def test_completion_requirements_satisfied():
    p = make_record(client_name="Acme", tech_stack=["FastAPI"], deliverables=["Source code"])
    assert get_missing_completion_requirements(p) == []


def test_delivery_requirements_exclude_video_by_default():
    p = make_record()
    assert get_missing_delivery_requirements(p) == ["Repository link", "Live link"]


def test_delivery_requirements_with_recommended_items():
    p = make_record(repo_link="https://github.com/acme/app")
    assert get_missing_delivery_requirements(p, include_recommended=True) == [
        "Live link",
        "Completion video",
    ]


def test_delivery_requirements_satisfied_without_video():
    p = make_record(repo_link="https://github.com/acme/app", live_link="https://app.acme.in")
    assert get_missing_delivery_requirements(p) == []


# --- Purity ----------------------------------------------------------------

def test_derivations_are_idempotent_and_do_not_mutate():
    p = make_record(total_received=400, deadline="2024-05-01", client_name="Acme")
    before = dict(vars(p))

    first = derive(p, today=TODAY)
    second = derive(p, today=TODAY)

    assert first == second
    assert vars(p) == before
    assert first.status == ProjectStatus.IN_PROGRESS
    assert first.due_amount == 600
    assert first.is_overdue is True
    assert first.can_access_links is False
    assert first.missing_completion_requirements == ["Tech stack", "Deliverables"]
    assert first.missing_delivery_requirements == ["Repository link", "Live link"]
    assert first.recommended_delivery_items == ["Completion video"]


def test_derivation_requires_every_requirement_list():
    with pytest.raises(TypeError):
        ProjectDerivation(
            status=ProjectStatus.NOT_STARTED,
            due_amount=1000,
            is_overdue=False,
            can_access_links=True,
        )


def test_partner_shares_do_not_affect_derivations():
    base = make_record(total_received=400)
    with_shares = make_record(
        total_received=400,
        partner_share_given=900,
        harshk_share_given=300,
        nikku_share_given=300,
    )
    assert derive(base, today=TODAY) == derive(with_shares, today=TODAY)
