"""
Tests for goals.

Tests cover:
1. Progress of quantitative, milestone and streak goals
2. Pace and update schedule
3. GoalService creation rules, updates and streak sync
"""
import pytest
from datetime import date, datetime, timedelta

from pydantic import ValidationError

from habit_ledger.models import Goal
from habit_ledger.schemas import GoalCreate
from habit_ledger.exceptions import (
    GoalNotFoundException, HabitNotFoundException, ValidationException
)
from habit_ledger.services.goal_service import GoalService
from habit_ledger.services.progress_service import ProgressService
from habit_ledger.tests.conftest import create_habit


def make_goal(**kwargs):
    defaults = {
        "name": "Goal",
        "goal_type": "quantitative",
        "start_value": 0.0,
        "target_value": 100.0,
        "current_value": 0.0,
        "update_frequency": "weekly",
    }
    defaults.update(kwargs)
    return Goal(**defaults)


class TestGoalProgress:
    """Tests for the Goal.progress property"""

    def test_quantitative_increasing(self):
        goal = make_goal(start_value=0, target_value=100, current_value=25)
        assert goal.progress == pytest.approx(0.25)
        assert goal.progress_percentage == 25
        assert goal.remaining_value == 75

    def test_quantitative_decreasing(self):
        """Weight loss: 90 -> 80, now at 85"""
        goal = make_goal(start_value=90, target_value=80, current_value=85)
        assert goal.progress == pytest.approx(0.5)

    def test_quantitative_wrong_direction_is_zero(self):
        goal = make_goal(start_value=90, target_value=80, current_value=95)
        assert goal.progress == 0.0

    def test_quantitative_overshoot_is_capped(self):
        goal = make_goal(start_value=0, target_value=10, current_value=15)
        assert goal.progress == 1.0

    def test_quantitative_target_equals_start(self):
        goal = make_goal(start_value=50, target_value=50, current_value=50)
        assert goal.progress == 0.0

    def test_milestone(self):
        assert make_goal(goal_type="milestone", target_value=4, current_value=1).progress == 0.25
        assert make_goal(goal_type="milestone", target_value=4, current_value=6).progress == 1.0

    def test_streak(self):
        goal = make_goal(goal_type="streak", target_value=30, current_value=12)
        assert goal.progress == pytest.approx(0.4)

    def test_non_positive_target_guard(self):
        assert make_goal(goal_type="milestone", target_value=0, current_value=3).progress == 0.0
        assert make_goal(goal_type="streak", target_value=-5, current_value=3).progress == 0.0

    def test_negative_current_value_is_zero(self):
        assert make_goal(goal_type="milestone", target_value=4, current_value=-2).progress == 0.0
        assert make_goal(goal_type="streak", target_value=30, current_value=-1).progress == 0.0


class TestGoalSchedule:
    """Tests for pace and update due dates"""

    def test_on_track_without_deadline(self):
        assert make_goal(current_value=0).is_on_track(date(2026, 1, 15))

    def test_on_track_after_deadline(self):
        goal = make_goal(current_value=0, deadline=date(2026, 1, 1))
        assert goal.is_on_track(date(2026, 1, 15))

    def test_behind_pace(self):
        goal = make_goal(current_value=10, deadline=date(2026, 1, 25))
        assert not goal.is_on_track(date(2026, 1, 15))

    def test_ahead_of_pace(self):
        goal = make_goal(current_value=60, deadline=date(2026, 1, 25))
        assert goal.is_on_track(date(2026, 1, 15))

    def test_next_update_from_last_update(self):
        last = datetime(2026, 1, 10, 9, 0)
        goal = make_goal(update_frequency="biweekly", last_update_at=last)
        assert goal.next_update_due == last + timedelta(days=14)
        assert goal.is_update_due(datetime(2026, 1, 24, 9, 0))
        assert not goal.is_update_due(datetime(2026, 1, 20))

    def test_next_update_from_creation(self):
        created = datetime(2026, 1, 1, 12, 0)
        goal = make_goal(update_frequency="daily", created_at=created)
        assert goal.next_update_due == datetime(2026, 1, 2, 12, 0)


class TestGoalService:
    """Tests for GoalService"""

    def test_create_defaults_current_to_start(self, db_session, clock):
        goal = GoalService(db_session, clock).create_goal(GoalCreate(
            name="Lose weight", start_value=90, target_value=80, unit="kg"
        ))

        assert goal.id is not None
        assert goal.current_value == 90
        assert goal.progress == 0.0
        assert goal.is_active

    def test_zero_target_rejected(self, db_session, clock):
        with pytest.raises(ValidationException):
            GoalService(db_session, clock).create_goal(GoalCreate(name="Nothing", target_value=0))

    def test_streak_goal_needs_positive_target(self, db_session, clock):
        with pytest.raises(ValidationException):
            GoalService(db_session, clock).create_goal(GoalCreate(
                name="Streak", goal_type="streak", target_value=-3
            ))

    def test_habit_link_only_for_streak_goals(self, db_session, clock, habit):
        with pytest.raises(ValidationException):
            GoalService(db_session, clock).create_goal(GoalCreate(
                name="Read more", target_value=50, habit_id=habit.id
            ))

    def test_linked_habit_must_exist(self, db_session, clock):
        with pytest.raises(HabitNotFoundException):
            GoalService(db_session, clock).create_goal(GoalCreate(
                name="Streak", goal_type="streak", target_value=30, habit_id=77
            ))

    def test_unknown_goal_type_rejected_by_schema(self):
        with pytest.raises(ValidationError):
            GoalCreate(name="Odd", goal_type="vibes", target_value=1)

    def test_unknown_frequency_rejected_by_schema(self):
        with pytest.raises(ValidationError):
            GoalCreate(name="Odd", target_value=1, update_frequency="hourly")

    def test_record_update_keeps_history(self, db_session, clock):
        service = GoalService(db_session, clock)
        goal = service.create_goal(GoalCreate(name="Save", target_value=1000, unit="EUR"))

        service.record_update(goal.id, 200, note="January")
        goal = service.record_update(goal.id, 450)

        assert goal.current_value == 450
        assert goal.progress_percentage == 45
        assert goal.last_update_at is not None
        updates = service.get_updates(goal.id)
        assert [u.value for u in updates] == [200, 450]
        assert updates[0].note == "January"

    def test_unknown_goal(self, db_session, clock):
        with pytest.raises(GoalNotFoundException):
            GoalService(db_session, clock).record_update(5, 1)

    def test_inactive_goals_hidden_by_default(self, db_session, clock):
        service = GoalService(db_session, clock)
        kept = service.create_goal(GoalCreate(name="Kept", target_value=10))
        dropped = service.create_goal(GoalCreate(name="Dropped", target_value=10))
        dropped.is_active = False
        db_session.commit()

        assert [g.id for g in service.get_goals()] == [kept.id]
        assert len(service.get_goals(include_inactive=True)) == 2

    def test_sync_streak_goal(self, db_session, clock, habit):
        progress = ProgressService(db_session, clock)
        for offset in (2, 1, 0):
            progress.log_progress(habit.id, clock.today - timedelta(days=offset))

        service = GoalService(db_session, clock)
        goal = service.create_goal(GoalCreate(
            name="Read 30 days", goal_type="streak", target_value=30, habit_id=habit.id
        ))
        goal = service.sync_streak_goal(goal.id)

        assert goal.current_value == 3
        assert goal.progress == pytest.approx(0.1)
        assert service.get_updates(goal.id)[0].note == "streak sync"

        # No change, no new update
        service.sync_streak_goal(goal.id)
        assert len(service.get_updates(goal.id)) == 1

    def test_sync_requires_linked_streak_goal(self, db_session, clock):
        service = GoalService(db_session, clock)
        goal = service.create_goal(GoalCreate(name="Save", target_value=10))
        with pytest.raises(ValidationException):
            service.sync_streak_goal(goal.id)

    def test_inactive_habit_cannot_be_linked(self, db_session, clock):
        retired = create_habit(db_session, is_active=False)
        with pytest.raises(HabitNotFoundException):
            GoalService(db_session, clock).create_goal(GoalCreate(
                name="Streak", goal_type="streak", target_value=10, habit_id=retired.id
            ))
