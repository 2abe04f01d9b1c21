"""
Tests for PointsService.

Tests cover:
1. Level formula
2. Awarding points and level-ups
3. Event emission
4. Merging level-ups of one unit of work
"""
import pytest

from habit_ledger.events import LevelUp
from habit_ledger.exceptions import ValidationException
from habit_ledger.services.points_service import PointsService


class TestLevelFormula:
    """Tests for level_for"""

    @pytest.mark.parametrize("points,level", [
        (0, 1), (99, 1), (100, 2), (105, 2), (199, 2), (250, 3), (1000, 11),
    ])
    def test_level_is_floor_of_hundreds_plus_one(self, points, level):
        assert PointsService.level_for(points) == level


class TestAwardPoints:
    """Tests for award_points"""

    def test_fresh_user_starts_at_level_one(self, db_session):
        user = PointsService(db_session).get_user()
        assert user.total_points == 0
        assert user.current_level == 1
        assert user.daily_goal == 3
        assert user.name == "Friend"

    def test_level_up_on_second_award(self, db_session):
        """95 then 10 points: 105 total, level 2, level-up only on the second call"""
        service = PointsService(db_session)

        first = service.award_points(95)
        second = service.award_points(10)

        user = service.get_user()
        assert user.total_points == 105
        assert user.current_level == 2
        assert first is None
        assert second == LevelUp(old_level=1, new_level=2, total_points=105)

    def test_level_up_event_emitted_once(self, db_session, events):
        service = PointsService(db_session, events)
        service.award_points(95)
        service.award_points(10)
        service.award_points(10)

        assert events.received == [LevelUp(old_level=1, new_level=2, total_points=105)]

    def test_multi_level_jump(self, db_session):
        level_up = PointsService(db_session).award_points(350)
        assert level_up == LevelUp(old_level=1, new_level=4, total_points=350)

    def test_zero_points_changes_nothing(self, db_session):
        service = PointsService(db_session)
        assert service.award_points(0) is None
        assert service.get_user().total_points == 0

    def test_negative_points_rejected(self, db_session):
        with pytest.raises(ValidationException):
            PointsService(db_session).award_points(-5)

    def test_points_persist_across_sessions(self, session_factory):
        first = session_factory()
        PointsService(first).award_points(120)
        first.close()

        second = session_factory()
        user = PointsService(second).get_user()
        assert user.total_points == 120
        assert user.current_level == 2
        second.close()


class TestMergeLevelUps:
    """Tests for merge_level_ups"""

    def test_no_level_ups(self):
        assert PointsService.merge_level_ups([None, None]) is None

    def test_chain_collapses_to_first_and_last(self):
        merged = PointsService.merge_level_ups([
            None,
            LevelUp(old_level=1, new_level=2, total_points=140),
            LevelUp(old_level=2, new_level=3, total_points=245),
        ])
        assert merged == LevelUp(old_level=1, new_level=3, total_points=245)
