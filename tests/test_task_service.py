"""
Task persistence tests against an in-memory SQLite database.
"""
from datetime import date, datetime

import pytest
from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from ecoloop.core.errors import AlreadyCompleted, AlreadyGenerated, NoTemplatesFound, NotFoundOrForbidden
from ecoloop.models import DailyTask, FarmPlan, TaskGenerationMarker, TaskTemplate
from ecoloop.schemas.farm_plan import FarmPlanCreate
from ecoloop.services import farm_plan_service, task_service

from .conftest import OTHER_USER_ID, USER_ID


def count_tasks(db, farm_plan_id):
    return db.query(DailyTask).filter(DailyTask.farm_plan_id == farm_plan_id).count()


class TestGeneration:
    def test_generates_and_marks(self, catalog, make_plan):
        plan = make_plan()
        tasks = task_service.generate_tasks_for_plan(catalog, plan)

        assert len(tasks) == 31
        assert all(t.id is not None for t in tasks)
        assert count_tasks(catalog, plan.id) == 31

        marker = catalog.get(TaskGenerationMarker, plan.id)
        assert marker is not None
        assert marker.task_count == 31

    def test_template_link_and_duration(self, catalog, make_plan):
        plan = make_plan()
        tasks = task_service.generate_tasks_for_plan(catalog, plan)

        preparation = next(t for t in tasks if t.title == "Poultry House Preparation")
        assert preparation.template_id is not None
        assert preparation.estimated_duration_minutes == 120

        double = next(t for t in tasks if t.title == "Double check - Chick Arrival")
        assert double.template_id is None
        assert double.estimated_duration_minutes is None

    def test_second_generation_refused(self, catalog, make_plan):
        plan = make_plan()
        task_service.generate_tasks_for_plan(catalog, plan)

        with pytest.raises(AlreadyGenerated):
            task_service.generate_tasks_for_plan(catalog, plan)
        assert count_tasks(catalog, plan.id) == 31

    def test_concurrent_generation_loses_on_marker(self, catalog, make_plan, monkeypatch):
        plan = make_plan()
        task_service.generate_tasks_for_plan(catalog, plan)
        plan_id = plan.id

        # Simulates a second request that passed the check before the first commit
        catalog.expunge_all()
        monkeypatch.setattr(task_service, "has_tasks", lambda db, farm_plan_id: False)
        stale_plan = catalog.get(FarmPlan, plan_id)

        with pytest.raises(AlreadyGenerated):
            task_service.generate_tasks_for_plan(catalog, stale_plan)
        assert count_tasks(catalog, plan_id) == 31

    def test_no_templates(self, db_session, make_plan):
        plan = make_plan()

        with pytest.raises(NoTemplatesFound) as exc_info:
            task_service.generate_tasks_for_plan(db_session, plan)
        assert exc_info.value.context == {"cycle_type": "short", "experience_level": "beginner"}
        assert db_session.get(TaskGenerationMarker, plan.id) is None
        assert count_tasks(db_session, plan.id) == 0

    def test_has_tasks(self, catalog, make_plan):
        plan = make_plan()
        assert task_service.has_tasks(catalog, plan.id) is False

        task_service.generate_tasks_for_plan(catalog, plan)
        assert task_service.has_tasks(catalog, plan.id) is True

    def test_list_templates_by_cycle(self, catalog):
        short = task_service.list_templates(catalog, "short")

        assert short
        assert {t.duration_type for t in short} == {"short"}
        assert len(task_service.list_templates(catalog)) == catalog.query(TaskTemplate).count()


class TestQueries:
    @pytest.fixture
    def plan(self, catalog, make_plan):
        plan = make_plan()
        task_service.generate_tasks_for_plan(catalog, plan)
        return plan

    def test_calendar(self, catalog, plan):
        calendar = task_service.get_task_calendar(catalog, plan.id, today=date(2024, 1, 1))

        assert calendar.total_tasks == 31
        assert calendar.critical_tasks == 15
        assert calendar.upcoming_tasks == 31
        assert calendar.days[0].day_number == 1
        assert calendar.days[0].scheduled_date == date(2024, 1, 1)
        # critical first within the day
        day_one = calendar.days[0].tasks
        assert [t.is_critical for t in day_one] == sorted(
            (t.is_critical for t in day_one), reverse=True
        )

    def test_todays_tasks(self, catalog, plan):
        today = task_service.get_todays_tasks(catalog, plan.id, today=date(2024, 1, 2))

        assert [t.title for t in today.tasks] == [
            "Temperature Control",
            "Double check - Temperature Control",
        ]
        assert today.critical_tasks == 1
        assert today.pending_tasks == 2

    def test_upcoming_tasks(self, catalog, plan):
        upcoming = task_service.get_upcoming_tasks(catalog, plan.id, today=date(2024, 1, 2))

        assert upcoming.window_days == 7
        assert upcoming.count == 11
        assert all(date(2024, 1, 2) <= t.scheduled_date <= date(2024, 1, 9) for t in upcoming.tasks)

    def test_statistics_report(self, catalog, plan):
        report = task_service.get_statistics_report(catalog, plan.id, today=date(2024, 1, 2))

        assert report.overall_statistics.total_tasks == 31
        assert report.overall_statistics.overdue_tasks == 7
        assert report.overall_statistics.today_pending_tasks == 2
        assert sum(c.total for c in report.category_breakdown) == 31
        assert [c.category for c in report.category_breakdown] == sorted(
            c.category for c in report.category_breakdown
        )

    def test_overview_for_unknown_plan(self, catalog):
        overview = task_service.get_task_overview(catalog, 999)
        assert overview.total_tasks == 0
        assert overview.days == []
        assert overview.statistics.completion_percentage == 0


class TestMutations:
    @pytest.fixture
    def task(self, catalog, make_plan):
        plan = make_plan()
        tasks = task_service.generate_tasks_for_plan(catalog, plan)
        return tasks[0]

    def test_complete(self, catalog, task):
        now = datetime(2024, 1, 1, 8, 30)
        done = task_service.complete_task(
            catalog, task.id, USER_ID, notes="All good", photo_ref="photos/1.jpg", now=now
        )

        assert done.completed is True
        assert done.completed_at == now
        assert done.notes == "All good"
        assert done.photo_ref == "photos/1.jpg"

    def test_complete_keeps_existing_notes(self, catalog, task):
        task_service.annotate_task(catalog, task.id, USER_ID, "Before")
        done = task_service.complete_task(catalog, task.id, USER_ID)

        assert done.completed is True
        assert done.notes == "Before"

    def test_complete_twice_keeps_first_timestamp(self, catalog, task):
        first = datetime(2024, 1, 1, 8, 0)
        task_service.complete_task(catalog, task.id, USER_ID, now=first)

        with pytest.raises(AlreadyCompleted):
            task_service.complete_task(
                catalog, task.id, USER_ID, notes="Again", now=datetime(2024, 1, 1, 18, 0)
            )

        catalog.refresh(task)
        assert task.completed_at == first
        assert task.notes is None

    def test_concurrent_completion(self, catalog, task, test_engine):
        first = datetime(2024, 1, 1, 8, 0)

        # Another request completes the row after this session loaded it
        other = sessionmaker(bind=test_engine)()
        other.execute(
            update(DailyTask)
            .where(DailyTask.id == task.id)
            .values(completed=True, completed_at=first)
        )
        other.commit()
        other.close()

        assert task.completed is False
        with pytest.raises(AlreadyCompleted):
            task_service.complete_task(catalog, task.id, USER_ID, now=datetime(2024, 1, 1, 9, 0))

        catalog.refresh(task)
        assert task.completed is True
        assert task.completed_at == first

    def test_other_user(self, catalog, task):
        with pytest.raises(NotFoundOrForbidden):
            task_service.complete_task(catalog, task.id, OTHER_USER_ID)
        with pytest.raises(NotFoundOrForbidden):
            task_service.annotate_task(catalog, task.id, OTHER_USER_ID, "Nope")
        with pytest.raises(NotFoundOrForbidden):
            task_service.attach_photo(catalog, task.id, OTHER_USER_ID, "photos/x.jpg")

        catalog.refresh(task)
        assert task.completed is False
        assert task.notes is None

    def test_missing_task(self, catalog):
        with pytest.raises(NotFoundOrForbidden):
            task_service.complete_task(catalog, 12345, USER_ID)

    def test_attach_photo(self, catalog, task):
        updated = task_service.attach_photo(catalog, task.id, USER_ID, "photos/2.jpg")
        assert updated.photo_ref == "photos/2.jpg"
        assert updated.completed is False

    def test_annotate_can_clear(self, catalog, task):
        task_service.annotate_task(catalog, task.id, USER_ID, "Something")
        cleared = task_service.annotate_task(catalog, task.id, USER_ID, None)
        assert cleared.notes is None


class TestPlanCreationWithExternalCatalog:
    def test_unknown_topic_does_not_block_generation(self, db_session):
        db_session.add(
            TaskTemplate(
                day_number=1,
                category="monitoring",
                is_critical=False,
                duration_type="short",
                topic="lighting",
                title="Light Check",
                description="Check the brooder lamps",
            )
        )
        db_session.commit()

        created = farm_plan_service.create_farm_plan(
            db_session,
            USER_ID,
            FarmPlanCreate(
                plan_name="Imported catalog",
                budget=150000,
                space_m2=20,
                experience_level="beginner",
                duration_days=21,
            ),
            start_date=date(2024, 1, 1),
        )

        assert created.tasks_generated is True
        assert created.tasks_count == 1
        task = task_service.get_tasks(db_session, created.farm_plan.id)[0]
        assert task.description == "Check the brooder lamps"
