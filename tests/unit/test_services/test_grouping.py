"""Tests for grouping, natural sorting and progress aggregation."""

import pytest
from datetime import date

from src.services.grouping import (
    build_category_groups,
    build_date_groups,
    build_subtask_tree,
    category_name_for,
    compare_task_names,
    compute_progress,
    daily_statistics,
    group_by_category,
    group_by_due_date,
    sort_categories,
    sort_dates_descending,
    sort_tasks_by_name,
    uncategorized_tasks,
)
from tests.utils.assertions import assert_partition, assert_progress
from tests.utils.factories import make_category, make_task


@pytest.mark.unit
class TestGroupByDueDate:

    def test_partition_keeps_every_task_once(self, sample_tasks):
        groups = group_by_due_date(sample_tasks)

        assert set(groups) == {"2024-12-09", "2024-12-10"}
        assert_partition(groups, sample_tasks)

    def test_input_order_kept_within_group(self, sample_tasks):
        groups = group_by_due_date(sample_tasks)

        assert [task.id for task in groups["2024-12-10"]] == ["a3", "a4", "a5"]

    def test_empty(self):
        assert group_by_due_date([]) == {}


@pytest.mark.unit
class TestCategoryGrouping:

    def test_group_by_category(self, sample_tasks, sample_categories):
        work = sample_categories[0]

        assert [task.id for task in group_by_category(sample_tasks, work.id)] == ["a1", "a2"]

    def test_uncategorized_includes_dangling_references(self, sample_categories):
        tasks = [make_task(id="x", category_id=None), make_task(id="y", category_id="deleted")]

        assert [task.id for task in uncategorized_tasks(tasks, sample_categories)] == ["x", "y"]

    def test_sort_categories_by_position_then_insertion(self):
        categories = [
            make_category(id="a", name="A"),
            make_category(id="b", name="B", position=2),
            make_category(id="c", name="C"),
            make_category(id="d", name="D", position=0),
        ]

        assert [c.id for c in sort_categories(categories)] == ["d", "b", "a", "c"]

    def test_category_name_for(self, sample_categories):
        work = sample_categories[0]

        assert category_name_for(make_task(category_id=work.id), sample_categories) == "Work"
        assert category_name_for(make_task(category_id="gone"), sample_categories) == "Uncategorized"
        assert category_name_for(make_task(), sample_categories) == "Uncategorized"


@pytest.mark.unit
class TestNaturalSort:

    @pytest.mark.parametrize("names,expected", [
        (["10本目", "2本目", "1本目"], ["1本目", "2本目", "10本目"]),
        (["abc", "3x", "１０x", "２x"], ["２x", "3x", "１０x", "abc"]),
        (["b", "a", "c"], ["a", "b", "c"]),
        (["7b", "7a"], ["7a", "7b"]),
        (["10本目", "2本目", "あ"], ["2本目", "10本目", "あ"]),
        (["10本目", "２本目", "1本目"], ["1本目", "２本目", "10本目"]),
        (["２本目", "2本目"], ["2本目", "２本目"]),
    ])
    def test_sort_tasks_by_name(self, names, expected):
        tasks = [make_task(name=name) for name in names]

        assert [task.name for task in sort_tasks_by_name(tasks)] == expected

    def test_compare_is_antisymmetric(self):
        assert compare_task_names("2a", "10a") == -compare_task_names("10a", "2a") == -1
        assert compare_task_names("same", "same") == 0

    def test_fullwidth_digits_share_numeric_key(self):
        assert compare_task_names("２本目", "3本目") == -1
        assert compare_task_names("２本目", "1本目") == 1
        assert compare_task_names("１２本目", "9本目") == 1

    def test_dates_newest_first(self):
        assert sort_dates_descending(["2024-12-09", "2025-01-01", "2024-12-10"]) == [
            "2025-01-01", "2024-12-10", "2024-12-09",
        ]


@pytest.mark.unit
class TestSubtaskTree:

    def test_children_nested_under_parent(self, sample_tasks):
        roots = build_subtask_tree(sample_tasks)

        assert [task.id for task in roots] == ["a1", "a2", "a3", "a5"]
        parent = next(task for task in roots if task.id == "a3")
        assert [child.id for child in parent.subtasks] == ["a4"]

    def test_input_not_modified(self, sample_tasks):
        build_subtask_tree(sample_tasks)

        assert all(task.subtasks == [] for task in sample_tasks)

    def test_missing_parent_makes_root(self):
        roots = build_subtask_tree([make_task(id="orphan", parent_task_id="missing")])

        assert [task.id for task in roots] == ["orphan"]

    def test_grandchildren(self):
        tasks = [
            make_task(id="c", parent_task_id="b"),
            make_task(id="b", parent_task_id="a"),
            make_task(id="a"),
        ]

        roots = build_subtask_tree(tasks)

        assert [task.id for task in roots] == ["a"]
        assert roots[0].subtasks[0].id == "b"
        assert roots[0].subtasks[0].subtasks[0].id == "c"

    def test_cycle_members_become_roots(self):
        tasks = [make_task(id="a", parent_task_id="b"), make_task(id="b", parent_task_id="a")]

        roots = build_subtask_tree(tasks)

        assert sorted(task.id for task in roots) == ["a", "b"]

    def test_self_parent_is_root(self):
        roots = build_subtask_tree([make_task(id="a", parent_task_id="a")])

        assert [task.id for task in roots] == ["a"]


@pytest.mark.unit
class TestProgress:

    def test_empty_group(self):
        assert_progress(compute_progress([]), 0, 0, 0)

    @pytest.mark.parametrize("completed,total,rate", [
        (1, 3, 33),
        (2, 3, 67),
        (1, 2, 50),
        (1, 8, 13),
        (3, 3, 100),
    ])
    def test_rate_rounds_half_up(self, completed, total, rate):
        tasks = [make_task(status="completed") for _ in range(completed)]
        tasks += [make_task(status="in-progress") for _ in range(total - completed)]

        assert_progress(compute_progress(tasks), rate, completed, total)


@pytest.mark.unit
class TestDateGroups:

    def test_roots_only_newest_first_natural_order(self, sample_tasks):
        groups = build_date_groups(sample_tasks)

        assert [group.date for group in groups] == ["2024-12-10", "2024-12-09"]
        assert [task.name for task in groups[1].tasks] == ["2本目", "10本目"]
        assert [task.id for task in groups[0].tasks] == ["a3", "a5"]
        assert_progress(groups[1].progress, 50, 1, 2)
        assert_progress(groups[0].progress, 0, 0, 2)

    def test_no_tasks(self):
        assert build_date_groups([]) == []


@pytest.mark.unit
class TestCategoryGroups:

    def test_position_order_and_uncategorized_last(self, sample_tasks, sample_categories):
        groups = build_category_groups(sample_tasks, sample_categories)

        assert [group.name for group in groups] == ["Home", "Work", "Uncategorized"]
        assert [task.id for task in groups[1].tasks] == ["a2", "a1"]
        assert [task.id for task in groups[2].tasks] == ["a5"]
        assert_progress(groups[1].progress, 50, 1, 2)

    def test_empty_category_kept_and_no_uncategorized_group(self, sample_categories):
        work = sample_categories[0]
        groups = build_category_groups([make_task(category_id=work.id)], sample_categories)

        assert [group.name for group in groups] == ["Home", "Work"]
        assert groups[0].tasks == []
        assert_progress(groups[0].progress, 0, 0, 0)


@pytest.mark.unit
def test_daily_statistics_oldest_first(sample_tasks):
    stats = daily_statistics(sample_tasks)

    assert [(s.date, s.completed, s.total) for s in stats] == [
        ("2024-12-09", 1, 2),
        ("2024-12-10", 0, 3),
    ]
