from datetime import timedelta

from conftest import NOW, FakeJiraAPI, adf, make_issue

from jira_report.core.assembler import assemble
from jira_report.core.hierarchy import HierarchyResolver, resolve_hierarchy

LOOKBACK = NOW - timedelta(hours=24)


def _resolve(api, search, now=NOW):
    return HierarchyResolver(api, LOOKBACK, now=now).resolve(search)


def _all_keys(tree):
    keys = []

    def walk(issue):
        keys.append(issue.key)
        for sub in issue.subtasks:
            walk(sub)

    for group in tree.epic_groups.values():
        for issue in group.issues:
            walk(issue)
    for issue in tree.standalone:
        walk(issue)
    return keys


def test_subtask_nested_under_synthesized_parent_in_epic():
    t1 = make_issue("T-1", "Sub-task", parent="S-1", comments=[(NOW - timedelta(hours=1), "Alice", adf("done"))])
    s1 = make_issue("S-1", "Story", parent="E-1")
    e1 = make_issue("E-1", "Epic", status="In Progress", summary="Big epic")
    api = FakeJiraAPI(issues={"S-1": s1, "E-1": e1})

    tree = _resolve(api, [t1])

    assert list(tree.epic_groups) == ["E-1"]
    group = tree.epic_groups["E-1"]
    assert group.summary == "Big epic"
    assert group.url == "https://example.atlassian.net/browse/E-1"
    assert [i.key for i in group.issues] == ["S-1"]
    story = group.issues[0]
    assert story.updates == []
    assert story.last_updated == NOW
    assert [s.key for s in story.subtasks] == ["T-1"]
    assert len(story.subtasks[0].updates) == 1
    assert story.subtasks[0].updates[0].content == "done"
    assert tree.standalone == []


def test_parentless_issue_with_worklog_is_standalone():
    b1 = make_issue("B-1", worklogs=[(NOW - timedelta(hours=2), "Bob", "3h", "fixing")])
    api = FakeJiraAPI()

    tree = _resolve(api, [b1])

    assert tree.epic_groups == {}
    assert [i.key for i in tree.standalone] == ["B-1"]
    update = tree.standalone[0].updates[0]
    assert update.kind == "worklog"
    assert update.time_spent == "3h"
    assert api.calls == []


def test_failed_parent_lookup_demotes_to_standalone():
    t2 = make_issue("T-2", "Sub-task", parent="S-2", comments=[(NOW - timedelta(hours=1), "Alice", "hi")])
    api = FakeJiraAPI(failing={"S-2"})

    tree = _resolve(api, [t2])

    assert [i.key for i in tree.standalone] == ["T-2"]
    assert tree.epic_groups == {}


def test_epic_child_grouped_or_demoted_when_epic_unreachable():
    s3 = make_issue("S-3", "Story", parent="E-3", comments=[(NOW - timedelta(hours=1), "Alice", "hi")])
    api = FakeJiraAPI(issues={"E-3": make_issue("E-3", "Epic")})
    tree = _resolve(api, [s3])
    assert list(tree.epic_groups) == ["E-3"]
    assert [c[0] for c in api.calls] == ["E-3"]

    api = FakeJiraAPI(failing={"E-3"})
    tree = _resolve(api, [s3])
    assert [i.key for i in tree.standalone] == ["S-3"]


def test_failed_parent_activity_fetch_keeps_subtask_visible():
    class PartialAPI(FakeJiraAPI):
        def fetch_issue_raw(self, issue_key, *, fields=None, expand=None, properties=None):
            if fields and "comment" in fields:
                self.failing.add(issue_key)
            return super().fetch_issue_raw(issue_key, fields=fields, expand=expand, properties=properties)

    sub = make_issue("T-4", "Sub-task", parent="S-4", comments=[(NOW - timedelta(hours=1), "Alice", "hi")])
    api = PartialAPI(issues={"S-4": make_issue("S-4", "Story")})

    tree = _resolve(api, [sub])

    assert [i.key for i in tree.standalone] == ["T-4"]


def test_shared_parent_is_synthesized_once():
    a = make_issue("T-10", "Sub-task", parent="S-9", comments=[(NOW - timedelta(hours=3), "Alice", "a")])
    b = make_issue("T-11", "Sub-task", parent="S-9", comments=[(NOW - timedelta(hours=1), "Bob", "b")])
    api = FakeJiraAPI(issues={"S-9": make_issue("S-9", "Story")})

    tree = _resolve(api, [a, b])

    assert [i.key for i in tree.standalone] == ["S-9"]
    parent = tree.standalone[0]
    assert sorted(s.key for s in parent.subtasks) == ["T-10", "T-11"]
    assert _all_keys(tree).count("S-9") == 1
    # Parent activity fetch happens once; classification lookups are memoized
    assert [c for c in api.calls if c[0] == "S-9" and "comment" in (c[1] or ())] == [
        ("S-9", ("summary", "status", "issuetype", "parent", "comment", "worklog"))
    ]


def test_issue_without_recent_activity_is_skipped():
    old = make_issue("OLD-1", comments=[(NOW - timedelta(days=3), "Alice", "stale")])
    api = FakeJiraAPI()

    tree = _resolve(api, [old])

    assert tree.standalone == []
    assert tree.epic_groups == {}


def test_parent_in_search_results_collects_subtask_and_is_not_duplicated():
    story = make_issue("S-5", "Story", parent="E-5", comments=[(NOW - timedelta(hours=5), "Carol", "story")])
    sub = make_issue("T-5", "Sub-task", parent="S-5", comments=[(NOW - timedelta(hours=1), "Dan", "sub")])
    api = FakeJiraAPI(
        issues={
            "E-5": make_issue("E-5", "Epic"),
            "S-5": make_issue("S-5", "Story", parent="E-5"),
        }
    )

    tree = _resolve(api, [story, sub, story])

    group = tree.epic_groups["E-5"]
    assert [i.key for i in group.issues] == ["S-5"]
    assert [s.key for s in group.issues[0].subtasks] == ["T-5"]
    assert group.issues[0].updates[0].content == "story"
    assert _all_keys(tree).count("S-5") == 1


def test_parent_without_activity_later_in_search_is_skipped_after_synthesis():
    sub = make_issue("T-6", "Sub-task", parent="S-6", comments=[(NOW - timedelta(hours=1), "Dan", "sub")])
    story_with_activity = make_issue("S-6", "Story", comments=[(NOW - timedelta(hours=2), "Eve", "late")])
    api = FakeJiraAPI(issues={"S-6": make_issue("S-6", "Story")})

    tree = _resolve(api, [sub, story_with_activity])

    assert _all_keys(tree) == ["S-6", "T-6"]


def test_subtasks_never_at_group_level():
    subs = [
        make_issue(f"T-{n}", "Sub-task", parent="S-1", comments=[(NOW - timedelta(hours=n), "A", "x")])
        for n in range(1, 4)
    ]
    api = FakeJiraAPI(issues={"S-1": make_issue("S-1", "Story", parent="E-1"), "E-1": make_issue("E-1", "Epic")})

    tree = _resolve(api, subs)

    top_level = [i.key for g in tree.epic_groups.values() for i in g.issues] + [i.key for i in tree.standalone]
    assert top_level == ["S-1"]
    assert len(tree.epic_groups["E-1"].issues[0].subtasks) == 3


def test_grandparent_not_epic_places_parent_standalone():
    sub = make_issue("T-7", "Sub-task", parent="S-7", comments=[(NOW - timedelta(hours=1), "A", "x")])
    api = FakeJiraAPI(
        issues={
            "S-7": make_issue("S-7", "Story", parent="X-7"),
            "X-7": make_issue("X-7", "Initiative"),
        }
    )

    tree = _resolve(api, [sub])

    assert tree.epic_groups == {}
    assert [i.key for i in tree.standalone] == ["S-7"]


def test_parentless_epic_with_activity_goes_standalone():
    epic = make_issue("E-8", "Epic", comments=[(NOW - timedelta(hours=1), "A", "epic note")])
    tree = _resolve(FakeJiraAPI(), [epic])
    assert tree.epic_groups == {}
    assert [i.key for i in tree.standalone] == ["E-8"]


def test_resolution_is_idempotent():
    search = [
        make_issue("T-1", "Sub-task", parent="S-1", comments=[(NOW - timedelta(hours=1), "A", "x")]),
        make_issue("B-1", worklogs=[(NOW - timedelta(hours=2), "B", "1h", None)]),
        make_issue("S-2", "Story", parent="E-1", comments=[(NOW - timedelta(hours=4), "C", "y")]),
    ]
    api = FakeJiraAPI(
        issues={"S-1": make_issue("S-1", "Story", parent="E-1"), "E-1": make_issue("E-1", "Epic")}
    )
    resolver = HierarchyResolver(api, LOOKBACK, now=NOW)

    first = assemble(*_tree_parts(resolver.resolve(search)), NOW, "UTC")
    second = assemble(*_tree_parts(resolver.resolve(search)), NOW, "UTC")
    third = assemble(*_tree_parts(resolve_hierarchy(api, search, LOOKBACK, now=NOW)), NOW, "UTC")

    assert first == second == third
    assert first.iter_issue_keys() == ["S-1", "T-1", "S-2", "B-1"]


def _tree_parts(tree):
    return tree.epic_groups, tree.standalone


def test_naive_now_and_lookback_are_read_as_utc():
    sub = make_issue("T-9", "Sub-task", parent="S-9", comments=[(NOW - timedelta(hours=1), "A", "x")])
    other = make_issue("B-9", comments=[(NOW - timedelta(hours=2), "B", "y")])
    api = FakeJiraAPI(issues={"S-9": make_issue("S-9", "Story")})
    resolver = HierarchyResolver(api, LOOKBACK.replace(tzinfo=None), now=NOW.replace(tzinfo=None))

    tree = resolver.resolve([sub, other])
    doc = assemble(*_tree_parts(tree), NOW, "UTC")

    assert tree.standalone[0].last_updated == NOW
    assert tree.standalone[0].last_updated.tzinfo is not None
    assert doc.iter_issue_keys() == ["S-9", "T-9", "B-9"]
