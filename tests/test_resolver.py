"""
Tests for the task index and resolver.
"""
from atlas.indexer import TaskIndex, normalize_title
from atlas.resolver import MATCH_FUZZY, MATCH_ID, MATCH_TITLE, UNRESOLVED, TaskResolver
from atlas.schema import Task


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Indexer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_normalize_title():
    assert normalize_title("  Paint   CABINET\tdoors ") == "paint cabinet doors"
    assert normalize_title(None) == ""


def test_index_lookups(store):
    index = TaskIndex(store)
    assert index.get("t7").title == "Paint cabinet doors"
    assert index.ids_for_title("paint cabinet DOORS") == ["t7"]
    assert "t1" in index
    assert "nope" not in index
    assert len(index) == 13


def test_index_keeps_every_id_for_a_title(store):
    store.tasks.append(Task(id="dup", title="Order Backsplash Tiles"))
    index = TaskIndex(store)
    index.rebuild()
    assert index.ids_for_title("order backsplash tiles") == ["t3", "dup"]


def test_index_first_id_wins_on_collision(store):
    store.tasks.append(Task(id="t1", title="Impostor"))
    index = TaskIndex(store)
    index.rebuild()
    assert index.get("t1").title == "Replace attic insulation"


def test_index_follows_store_version(store):
    index = TaskIndex(store)
    index.rebuild()
    store.add_task(Task(id="new", title="Caulk tub"))
    assert index.get("new") is not None
    store.delete_task("new")
    assert index.get("new") is None
    assert index.ids_for_title("Caulk tub") == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Resolver
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def make_resolver(store, strict=False):
    return TaskResolver(TaskIndex(store), strict=strict)


def test_resolve_by_id(store):
    res = make_resolver(store).resolve("t5")
    assert res.resolved
    assert res.match == MATCH_ID
    assert res.task.title == "Schedule tile install"


def test_resolve_by_exact_title(store):
    res = make_resolver(store).resolve("  schedule TILE install ")
    assert res.match == MATCH_TITLE
    assert res.task.id == "t5"
    assert not res.ambiguous


def test_resolve_fuzzy_both_directions(store):
    resolver = make_resolver(store)

    res = resolver.resolve("backsplash")
    assert res.match == MATCH_FUZZY
    assert res.task.id == "t3"

    res = resolver.resolve("Order backsplash tiles for the kitchen")
    assert res.match == MATCH_FUZZY
    assert res.task.id == "t3"


def test_resolve_unresolved(store):
    resolver = make_resolver(store)
    for query in ("", "   ", None, "Build a treehouse"):
        res = resolver.resolve(query)
        assert not res.resolved
        assert res.match == UNRESOLVED


def test_ambiguous_fuzzy_match_picks_first_and_reports(store):
    res = make_resolver(store).resolve("paint")
    assert res.task.id == "t7"
    assert res.candidates == ("t7", "t13")
    assert res.ambiguous


def test_strict_mode_refuses_ambiguous_match(store):
    res = make_resolver(store, strict=True).resolve("paint")
    assert not res.resolved
    assert res.candidates == ("t7", "t13")

    # unique matches still resolve
    assert make_resolver(store, strict=True).resolve("backsplash").task.id == "t3"


def test_duplicate_titles_resolve_to_first_inserted(store):
    store.add_task(Task(id="dup", title="Order backsplash tiles"))
    res = make_resolver(store).resolve("Order backsplash tiles")
    assert res.match == MATCH_TITLE
    assert res.task.id == "t3"
    assert res.candidates == ("t3", "dup")


def test_tasks_with_empty_titles_never_match_fuzzily(store):
    store.add_task(Task(id="blank", title="   "))
    res = make_resolver(store).resolve("Build a treehouse")
    assert not res.resolved
