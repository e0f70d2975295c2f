"""
Tests for the filter/sort projection and focus anchoring.
"""
import pytest

from steam_library.controllers.projector import LibraryProjector, SortMode, project
from steam_library.stores.base import LibraryItem


def make_master(*specs):
    return {app_id: LibraryItem(app_id=app_id, title=title, playtime_minutes=playtime)
            for app_id, title, playtime in specs}


@pytest.fixture
def master():
    return make_master(
        (30, "beta", 50),
        (10, "Alpha", 0),
        (20, "Gamma", 50),
        (40, "delta", 7),
    )


def titles(items):
    return [item.title for item in items]


def test_alphabetical_is_default_and_case_insensitive(master):
    assert titles(project(master)) == ["Alpha", "beta", "delta", "Gamma"]


def test_playtime_descending_with_alphabetical_ties(master):
    assert titles(project(master, sort_mode=SortMode.PLAYTIME)) == ["beta", "Gamma", "delta", "Alpha"]


def test_app_id_ascending(master):
    assert [i.app_id for i in project(master, sort_mode=SortMode.APP_ID)] == [10, 20, 30, 40]


def test_search_is_case_insensitive_substring(master):
    assert titles(project(master, search_text="ELT")) == ["delta"]


def test_blank_search_matches_all(master):
    assert len(project(master, search_text="   ")) == 4


def test_played_only_filter(master):
    assert titles(project(master, played_only=True)) == ["beta", "delta", "Gamma"]


def test_search_and_played_only_combined():
    master = make_master((1, "Alpha", 0), (2, "Beta", 50))
    # "Beta" contains "a"; Alpha is excluded by played_only
    assert titles(project(master, "a", True, SortMode.ALPHABETICAL)) == ["Beta"]
    assert titles(project(master, "alp", True, SortMode.ALPHABETICAL)) == []


@pytest.mark.parametrize("mode", list(SortMode))
def test_projection_is_deterministic(master, mode):
    first = [i.to_dict() for i in project(master, "a", False, mode)]
    second = [i.to_dict() for i in project(dict(reversed(list(master.items()))), "a", False, mode)]
    assert first == second


def test_sort_mode_parse():
    assert SortMode.parse("playtime") is SortMode.PLAYTIME
    assert SortMode.parse("APP_ID") is SortMode.APP_ID
    assert SortMode.parse(SortMode.ALPHABETICAL) is SortMode.ALPHABETICAL
    with pytest.raises(ValueError):
        SortMode.parse("random")


def test_focus_kept_when_still_present(master):
    projector = LibraryProjector()
    projector.requires_focus = True
    projector.recompute(master)
    projector.select_focus(master[40])

    projector.search_text = "d"
    projector.recompute(master)

    assert projector.focused is master[40]


def test_focus_moves_to_first_when_removed(master):
    projector = LibraryProjector()
    projector.requires_focus = True
    projector.recompute(master)
    projector.select_focus(master[10])

    projector.played_only = True
    projector.recompute(master)

    assert projector.focused is projector.items[0]
    assert projector.focused.title == "beta"


def test_focus_none_when_projection_empty(master):
    projector = LibraryProjector()
    projector.requires_focus = True
    projector.recompute(master)

    projector.search_text = "zzz"
    projector.recompute(master)

    assert projector.items == []
    assert projector.focused is None


def test_focus_cleared_without_centered_view(master):
    projector = LibraryProjector()
    projector.recompute(master)
    assert projector.focused is None

    projector.select_focus(master[10])
    projector.played_only = True
    projector.recompute(master)
    assert projector.focused is None


def test_select_focus_outside_projection_is_ignored(master):
    projector = LibraryProjector()
    projector.search_text = "alpha"
    projector.recompute(master)

    assert projector.select_focus(master[20]) is False
    assert projector.focused is None
    assert projector.select_focus(master[10]) is True
    assert projector.select_focus(None) is True
    assert projector.focused is None


def test_requiring_focus_selects_first(master):
    projector = LibraryProjector()
    projector.recompute(master)
    projector.set_requires_focus(True)
    assert projector.focused is projector.items[0]


def test_listeners_receive_updates(master):
    projector = LibraryProjector()
    seen = []
    projector.add_listener(lambda items, focused: seen.append((len(items), focused)))

    projector.recompute(master)
    projector.remove_listener(projector._listeners[0])
    projector.recompute(master)

    assert seen == [(4, None)]


def test_failing_listener_does_not_break_recompute(master):
    projector = LibraryProjector()

    def broken(items, focused):
        raise RuntimeError("boom")

    projector.add_listener(broken)
    assert len(projector.recompute(master)) == 4
