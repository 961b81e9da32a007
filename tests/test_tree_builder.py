import itertools

import pytest

from datapack_editor.vfs import PathTree, PathTreeBuilder


@pytest.fixture
def builder(logger):
    return PathTreeBuilder(logger=logger)


def _check_invariants(tree: PathTree) -> None:
    for node in tree.walk():
        names = [child.name for child in node.children]
        assert len(names) == len(set(names)), f"duplicate children under {node.path}"
        for child in node.children:
            assert child.path == f"{node.path}/{child.name}"
    for root in tree.roots:
        assert "/" not in root.path

    seen = [node.path for node in tree.walk()]
    assert len(seen) == len(set(seen)) == len(tree)


def test_builds_nested_tree_with_implied_directories(builder):
    tree = builder.build(
        [
            ("Pack/data/teams.csv", False),
            ("Pack/", True),
            ("Pack/logos/", True),
            ("readme.txt", False),
        ]
    )

    assert [root.path for root in tree.roots] == ["Pack", "readme.txt"]
    pack = tree.roots[0]
    assert pack.is_directory
    assert [child.name for child in pack.children] == ["data", "logos"]

    data = tree.get("Pack/data/")
    assert data is not None and data.is_directory
    assert [child.path for child in data.children] == ["Pack/data/teams.csv"]
    assert tree.get("Pack/data/teams.csv").is_directory is False
    assert tree.get("Pack/logos").children == []
    _check_invariants(tree)


def test_zero_entries_yield_no_roots(builder):
    tree = builder.build([])

    assert tree.roots == []
    assert tree.single_root is None
    assert len(tree) == 0


def test_file_is_promoted_when_a_child_shows_up(builder):
    tree = builder.build([("a/b", False), ("a/b/c.txt", False)])

    assert tree.get("a/b").is_directory
    assert [child.name for child in tree.get("a/b").children] == ["c.txt"]


def test_directory_flag_never_reset(builder):
    tree = builder.build([("a/b/", True), ("a/b", False), ("a/c/d", False), ("a/c", False)])

    assert tree.get("a/b").is_directory
    assert tree.get("a/c").is_directory


def test_directory_flags_do_not_depend_on_scan_order(builder):
    entries = [
        ("Pack/logos", False),
        ("Pack/logos/1.png", False),
        ("Pack/teams.csv", False),
        ("Pack/", True),
    ]

    expected = None
    for ordering in itertools.permutations(entries):
        tree = builder.build(ordering)
        flags = {node.path: node.is_directory for node in tree.walk()}
        order = [node.path for node in tree.walk()]
        _check_invariants(tree)
        if expected is None:
            expected = (flags, order)
        assert (flags, order) == expected

    assert expected[0]["Pack/logos"] is True
    assert expected[0]["Pack/teams.csv"] is False


def test_duplicate_paths_reuse_the_same_node(builder):
    tree = builder.build(
        [
            ("Pack/teams.csv", False),
            ("Pack/teams.csv", False),
            ("Pack//teams.csv", False),
            ("/Pack/", True),
        ]
    )

    assert len(tree) == 2
    assert [child.path for child in tree.get("Pack").children] == ["Pack/teams.csv"]
    _check_invariants(tree)


def test_children_sorted_directories_first_then_case_insensitive(builder):
    tree = builder.build(
        [
            ("root/b.txt", False),
            ("root/A.txt", False),
            ("root/Zdir/x", False),
            ("root/adir/y", False),
            ("root/c.TXT", False),
        ]
    )

    names = [child.name for child in tree.get("root").children]
    assert names == ["adir", "Zdir", "A.txt", "b.txt", "c.TXT"]


def test_single_root(builder):
    assert builder.build([("Pack/a.txt", False)]).single_root.path == "Pack"
    assert builder.build([("a.txt", False)]).single_root is None
    assert builder.build([("A/x", False), ("B/y", False)]).single_root is None


def test_archive_path_marks_directories(builder):
    tree = builder.build([("Pack/teams.csv", False)])

    assert tree.get("Pack").archive_path == "Pack/"
    assert tree.get("Pack/teams.csv").archive_path == "Pack/teams.csv"
    assert "Pack/" in tree
    assert "Other" not in tree


def test_empty_paths_are_ignored(builder):
    tree = builder.build([("", False), ("/", True), ("a.txt", False)])

    assert [root.path for root in tree.roots] == ["a.txt"]
