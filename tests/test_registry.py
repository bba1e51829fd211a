"""Tests for TestLinkRegistry."""

import pytest


@pytest.fixture
def registry(make_test):
    from testlink.registry import TestLinkRegistry

    registry = TestLinkRegistry()
    registry.add(make_test("Tests\\FooTest::test_a", "App\\Foo::a", "App\\Foo::b"))
    registry.add(make_test("Tests\\FooTest::test_b", "App\\Foo::a", coverage=False))
    registry.add(make_test("Tests\\BarTest::test_c"))
    return registry


class TestIndices:
    """The two derived indices."""

    def test_links_by_test(self, registry):
        assert list(registry.links_by_test) == [
            "Tests\\FooTest::test_a",
            "Tests\\FooTest::test_b",
            "Tests\\BarTest::test_c",
        ]
        assert registry.links_by_test["Tests\\BarTest::test_c"] == []

    def test_tests_by_production_method(self, registry):
        assert registry.get_tests_for_method("App\\Foo::a") == [
            "Tests\\FooTest::test_a",
            "Tests\\FooTest::test_b",
        ]
        assert registry.get_tests_for_method("\\App\\Foo::b") == ["Tests\\FooTest::test_a"]
        assert registry.get_tests_for_method("App\\Foo::c") == []

    def test_indices_follow_additions(self, registry, make_test):
        assert registry.get_tests_for_method("App\\Baz::z") == []

        registry.add(make_test("Tests\\BazTest::test_z", "App\\Baz::z"))

        assert registry.get_tests_for_method("App\\Baz::z") == ["Tests\\BazTest::test_z"]
        assert registry.has_test("Tests\\BazTest::test_z")

    def test_clear(self, registry):
        registry.clear()
        assert len(registry) == 0
        assert registry.links_by_test == {}
        assert registry.production_methods() == []


class TestQueries:
    """Lookup helpers."""

    def test_coverage_and_link_only(self, registry):
        assert registry.coverage_methods("Tests\\FooTest::test_a") == ["App\\Foo::a", "App\\Foo::b"]
        assert registry.link_only_methods("Tests\\FooTest::test_b") == ["App\\Foo::a"]
        assert registry.coverage_methods("Tests\\FooTest::test_b") == []

    def test_link_only_excludes_covered_targets(self, make_test):
        from testlink.core.models import DeclaredLink, parse_canonical_form
        from testlink.registry import TestLinkRegistry

        test = make_test("T::t", "A::a")
        test.existing_links.append(DeclaredLink(parse_canonical_form("A::a"), False))
        registry = TestLinkRegistry()
        registry.add(test)

        assert registry.coverage_methods("T::t") == ["A::a"]
        assert registry.link_only_methods("T::t") == []

    def test_has_link(self, registry):
        assert registry.has_link("Tests\\FooTest::test_b", "App\\Foo::a")
        assert not registry.has_link_coverage("Tests\\FooTest::test_b", "App\\Foo::a")
        assert registry.has_link_coverage("Tests\\FooTest::test_a", "App\\Foo::a")
        assert not registry.has_link("Tests\\Missing::x", "App\\Foo::a")

    def test_tests_in_class(self, registry):
        assert [t.name for t in registry.tests_in_class("Tests\\FooTest")] == ["test_a", "test_b"]
        assert registry.tests_in_class("Tests\\Nope") == []

    def test_counts(self, registry):
        assert len(registry) == 3
        assert registry.test_count == 3
        assert registry.link_count == 3

    def test_to_dict_sorted_by_target(self, registry):
        assert registry.to_dict() == {
            "App\\Foo::a": ["Tests\\FooTest::test_a", "Tests\\FooTest::test_b"],
            "App\\Foo::b": ["Tests\\FooTest::test_a"],
        }


class TestDuplicates:
    """Duplicate identifiers are kept and reported."""

    def test_duplicates_merge_links(self, make_test):
        from testlink.registry import TestLinkRegistry

        registry = TestLinkRegistry()
        registry.add_all(
            [
                make_test("Tests\\FooTest::same", "A::a"),
                make_test("Tests\\FooTest::same", "B::b"),
            ]
        )

        assert len(registry) == 2
        assert registry.test_count == 1
        assert registry.duplicate_identifiers() == ["Tests\\FooTest::same"]
        assert [str(l.target) for l in registry.get_links_for_test("Tests\\FooTest::same")] == [
            "A::a",
            "B::b",
        ]
        assert registry.find_test("Tests\\FooTest::same").link_targets() == ["A::a"]
