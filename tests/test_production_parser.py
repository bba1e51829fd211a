"""Tests for #[TestedBy] parsing and the production index."""

import pytest


@pytest.fixture
def parser():
    from testlink.parsers.production import ProductionParser

    return ProductionParser()


class TestProductionParser:
    """Tests for ProductionParser."""

    def test_fixture(self, parser, fixtures_dir):
        from testlink.core.models import LinkIdentifier, TestReference

        path = fixtures_dir / "production" / "OrderService.php"
        parsed = parser.parse_file(path)

        assert parsed.methods == {
            "App\\Services\\OrderService": ["create", "update", "cancel", "findById"]
        }
        by_method = {d.owning_method: d for d in parsed.declarations}
        assert set(by_method) == {
            LinkIdentifier("App\\Services\\OrderService", "create"),
            LinkIdentifier("App\\Services\\OrderService", "update"),
            LinkIdentifier("App\\Services\\OrderService", "cancel"),
        }
        update = by_method[LinkIdentifier("App\\Services\\OrderService", "update")]
        assert update.tests == [
            TestReference("Tests\\Unit\\OrderServiceTest", "test_updates_order"),
            TestReference("Tests\\Unit\\OrderServiceTest", "test_validates_order"),
        ]
        assert update.file_path == path

    def test_named_arguments(self, parser, fixtures_dir):
        from testlink.core.models import LinkIdentifier, TestReference

        parsed = parser.parse_file(fixtures_dir / "production" / "OrderService.php")
        cancel = next(
            d for d in parsed.declarations
            if d.owning_method == LinkIdentifier("App\\Services\\OrderService", "cancel")
        )
        assert cancel.tests == [TestReference("Tests\\Unit\\OrderServiceTest", "test_cancels_order")]

    def test_class_constant_and_class_only_references(self, parser):
        from testlink.core.models import TestReference

        source = """<?php
namespace App;

use Tests\\Unit\\FooTest;

class Foo
{
    #[TestedBy(FooTest::class, 'it does things')]
    #[TestedBy('Tests\\Unit\\OtherTest')]
    public function bar(): void {}
}
"""
        parsed = parser.parse_source(source)
        assert parsed.declarations[0].tests == [
            TestReference("Tests\\Unit\\FooTest", "it does things"),
            TestReference("Tests\\Unit\\OtherTest"),
        ]

    def test_unreadable_file(self, parser, tmp_path):
        from testlink.exceptions import SourceReadError

        with pytest.raises(SourceReadError):
            parser.parse_file(tmp_path / "Nope.php")


class TestProductionIndex:
    """Tests for ProductionIndex lookups."""

    @pytest.fixture
    def index(self, parser, fixtures_dir):
        from testlink.parsers.production import ProductionIndex

        index = ProductionIndex()
        index.add(parser.parse_file(fixtures_dir / "production" / "OrderService.php"))
        return index

    def test_target_exists(self, index):
        from testlink.core.models import LinkIdentifier

        assert index.target_exists(LinkIdentifier("App\\Services\\OrderService", "findById"))
        assert index.target_exists(LinkIdentifier("App\\Services\\OrderService"))
        assert not index.target_exists(LinkIdentifier("App\\Services\\OrderService", "findbyid"))
        assert not index.target_exists(LinkIdentifier("App\\Services\\Missing", "create"))

    def test_counts_and_files(self, index, fixtures_dir):
        assert index.class_count == 1
        assert index.method_count == 4
        assert index.has_class("App\\Services\\OrderService")
        assert index.file_for("App\\Services\\OrderService") == (
            fixtures_dir / "production" / "OrderService.php"
        )
        assert index.file_for("App\\Nope") is None

    def test_declaration_for(self, index):
        from testlink.core.models import LinkIdentifier

        assert index.declaration_for(LinkIdentifier("App\\Services\\OrderService", "findById")) is None
        create = index.declaration_for(LinkIdentifier("App\\Services\\OrderService", "create"))
        assert create.names_test("Tests\\Unit\\OrderServiceTest::test_creates_order")
        assert len(index.declarations()) == 3

    def test_duplicate_methods_merge_references(self, parser):
        from testlink.core.models import LinkIdentifier
        from testlink.parsers.production import ProductionIndex

        source = "<?php\nclass A {\n    #[TestedBy('T', '%s')]\n    public function m() {}\n}\n"
        index = ProductionIndex()
        index.add(parser.parse_source(source % "one"))
        index.add(parser.parse_source(source % "two"))
        declaration = index.declaration_for(LinkIdentifier("A", "m"))
        assert [ref.test_method for ref in declaration.tests] == ["one", "two"]

    def test_declarations_in_class(self, index):
        methods = [d.owning_method.method_name for d in index.declarations_in_class("App\\Services\\OrderService")]

        assert sorted(methods) == ["cancel", "create", "update"]
        assert index.declarations_in_class("App\\Nope") == []


MARKERS_AND_SEE = """<?php
namespace App;

use Tests\\Unit\\FooTest;

class Foo
{
    /**
     * Does things.
     *
     * @see FooTest::test_bar
     * @see \\Tests\\Unit\\OtherTest
     */
    #[TestedBy('@foo')]
    #[TestedBy('Tests\\Unit\\FooTest', 'test_bar')]
    public function bar(): void {}
}
"""


class TestMarkersAndSeeTags:
    """Tests for placeholder markers and @see tags on production methods."""

    def test_placeholders_are_not_back_references(self, parser):
        from testlink.core.models import TestReference

        parsed = parser.parse_source(MARKERS_AND_SEE)

        assert [(p.placeholder, p.identifier, p.side) for p in parsed.placeholders] == [
            ("@foo", "App\\Foo::bar", "production")
        ]
        assert parsed.declarations[0].tests == [TestReference("Tests\\Unit\\FooTest", "test_bar")]

    def test_see_tags(self, parser):
        parsed = parser.parse_source(MARKERS_AND_SEE)

        first, second = parsed.see_tags
        assert (first.reference, first.candidate, first.imported) == (
            "FooTest::test_bar",
            "Tests\\Unit\\FooTest",
            True,
        )
        assert not first.is_fqcn
        assert second.is_fqcn
        assert second.normalized == "Tests\\Unit\\OtherTest"

    def test_index_lookups(self, parser):
        from testlink.core.models import LinkIdentifier
        from testlink.parsers.production import ProductionIndex

        index = ProductionIndex()
        index.add(parser.parse_source(MARKERS_AND_SEE))

        bar = LinkIdentifier("App\\Foo", "bar")
        assert len(index.placeholders()) == 1
        assert len(index.see_tags()) == 2
        assert index.has_see(bar, "\\Tests\\Unit\\OtherTest")
        assert index.has_see(bar, "FooTest::test_bar")
        assert not index.has_see(bar, "Tests\\Unit\\FooTest::test_bar")
