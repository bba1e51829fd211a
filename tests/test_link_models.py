"""Tests for the link model: identifiers, canonical forms and back-references."""

import pytest


class TestCanonicalForm:
    """Tests for canonical_form / parse_canonical_form."""

    def test_method_level(self):
        from testlink.core.models import LinkIdentifier, canonical_form

        identifier = LinkIdentifier("App\\Services\\UserService", "create")
        assert canonical_form(identifier) == "App\\Services\\UserService::create"
        assert str(identifier) == "App\\Services\\UserService::create"

    def test_class_level(self):
        from testlink.core.models import LinkIdentifier, canonical_form

        identifier = LinkIdentifier("App\\Services\\UserService")
        assert identifier.is_class_level
        assert canonical_form(identifier) == "App\\Services\\UserService"

    @pytest.mark.parametrize(
        "identifier",
        [
            ("App\\Services\\UserService", "create"),
            ("UserService", "create"),
            ("App\\Services\\UserService", None),
            ("Tests\\Unit\\UserFlowTest", "it creates a user"),
        ],
    )
    def test_parse_inverts_canonical_form(self, identifier):
        from testlink.core.models import LinkIdentifier, canonical_form, parse_canonical_form

        original = LinkIdentifier(*identifier)
        assert parse_canonical_form(canonical_form(original)) == original

    def test_leading_backslash_is_dropped(self):
        from testlink.core.models import LinkIdentifier, parse_canonical_form

        assert parse_canonical_form("\\App\\Foo::bar") == LinkIdentifier("App\\Foo", "bar")

    def test_splits_on_first_separator(self):
        from testlink.core.models import parse_canonical_form

        parsed = parse_canonical_form("Tests\\FooTest::group > it works::twice")
        assert parsed.class_name == "Tests\\FooTest"
        assert parsed.method_name == "group > it works::twice"

    def test_empty_method_is_class_level(self):
        from testlink.core.models import parse_canonical_form

        assert parse_canonical_form("App\\Foo::").is_class_level


class TestParsedTestCase:
    """Tests for ParsedTestCase helpers."""

    def test_full_name_joins_groups(self):
        from testlink.core.models import ParsedTestCase, SyntaxKind

        test = ParsedTestCase(
            name="it validates email",
            qualified_identifier="Tests\\UserTest::UserService > validation > it validates email",
            source_span=(0, 10),
            declarations_end=5,
            syntax_kind=SyntaxKind.FLUENT_CHAIN,
            group_path=("UserService", "validation"),
        )
        assert test.full_name == "UserService > validation > it validates email"
        assert test.test_class == "Tests\\UserTest"
        assert test.test_method == "UserService > validation > it validates email"

    def test_link_targets_and_has_link(self, make_test):
        test = make_test("Tests\\FooTest::test_a", "App\\Foo::a", "App\\Bar")
        assert test.link_targets() == ["App\\Foo::a", "App\\Bar"]
        assert test.has_link("\\App\\Foo::a")
        assert test.has_link("App\\Bar")
        assert not test.has_link("App\\Foo::b")

    def test_with_identifier_returns_copy(self, make_test):
        test = make_test("FooTest::test_a", "App\\Foo::a")
        renamed = test.with_identifier("Tests\\FooTest::test_a")
        assert renamed.qualified_identifier == "Tests\\FooTest::test_a"
        assert test.qualified_identifier == "FooTest::test_a"
        assert renamed.existing_links == test.existing_links


class TestProductionDeclaration:
    """Tests for back-reference matching."""

    def test_requires_method_level_owner(self):
        from testlink.core.models import LinkIdentifier, ProductionDeclaration

        with pytest.raises(ValueError):
            ProductionDeclaration(LinkIdentifier("App\\Foo"))

    def test_names_test_exactly(self):
        from testlink.core.models import LinkIdentifier, ProductionDeclaration, TestReference

        declaration = ProductionDeclaration(
            LinkIdentifier("App\\Foo", "bar"),
            [TestReference("Tests\\FooTest", "test_bar")],
        )
        assert declaration.names_test("Tests\\FooTest::test_bar")
        assert not declaration.names_test("Tests\\FooTest::test_Bar")
        assert not declaration.names_test("Tests\\OtherTest::test_bar")

    def test_class_reference_names_every_test_in_class(self):
        from testlink.core.models import LinkIdentifier, ProductionDeclaration, TestReference

        declaration = ProductionDeclaration(
            LinkIdentifier("App\\Foo", "bar"),
            [TestReference("Tests\\FooTest")],
        )
        assert declaration.names_test("Tests\\FooTest::anything")
        assert not declaration.names_test("Tests\\BarTest::anything")

    def test_reference_qualified(self):
        from testlink.core.models import TestReference

        assert TestReference("Tests\\FooTest", "it works").qualified == "Tests\\FooTest::it works"
        assert TestReference("Tests\\FooTest").qualified == "Tests\\FooTest"
