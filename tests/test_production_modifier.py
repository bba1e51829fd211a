"""Tests for rewriting #[TestedBy] back-references."""

import pytest

SERVICE = """<?php

namespace App\\Services;

class UserService
{
    public function create(): void
    {
    }
}
"""


@pytest.fixture
def modifier():
    from testlink.modifiers.production import ProductionModifier

    return ProductionModifier()


def _create():
    from testlink.core.models import LinkIdentifier

    return LinkIdentifier("App\\Services\\UserService", "create")


def _ref(test_class, test_method=None):
    from testlink.core.models import TestReference

    return TestReference(test_class, test_method)


class TestInjectTestedBy:
    """Tests for ProductionModifier.inject_tested_by()."""

    def test_adds_attribute_and_import_after_namespace(self, modifier):
        result = modifier.inject_tested_by(
            SERVICE, _create(), [_ref("Tests\\Unit\\UserServiceTest", "test_creates_user")]
        )

        assert result == (
            "<?php\n\nnamespace App\\Services;\n\n"
            "use TestFlowLabs\\TestingAttributes\\TestedBy;\n\n"
            "class UserService\n{\n"
            "    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_creates_user')]\n"
            "    public function create(): void\n"
            "    {\n    }\n}\n"
        )

    def test_appends_after_existing_back_references(self, modifier):
        source = modifier.inject_tested_by(
            SERVICE, _create(), [_ref("Tests\\Unit\\UserServiceTest", "test_creates_user")]
        )

        result = modifier.inject_tested_by(
            source, _create(), [_ref("Tests\\Feature\\UserFlowTest", "creates a user")]
        )

        assert (
            "    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_creates_user')]\n"
            "    #[TestedBy('Tests\\Feature\\UserFlowTest', 'creates a user')]\n"
            "    public function create(): void\n"
        ) in result
        assert result.count("use TestFlowLabs\\TestingAttributes\\TestedBy;") == 1

    def test_several_references_in_order(self, modifier):
        result = modifier.inject_tested_by(
            SERVICE,
            _create(),
            [_ref("Tests\\BTest", "b"), _ref("Tests\\ATest", "a"), _ref("Tests\\BTest", "b")],
        )

        first = result.index("'Tests\\BTest', 'b'")
        second = result.index("'Tests\\ATest', 'a'")
        assert first < second
        assert result.count("'Tests\\BTest', 'b'") == 1

    def test_class_only_reference(self, modifier):
        result = modifier.inject_tested_by(SERVICE, _create(), [_ref("Tests\\Unit\\UserServiceTest")])

        assert "    #[TestedBy('Tests\\Unit\\UserServiceTest')]\n" in result

    def test_quotes_in_test_names_are_escaped(self, modifier):
        from testlink.parsers.production import ProductionParser

        result = modifier.inject_tested_by(SERVICE, _create(), [_ref("Tests\\UserFlowTest", "it's created")])

        assert "#[TestedBy('Tests\\UserFlowTest', 'it\\'s created')]" in result
        parsed = ProductionParser().parse_source(result)
        assert parsed.declarations[0].tests == [_ref("Tests\\UserFlowTest", "it's created")]

    def test_existing_reference_is_unchanged(self, modifier):
        source = modifier.inject_tested_by(
            SERVICE, _create(), [_ref("Tests\\Unit\\UserServiceTest", "test_creates_user")]
        )

        again = modifier.inject_tested_by(
            source, _create(), [_ref("Tests\\Unit\\UserServiceTest", "test_creates_user")]
        )

        assert again == source

    def test_custom_attribute_namespace(self):
        from testlink.modifiers.production import ProductionModifier

        modifier = ProductionModifier(attribute_namespace="\\Acme\\Attributes\\")

        result = modifier.inject_tested_by(SERVICE, _create(), [_ref("Tests\\FooTest", "test_foo")])

        assert "use Acme\\Attributes\\TestedBy;" in result

    def test_missing_method_raises(self, modifier):
        from testlink.core.models import LinkIdentifier
        from testlink.exceptions import ProductionMethodNotFoundError

        with pytest.raises(ProductionMethodNotFoundError):
            modifier.inject_tested_by(
                SERVICE,
                LinkIdentifier("App\\Services\\UserService", "missing"),
                [_ref("Tests\\FooTest", "test_foo")],
            )

    def test_wrong_class_raises(self, modifier):
        from testlink.core.models import LinkIdentifier
        from testlink.exceptions import ProductionMethodNotFoundError

        with pytest.raises(ProductionMethodNotFoundError):
            modifier.inject_tested_by(
                SERVICE,
                LinkIdentifier("App\\Other\\UserService", "create"),
                [_ref("Tests\\FooTest", "test_foo")],
            )


class TestRemoveTestedBy:
    """Tests for ProductionModifier.remove_tested_by()."""

    def test_removes_one_of_two(self, modifier):
        source = modifier.inject_tested_by(
            SERVICE,
            _create(),
            [_ref("Tests\\ATest", "a"), _ref("Tests\\BTest", "b")],
        )

        result = modifier.remove_tested_by(source, _create(), [_ref("Tests\\ATest", "a")])

        assert "'Tests\\ATest'" not in result
        assert "    #[TestedBy('Tests\\BTest', 'b')]\n    public function create(): void\n" in result

    def test_fixture_named_arguments(self, modifier, fixtures_dir):
        from testlink.core.models import LinkIdentifier

        source = (fixtures_dir / "production" / "OrderService.php").read_text()
        cancel = LinkIdentifier("App\\Services\\OrderService", "cancel")

        result = modifier.remove_tested_by(
            source, cancel, [_ref("Tests\\Unit\\OrderServiceTest", "test_cancels_order")]
        )

        assert "testMethod:" not in result
        assert "    }\n\n    public function cancel(int $id): bool\n" in result

    def test_unmatched_reference_leaves_source_alone(self, modifier):
        assert modifier.remove_tested_by(SERVICE, _create(), [_ref("Tests\\ATest", "a")]) == SERVICE


DOCUMENTED = """<?php

namespace App\\Services;

class UserService
{
    /**
     * Create a user.
     */
    public function create(): void
    {
    }
}
"""


class TestSeeTags:
    """Tests for maintaining @see tags on production methods."""

    def test_adds_doc_comment(self, modifier):
        result = modifier.add_see_tags(SERVICE, _create(), ["\\Tests\\Unit\\UserServiceTest::test_creates_user"])

        assert (
            "{\n"
            "    /**\n"
            "     * @see \\Tests\\Unit\\UserServiceTest::test_creates_user\n"
            "     */\n"
            "    public function create(): void\n"
        ) in result

    def test_extends_existing_doc_comment(self, modifier):
        result = modifier.add_see_tags(DOCUMENTED, _create(), ["\\Tests\\ATest::test_a"])

        assert (
            "    /**\n"
            "     * Create a user.\n"
            "     *\n"
            "     * @see \\Tests\\ATest::test_a\n"
            "     */\n"
        ) in result

    def test_present_reference_is_unchanged(self, modifier):
        source = modifier.add_see_tags(DOCUMENTED, _create(), ["\\Tests\\ATest::test_a"])

        assert modifier.add_see_tags(source, _create(), ["Tests\\ATest::test_a"]) == source

    def test_remove_keeps_description(self, modifier):
        source = modifier.add_see_tags(DOCUMENTED, _create(), ["\\Tests\\ATest::test_a"])

        result = modifier.remove_see_tags(source, _create(), ["\\Tests\\ATest::test_a"])

        assert "@see" not in result
        assert "     * Create a user.\n" in result

    def test_remove_last_tag_drops_doc_comment(self, modifier):
        source = modifier.add_see_tags(SERVICE, _create(), ["\\Tests\\ATest::test_a"])

        assert modifier.remove_see_tags(source, _create(), ["\\Tests\\ATest::test_a"]) == SERVICE

    def test_fix_qualifies_reference(self, modifier):
        source = DOCUMENTED.replace("     * Create a user.\n", "     * @see ATest::test_a\n")

        result = modifier.fix_see_references(source, _create(), [("ATest::test_a", "\\Tests\\ATest::test_a")])

        assert "     * @see \\Tests\\ATest::test_a\n" in result

    def test_missing_method_raises(self, modifier):
        from testlink.core.models import LinkIdentifier
        from testlink.exceptions import ProductionMethodNotFoundError

        with pytest.raises(ProductionMethodNotFoundError):
            modifier.add_see_tags(SERVICE, LinkIdentifier("App\\Services\\UserService", "gone"), ["\\A"])


MARKED = """<?php

namespace App\\Services;

class UserService
{
    #[TestedBy('@A')]
    public function create(): void
    {
    }
}
"""


class TestReplacePlaceholder:
    """Tests for ProductionModifier.replace_placeholder()."""

    def test_one_group_per_test(self, modifier):
        result = modifier.replace_placeholder(
            MARKED, _create(), "@A", [_ref("Tests\\ATest", "test_a"), _ref("Tests\\BTest", "it works")]
        )

        assert (
            "    #[TestedBy('Tests\\ATest', 'test_a')]\n"
            "    #[TestedBy('Tests\\BTest', 'it works')]\n"
            "    public function create(): void\n"
        ) in result
        assert "@A" not in result

    def test_shared_group_gets_entries(self, modifier):
        source = MARKED.replace("#[TestedBy('@A')]", "#[Deprecated, TestedBy('@A')]")

        result = modifier.replace_placeholder(source, _create(), "@A", [_ref("Tests\\ATest", "test_a")])

        assert "    #[Deprecated, TestedBy('Tests\\ATest', 'test_a')]\n" in result

    def test_other_marker_is_left_alone(self, modifier):
        assert modifier.replace_placeholder(MARKED, _create(), "@B", [_ref("Tests\\ATest", "test_a")]) == MARKED

    def test_see_marker_becomes_see_tags(self, modifier):
        source = MARKED.replace("'@A'", "'@@A'")

        result = modifier.replace_placeholder(
            source, _create(), "@@A", [_ref("Tests\\ATest", "test_a")], use_see_tag=True
        )

        assert "TestedBy" not in result
        assert (
            "    /**\n"
            "     * @see \\Tests\\ATest::test_a\n"
            "     */\n"
            "    public function create(): void\n"
        ) in result
