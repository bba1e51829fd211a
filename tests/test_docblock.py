"""Tests for @see tag handling in doc comments."""

import pytest


class TestSeeReferences:
    """Tests for reading @see tags."""

    def test_references_as_written(self):
        from testlink.docblock import see_references

        doc = (
            "/**\n"
            "     * Create.\n"
            "     *\n"
            "     * @see \\Tests\\Unit\\UserServiceTest::test_creates_user\n"
            "     * @see UserFlowTest::creates a user\n"
            "     */"
        )
        assert see_references(doc) == [
            "\\Tests\\Unit\\UserServiceTest::test_creates_user",
            "UserFlowTest::creates a user",
        ]

    def test_single_line_doc(self):
        from testlink.docblock import see_references

        assert see_references("/** @see \\App\\Foo::bar */") == ["\\App\\Foo::bar"]

    def test_no_doc(self):
        from testlink.docblock import has_see_reference, see_references

        assert see_references(None) == []
        assert not has_see_reference(None, "\\App\\Foo")

    def test_leading_backslash_is_ignored_when_comparing(self):
        from testlink.docblock import has_see_reference

        assert has_see_reference("/** @see App\\Foo::bar */", "\\App\\Foo::bar")

    def test_see_reference_for(self):
        from testlink.core.models import TestReference
        from testlink.docblock import see_reference_for

        assert see_reference_for(TestReference("Tests\\FooTest", "test_a")) == "\\Tests\\FooTest::test_a"
        assert see_reference_for(TestReference("\\Tests\\FooTest")) == "\\Tests\\FooTest"


class TestAddSeeLines:
    """Tests for add_see_lines()."""

    def test_separates_from_description(self):
        from testlink.docblock import add_see_lines

        doc = "/**\n     * Create a user.\n     */"
        assert add_see_lines(doc, ["\\Tests\\FooTest::test_a"], "    ") == (
            "/**\n     * Create a user.\n     *\n     * @see \\Tests\\FooTest::test_a\n     */"
        )

    def test_appends_after_existing_see(self):
        from testlink.docblock import add_see_lines

        doc = "/**\n     * @see \\Tests\\FooTest::test_a\n     */"
        assert add_see_lines(doc, ["\\Tests\\FooTest::test_b"], "    ") == (
            "/**\n     * @see \\Tests\\FooTest::test_a\n     * @see \\Tests\\FooTest::test_b\n     */"
        )

    def test_present_references_are_skipped(self):
        from testlink.docblock import add_see_lines

        doc = "/**\n     * @see Tests\\FooTest::test_a\n     */"
        assert add_see_lines(doc, ["\\Tests\\FooTest::test_a"], "    ") == doc

    def test_expands_single_line_doc(self):
        from testlink.docblock import add_see_lines

        assert add_see_lines("/** Create a user. */", ["\\Tests\\FooTest::test_a"], "    ") == (
            "/**\n     * Create a user.\n     *\n     * @see \\Tests\\FooTest::test_a\n     */"
        )

    def test_render_doc(self):
        from testlink.docblock import render_doc

        assert render_doc(["\\A::b", "\\A::c"], "  ") == "  /**\n   * @see \\A::b\n   * @see \\A::c\n   */\n"


class TestRemoveAndReplace:
    """Tests for remove_see_lines() and replace_see_reference()."""

    def test_remove_keeps_other_lines(self):
        from testlink.docblock import remove_see_lines

        doc = "/**\n     * Create.\n     * @see \\Tests\\GoneTest::test_a\n     * @see \\Tests\\FooTest::test_b\n     */"
        assert remove_see_lines(doc, ["Tests\\GoneTest::test_a"]) == (
            "/**\n     * Create.\n     * @see \\Tests\\FooTest::test_b\n     */"
        )

    def test_remove_from_single_line_leaves_empty_doc(self):
        from testlink.docblock import is_empty_doc, remove_see_lines

        updated = remove_see_lines("/** @see \\Tests\\GoneTest */", ["\\Tests\\GoneTest"])
        assert is_empty_doc(updated)

    def test_replace_keeps_prefix_and_rest(self):
        from testlink.docblock import replace_see_reference

        doc = "/**\n     * @see FooTest::test_a for details\n     */"
        assert replace_see_reference(doc, "FooTest::test_a", "\\Tests\\FooTest::test_a") == (
            "/**\n     * @see \\Tests\\FooTest::test_a for details\n     */"
        )

    def test_is_empty_doc(self):
        from testlink.docblock import is_empty_doc

        assert is_empty_doc("/**\n     *\n     */")
        assert not is_empty_doc("/**\n     * Text.\n     */")


@pytest.mark.parametrize(
    "reference,expected",
    [
        ("FooTest::test_a", ("FooTest", "test_a")),
        ("\\App\\Foo::bar()", ("\\App\\Foo", "bar")),
        ("App\\Foo", ("App\\Foo", None)),
        ("bar", (None, "bar")),
    ],
)
def test_split_reference(reference, expected):
    from testlink.docblock import split_reference

    assert split_reference(reference) == expected


class TestValidateSeeTags:
    """Tests for validate_see_tags()."""

    SOURCE = "<?php\nnamespace App;\n\nuse Tests\\Unit\\FooTest;\n"

    def _tags(self, *references):
        from testlink.core.models import LinkIdentifier
        from testlink.docblock import see_tags_for
        from testlink.parsers.php import PhpSource

        doc = "/**\n" + "".join(f" * @see {reference}\n" for reference in references) + " */"
        return see_tags_for(PhpSource(self.SOURCE).context, LinkIdentifier("App\\Foo", "bar"), doc)

    def test_qualified_references_pass(self):
        from testlink.docblock import validate_see_tags

        assert validate_see_tags(self._tags("\\Tests\\Unit\\FooTest::test_a"), lambda name: False) == []

    def test_imported_class_resolves(self):
        from testlink.docblock import validate_see_tags

        (issue,) = validate_see_tags(self._tags("FooTest::test_a"), lambda name: False)

        assert issue.fixable
        assert issue.resolved == "\\Tests\\Unit\\FooTest::test_a"
        assert issue.message == (
            "@see FooTest::test_a on App\\Foo::bar is not fully qualified; use \\Tests\\Unit\\FooTest::test_a"
        )

    def test_same_namespace_class_resolves(self):
        from testlink.docblock import validate_see_tags

        (issue,) = validate_see_tags(self._tags("Helper::run"), lambda name: name == "App\\Helper")

        assert issue.resolved == "\\App\\Helper::run"

    def test_unknown_class(self):
        from testlink.docblock import validate_see_tags

        (issue,) = validate_see_tags(self._tags("Missing::thing"), lambda name: False)

        assert not issue.fixable
        assert issue.error == "Could not resolve 'Missing' - not found in use statements"
        assert issue.to_dict()["fixable"] is False

    def test_method_only_reference(self):
        from testlink.docblock import validate_see_tags

        (issue,) = validate_see_tags(self._tags("bar"), lambda name: True)

        assert issue.error == "Method-only reference cannot be resolved"
