"""Tests for the splice helpers shared by all modifiers."""

import pytest


class TestApplySplices:
    """Tests for apply_splices()."""

    def test_applies_from_the_end(self):
        from testlink.modifiers.base import apply_splices

        assert apply_splices(b"abcdef", [(1, 2, "X"), (4, 4, "YY"), (5, 6, "")]) == b"aXcdYYe"

    def test_no_splices(self):
        from testlink.modifiers.base import apply_splices

        assert apply_splices(b"same", []) == b"same"

    def test_offsets_are_bytes_and_replacements_are_encoded(self):
        from testlink.modifiers.base import apply_splices

        data = "größe".encode("utf-8")
        assert apply_splices(data, [(len(data), len(data), " ✓")]).decode("utf-8") == "größe ✓"
        assert apply_splices(data, [(2, 6, "ss")]).decode("utf-8") == "grsse"


class TestListRemovals:
    """Tests for list_removals()."""

    # entries of "a, b, c"
    ENTRIES = [(0, 1), (3, 4), (6, 7)]

    @pytest.mark.parametrize(
        "removed,expected",
        [
            ([True, False, False], b"b, c"),
            ([False, True, False], b"a, c"),
            ([False, False, True], b"a, b"),
            ([True, True, False], b"c"),
            ([False, True, True], b"a"),
            ([True, False, True], b"b"),
        ],
    )
    def test_removals(self, removed, expected):
        from testlink.modifiers.base import apply_splices, list_removals

        ranges = list_removals(self.ENTRIES, removed)
        assert apply_splices(b"a, b, c", [(s, e, "") for s, e in ranges]) == expected


class TestAttributeGroupRemoval:
    """Tests for attribute_group_removal()."""

    def test_group_alone_on_line_takes_the_line(self):
        from testlink.modifiers.base import attribute_group_removal

        data = b"{\n    #[A]\n    function f() {}\n"
        start = data.index(b"#[")
        start_cut, end_cut = attribute_group_removal(data, (start, start + 4))
        assert data[:start_cut] + data[end_cut:] == b"{\n    function f() {}\n"

    def test_inline_group_takes_following_space(self):
        from testlink.modifiers.base import attribute_group_removal

        data = b"    #[A] #[B] function f() {}\n"
        start = data.index(b"#[B]")
        start_cut, end_cut = attribute_group_removal(data, (start, start + 4))
        assert data[:start_cut] + data[end_cut:] == b"    #[A] function f() {}\n"

    def test_group_at_end_of_line_takes_leading_space(self):
        from testlink.modifiers.base import attribute_group_removal

        data = b"    #[A] #[B]\n    function f() {}\n"
        start = data.index(b"#[B]")
        start_cut, end_cut = attribute_group_removal(data, (start, start + 4))
        assert data[:start_cut] + data[end_cut:] == b"    #[A]\n    function f() {}\n"


class TestAttributeInsertion:
    """Tests for attribute_insertion()."""

    def test_without_existing_group(self):
        from testlink.modifiers.base import apply_splices, attribute_insertion

        data = b"{\n    public function f() {}\n"
        splice = attribute_insertion(data, None, data.index(b"public"), ["#[A]", "#[B]"])
        assert apply_splices(data, [splice]) == b"{\n    #[A]\n    #[B]\n    public function f() {}\n"

    def test_same_line_as_declaration(self):
        from testlink.modifiers.base import apply_splices, attribute_insertion

        data = b"    #[A] public function f() {}\n"
        splice = attribute_insertion(data, data.index(b"]") + 1, data.index(b"public"), ["#[B]"])
        assert apply_splices(data, [splice]) == b"    #[A] #[B] public function f() {}\n"


class TestImportInsertion:
    """Tests for import_insertion()."""

    def test_skips_names_already_imported(self):
        from testlink.modifiers.base import import_insertion
        from testlink.parsers.php import PhpSource

        source = PhpSource("<?php\nnamespace A;\nuse B\\C;\n")
        assert import_insertion(source.context, ["B\\C"]) is None

    def test_global_file_without_imports(self):
        from testlink.modifiers.base import apply_splices, import_insertion
        from testlink.parsers.php import PhpSource

        source = PhpSource("<?php\n\nclass A {}\n")
        splice = import_insertion(source.context, ["Z\\Y", "B\\C"])
        assert apply_splices(source.data, [splice]) == b"<?php\n\nuse B\\C;\nuse Z\\Y;\n\nclass A {}\n"


class TestSeeSplice:
    """Tests for see_splice()."""

    def test_method_without_doc_gets_one(self):
        from testlink.modifiers.base import apply_splices, see_splice
        from testlink.parsers.php import PhpSource

        source = PhpSource("<?php\nclass A\n{\n    #[X]\n    public function f() {}\n}\n")
        method = source.classes()[0].methods[0]
        splice = see_splice(source.data, method, ["\\Tests\\ATest::test_f"])
        assert apply_splices(source.data, [splice]).decode("utf-8") == (
            "<?php\nclass A\n{\n"
            "    /**\n     * @see \\Tests\\ATest::test_f\n     */\n"
            "    #[X]\n    public function f() {}\n}\n"
        )

    def test_present_reference_gives_no_splice(self):
        from testlink.modifiers.base import see_splice
        from testlink.parsers.php import PhpSource

        source = PhpSource(
            "<?php\nclass A\n{\n    /** @see \\Tests\\ATest::test_f */\n    public function f() {}\n}\n"
        )
        method = source.classes()[0].methods[0]
        assert see_splice(source.data, method, ["Tests\\ATest::test_f"]) is None
