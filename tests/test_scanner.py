"""Tests for test and production file scanning."""

import pytest


def _scanner(root, config=None):
    from testlink.adapters import CompositeAdapter
    from testlink.scanner import TestScanner

    scanner = TestScanner(CompositeAdapter.for_project(root), config)
    scanner.set_project_root(root)
    return scanner


class TestTestScanner:
    """Tests for TestScanner."""

    def test_discover_files(self, sample_project):
        scanner = _scanner(sample_project)
        assert [p.relative_to(sample_project.resolve()).as_posix() for p in scanner.discover_files()] == [
            "tests/Feature/UserFlowTest.php",
            "tests/Unit/UserServiceTest.php",
        ]

    def test_scan_fills_registry(self, sample_project):
        from testlink.registry import TestLinkRegistry

        registry = TestLinkRegistry()
        result = _scanner(sample_project).scan(registry)

        assert result.files_scanned == 2
        assert result.tests_found == 4
        assert result.errors == []
        assert result.frameworks == {
            "tests/Feature/UserFlowTest.php": "pest",
            "tests/Unit/UserServiceTest.php": "phpunit",
        }
        assert sorted(registry.links_by_test) == [
            "Tests\\Feature\\UserFlowTest::creates a user through the service",
            "Tests\\Unit\\UserServiceTest::test_archives_user",
            "Tests\\Unit\\UserServiceTest::test_creates_user",
            "Tests\\Unit\\UserServiceTest::test_updates_user",
        ]

    def test_pest_identifier_gets_directory_namespace(self, sample_project):
        from testlink.core.models import SyntaxKind
        from testlink.registry import TestLinkRegistry

        registry = TestLinkRegistry()
        _scanner(sample_project).scan(registry)

        pest_test = next(t for t in registry if t.syntax_kind is SyntaxKind.FLUENT_CHAIN)
        assert pest_test.test_class == "Tests\\Feature\\UserFlowTest"
        assert pest_test.file_path.name == "UserFlowTest.php"

    def test_broken_file_does_not_stop_scan(self, sample_project):
        from testlink.registry import TestLinkRegistry
        from testlink.scanner import ERROR_PARSE

        broken = sample_project / "tests" / "Unit" / "BrokenTest.php"
        broken.write_text("<?php\nclass BrokenTest extends TestCase {\n", encoding="utf-8")

        registry = TestLinkRegistry()
        result = _scanner(sample_project).scan(registry)

        assert result.files_scanned == 2
        assert len(result.errors) == 1
        assert result.errors[0].file_path.name == "BrokenTest.php"
        assert result.errors[0].kind == ERROR_PARSE
        assert result.parse_errors == result.errors
        assert result.io_errors == []
        assert len(registry) == 4

    def test_unowned_files_are_skipped(self, sample_project):
        from testlink.registry import TestLinkRegistry

        helpers = sample_project / "tests" / "Support" / "helpers.php"
        helpers.parent.mkdir()
        helpers.write_text("<?php\n\nfunction make_user() {}\n", encoding="utf-8")

        result = _scanner(sample_project).scan(TestLinkRegistry())

        assert result.skipped == 1
        assert result.files_scanned == 2

    def test_exclude_patterns(self, sample_project):
        from testlink.registry import TestLinkRegistry

        scanner = _scanner(sample_project, {"tests": {"exclude": ["tests/Feature/**"]}})
        result = scanner.scan(TestLinkRegistry())

        assert list(result.frameworks) == ["tests/Unit/UserServiceTest.php"]

    def test_extra_patterns(self, write_project):
        from testlink.registry import TestLinkRegistry

        root = write_project({"spec/UserSpec.php": "<?php\n\ntest('works');\n"})
        scanner = _scanner(root, {"tests": {"patterns": ["spec/**/*.php"]}})
        registry = TestLinkRegistry()
        scanner.scan(registry)

        # Outside every mapped directory: default namespace plus directories
        assert [t.qualified_identifier for t in registry] == ["Tests\\spec\\UserSpec::works"]

    def test_resolve_namespace_without_composer(self, write_project):
        root = write_project({})
        scanner = _scanner(root)
        assert scanner.resolve_namespace(root / "tests" / "Unit" / "FooTest.php") == "Tests\\Unit"

    def test_configured_mapping_wins(self, write_project):
        root = write_project({})
        scanner = _scanner(root, {"namespaces": {"mappings": {"tests": "Acme\\Tests"}}})
        assert scanner.resolve_namespace(root / "tests" / "Unit" / "FooTest.php") == "Acme\\Tests\\Unit"


class TestQualifyIdentifier:
    """Tests for qualify_identifier()."""

    def test_prefixes_unqualified_unit(self, make_test):
        from testlink.scanner import qualify_identifier

        test = make_test("UserFlowTest::creates a user")
        assert qualify_identifier(test, "Tests\\Feature").qualified_identifier == (
            "Tests\\Feature\\UserFlowTest::creates a user"
        )

    def test_keeps_qualified_class(self, make_test):
        from testlink.scanner import qualify_identifier

        test = make_test("Tests\\Unit\\FooTest::test_a")
        assert qualify_identifier(test, "Other") is test

    def test_keeps_identifier_without_unit(self, make_test):
        from testlink.scanner import qualify_identifier

        test = make_test("creates a user")
        assert qualify_identifier(test, "Tests") is test


class TestProductionScanner:
    """Tests for ProductionScanner."""

    def _scanner(self, root, config=None):
        from testlink.scanner import ProductionScanner

        scanner = ProductionScanner(config)
        scanner.set_project_root(root)
        return scanner

    def test_composer_autoload_dirs(self, sample_project):
        scanner = self._scanner(sample_project)
        assert scanner.production_dirs() == [sample_project.resolve() / "src"]

    def test_configured_dirs_win(self, sample_project):
        scanner = self._scanner(sample_project, {"production": {"dirs": ["lib"]}})
        assert scanner.production_dirs() == [sample_project.resolve() / "lib"]

    def test_default_dirs_that_exist(self, write_project):
        root = write_project({"app/Models/User.php": "<?php\nclass User {}\n"})
        assert self._scanner(root).production_dirs() == [root.resolve() / "app"]

    def test_scan_builds_index(self, sample_project):
        from testlink.core.models import LinkIdentifier

        result = self._scanner(sample_project).scan()

        assert result.files_scanned == 1
        assert result.errors == []
        assert result.index.target_exists(LinkIdentifier("App\\Services\\UserService", "validate"))
        assert len(result.index.declarations()) == 3

    def test_scan_collects_errors(self, sample_project):
        from testlink.scanner import ERROR_PARSE

        (sample_project / "src" / "Broken.php").write_text("<?php\nclass Broken {\n", encoding="utf-8")

        result = self._scanner(sample_project).scan()

        assert result.files_scanned == 1
        assert [(e.file_path.name, e.kind) for e in result.errors] == [("Broken.php", ERROR_PARSE)]

    def test_malformed_composer_raises(self, write_project):
        from testlink.exceptions import ConfigError

        root = write_project({"composer.json": "{not json"})
        with pytest.raises(ConfigError):
            self._scanner(root).production_dirs()


class TestGlobFiles:
    """Tests for glob_files()."""

    def test_sorted_and_deduplicated(self, tmp_path):
        from testlink.scanner import glob_files

        for name in ("b/Two.php", "a/One.php", "vendor/x/Three.php"):
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("<?php\n")

        found = glob_files(tmp_path.resolve(), ["**/*.php", "a/*.php"], ["vendor/**"])

        assert [p.name for p in found] == ["One.php", "Two.php"]
