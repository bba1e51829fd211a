"""Pytest fixtures shared by the testlink tests."""

import json
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

USER_SERVICE = """<?php

declare(strict_types=1);

namespace App\\Services;

use TestFlowLabs\\TestingAttributes\\TestedBy;

class UserService
{
    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_creates_user')]
    public function create(string $name): array
    {
        return ['name' => $name];
    }

    public function update(int $id): bool
    {
        return true;
    }

    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_removed_long_ago')]
    public function delete(int $id): bool
    {
        return true;
    }

    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_creates_user')]
    public function validate(array $data): bool
    {
        return true;
    }
}
"""

USER_SERVICE_TEST = """<?php

declare(strict_types=1);

namespace Tests\\Unit;

use App\\Services\\UserService;
use PHPUnit\\Framework\\TestCase;
use TestFlowLabs\\TestingAttributes\\Links;
use TestFlowLabs\\TestingAttributes\\LinksAndCovers;

class UserServiceTest extends TestCase
{
    #[LinksAndCovers(UserService::class, 'create')]
    public function test_creates_user(): void
    {
        $this->assertTrue(true);
    }

    #[Links(UserService::class, 'update')]
    public function test_updates_user(): void
    {
        $this->assertTrue(true);
    }

    #[LinksAndCovers(UserService::class, 'archive')]
    public function test_archives_user(): void
    {
        $this->assertTrue(true);
    }
}
"""

USER_FLOW_TEST = """<?php

use App\\Services\\UserService;

test('creates a user through the service')
    ->linksAndCovers(UserService::class.'::create')
    ->expect(true)
    ->toBeTrue();
"""

COMPOSER = {
    "name": "acme/shop",
    "autoload": {"psr-4": {"App\\": "src/"}},
    "autoload-dev": {"psr-4": {"Tests\\": "tests/"}},
    "require-dev": {"pestphp/pest": "^2.0", "phpunit/phpunit": "^10.0"},
}


@pytest.fixture
def fixtures_dir():
    """Return path to the PHP fixture directory."""
    return FIXTURES_DIR


@pytest.fixture
def write_project(tmp_path):
    """Factory writing {relative path: content} into a fresh project directory."""

    def _write(files: dict, composer: dict | None = None) -> Path:
        if composer is not None:
            (tmp_path / "composer.json").write_text(json.dumps(composer), encoding="utf-8")
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def sample_project(write_project):
    """
    A project with one consistent link and one of every finding kind.

    - test_creates_user -> create: in sync
    - test_updates_user -> update: update has no #[TestedBy]
    - test_archives_user -> archive: no such method
    - Pest test -> create: create does not name it
    - delete names a test that does not exist
    - validate names test_creates_user, which does not link to it
    """
    return write_project(
        {
            "src/Services/UserService.php": USER_SERVICE,
            "tests/Unit/UserServiceTest.php": USER_SERVICE_TEST,
            "tests/Feature/UserFlowTest.php": USER_FLOW_TEST,
        },
        composer=COMPOSER,
    )


@pytest.fixture
def make_test():
    """Factory for ParsedTestCase records with the given link targets."""
    from testlink.core.models import DeclaredLink, ParsedTestCase, SyntaxKind, parse_canonical_form

    def _make(identifier: str, *targets: str, coverage: bool = True, file_path=None):
        links = [DeclaredLink(parse_canonical_form(t), coverage) for t in targets]
        return ParsedTestCase(
            name=identifier.partition("::")[2] or identifier,
            qualified_identifier=identifier,
            source_span=(0, 0),
            declarations_end=0,
            syntax_kind=SyntaxKind.ATTRIBUTE_LIST,
            existing_links=links,
            file_path=file_path,
        )

    return _make


@pytest.fixture
def runtime_reset():
    """Start and finish with an unbootstrapped runtime."""
    from testlink import runtime

    runtime.reset()
    yield runtime
    runtime.reset()
