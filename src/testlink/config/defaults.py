"""
testlink.config.defaults - Default configuration values.
"""

DEFAULT_CONFIG = {
    "project": {
        # Project root, relative to the config file; "" means its directory
        "root": "",
    },
    "frameworks": {
        # "auto" detects frameworks from composer.json
        "enabled": "auto",
    },
    "tests": {
        # Extra glob patterns on top of each framework's own patterns
        "patterns": [],
        "exclude": ["vendor/**", "node_modules/**"],
    },
    "production": {
        # Empty means: composer.json autoload (non-dev), then src/ and app/
        "dirs": [],
        "patterns": ["**/*.php"],
        "exclude": ["vendor/**", "tests/**"],
    },
    "namespaces": {
        "default_namespace": "Tests",
        "default_directory": "tests",
        # Extra directory -> namespace prefix mappings, e.g. {"tests" = "Acme\\Tests"}
        "mappings": {},
    },
    "attributes": {
        "namespace": "TestFlowLabs\\TestingAttributes",
    },
    "sync": {
        "link_only": False,
        "prune": False,
        # Mirror #[TestedBy] as @see tags and qualify existing @see references
        "see_tags": False,
    },
}
