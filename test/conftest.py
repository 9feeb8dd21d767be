from __future__ import annotations

from pathlib import Path

import pytest

EXAMPLE_GO_MOD = """module example.com/foo

go 1.21

require (
\tgithub.com/x/y v1.2.3
\tgithub.com/a/b v0.1.0 // indirect
)
"""

EXAMPLE_MAIN_GO = """package main

import (
\t"fmt"

\t"github.com/x/y/sub"
)

func main() {
\tfmt.Println(sub.Hello())
}
"""


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--runintegration",
        action="store_true",
        default=False,
        help="run integration tests that query the Go module proxy and GitHub",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "integration: mark test as an integration test")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--runintegration"):
        # --runintegration given in cli: do not skip integration tests
        return
    skip_integration = pytest.mark.skip(reason="need --runintegration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def go_module(tmp_path: Path) -> Path:
    """A minimal Go module: a go.mod with two requirements and one source file."""
    (tmp_path / "go.mod").write_text(EXAMPLE_GO_MOD)
    (tmp_path / "main.go").write_text(EXAMPLE_MAIN_GO)
    return tmp_path
