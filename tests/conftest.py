"""Test configuration that ensures project modules are importable and async tests run."""

import sys
from pathlib import Path

import pytest

pytest_plugins = ("pytest_asyncio",)

# Add project root to sys.path so `findingaid_server` and `findingaid_shared` can be imported in tests.
ROOT = Path(__file__).resolve().parent.parent
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from findingaid_server.compose import parse_template  # noqa: E402
from findingaid_server.docstore import DocstoreResolver, MemoryCollection  # noqa: E402

SFOMUSEUM_TEMPLATE = "https://raw.githubusercontent.com/sfomuseum-data/{repo}/main/data"


@pytest.fixture
def template():
    return parse_template(SFOMUSEUM_TEMPLATE)


@pytest.fixture
def mem_resolver():
    collection = MemoryCollection(
        "id",
        [
            {"id": 1360391327, "repo_name": "sfomuseum-data-maps"},
            {"id": 102527513, "repo_name": "sfomuseum-data-whosonfirst"},
        ],
    )
    return DocstoreResolver(collection)
