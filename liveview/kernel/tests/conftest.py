"""
LiveView kernel test configuration.

Shared documents and builders. Kernel tests are synchronous and need no
fixtures beyond plain data.
"""

import pytest

from liveview.kernel.components import ComponentRegistry

PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>TodoLister</title>
</head>
<body>
    <div id="phx-test" data-phx-main data-phx-session="test">
        <h1>New Todo List</h1>
        <div>Initial content</div>
    </div>
</body>
</html>"""


@pytest.fixture
def page():
    return PAGE


@pytest.fixture
def registry():
    return ComponentRegistry()
