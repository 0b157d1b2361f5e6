"""Test harness for peat.

Re-exports the public helpers:
    from tests.harness import run_app, FakeClient, make_stream, ...
"""

from tests.harness.app_runner import run_app, make_controller
from tests.harness.fakes import FakeClient
from tests.harness.builders import make_sample, make_stream, make_matrix
from tests.harness.interactions import press_and_settle, type_text, wait_for_queries
from tests.harness.content import render_plain
from tests.harness.messages import MessageCapture

__all__ = [
    "run_app",
    "make_controller",
    "FakeClient",
    "make_sample",
    "make_stream",
    "make_matrix",
    "press_and_settle",
    "type_text",
    "wait_for_queries",
    "render_plain",
    "MessageCapture",
]
