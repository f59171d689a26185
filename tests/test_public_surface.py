"""Test public API surface - ensure imports work correctly and no side effects.

This test verifies:
- crosswire.api exposes the documented entry points
- The root package re-exports them in __all__
- Importing the package does not configure logging
"""

import inspect
import logging

from crosswire.log import _CrosswireHandler


API_FUNCTIONS = (
    "load_graph",
    "configure",
    "sign_and_send",
    "resolve_command",
    "extract_time_markers",
    "resolve_timestamps",
)


def test_api_exports_core_functions():
    import crosswire.api as api

    for name in API_FUNCTIONS:
        assert callable(getattr(api, name)), name

    assert inspect.iscoroutinefunction(api.load_graph)
    assert inspect.iscoroutinefunction(api.sign_and_send)
    assert not inspect.iscoroutinefunction(api.extract_time_markers)


def test_root_reexports_api():
    import crosswire
    import crosswire.api

    for name in API_FUNCTIONS:
        assert name in crosswire.__all__
        assert getattr(crosswire, name) is getattr(crosswire.api, name)

    for name in ("ChainPoint", "Vector", "Graph", "Transaction", "ErrorCode", "CrosswireError", "RetryPolicy"):
        assert name in crosswire.__all__
        assert hasattr(crosswire, name)


def test_internal_modules_not_exported():
    import crosswire

    assert not any(name.startswith("_internal") for name in crosswire.__all__)
    assert "load_raw_config" not in crosswire.__all__


def test_import_has_no_logging_side_effects():
    """Handlers are attached only by configure_logging, never on import."""
    import crosswire  # noqa: F401

    root = logging.getLogger("crosswire")
    assert not any(isinstance(h, _CrosswireHandler) for h in root.handlers)
