"""Tests for rendertrace package exports and metadata."""

import pytest

import rendertrace


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(rendertrace.__version__, str)
        assert rendertrace.__version__ == "0.1.0"

    def test_free_threading_declaration(self) -> None:
        assert rendertrace._Py_mod_gil == 0

    def test_all_exports_resolvable(self) -> None:
        for name in rendertrace.__all__:
            assert getattr(rendertrace, name) is not None

    def test_lazy_exports_match_modules(self) -> None:
        from rendertrace.core.registry import RenderRegistry
        from rendertrace.tracker import RenderTracker

        assert rendertrace.RenderRegistry is RenderRegistry
        assert rendertrace.RenderTracker is RenderTracker

    def test_invalid_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            rendertrace.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018

    def test_enable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RENDERTRACE_ENV", raising=False)
        monkeypatch.delenv("PYTHON_ENV", raising=False)
        tracker = rendertrace.enable(log_on_console=False)
        assert isinstance(tracker, rendertrace.RenderTracker)
        assert tracker.enabled
