"""Symptom log schema, store and the tool entrypoints used by the API."""

__all__ = ["tool_get_entries", "tool_log_entry", "tool_summarize"]


def tool_get_entries(*args, **kwargs):
    from .get_entries import tool_get_entries as _impl
    return _impl(*args, **kwargs)


def tool_log_entry(*args, **kwargs):
    from .log_entry import log_entry as _impl
    return _impl(*args, **kwargs)


def tool_summarize(*args, **kwargs):
    from .summarize import summarize as _impl
    return _impl(*args, **kwargs)
