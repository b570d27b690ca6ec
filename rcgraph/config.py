from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, replace


# Process-wide switches for the reference counting runtime.
#
# track_allocations: register every allocation record in `rcgraph.registry` so that live
#     records can be listed and strong cycles between them detected.
# warn_on_implicit_drop: log a warning when a handle is released by the Python collector
#     instead of an explicit `drop()` or a `with` block.
@dataclass(frozen=True)
class Config:
    track_allocations: bool = True
    warn_on_implicit_drop: bool = False


_current = Config()


def get_config() -> Config:
    return _current


def configure(**kwargs) -> Config:
    global _current
    _current = replace(_current, **kwargs)
    return _current


@contextmanager
def configured(**kwargs):
    global _current
    saved = _current
    _current = replace(saved, **kwargs)
    try:
        yield _current
    finally:
        _current = saved
