"""
Liquid Glass — Reactive Recompute Scheduler

Explicit dependency DAG over parameter sources and derived artifacts.

Rules:
- A derived node declares its direct inputs when it is created; inputs must
  already exist, so the graph is acyclic by construction.
- Writing a source marks its transitive dependents dirty. Writing an equal
  value is a no-op.
- Reading a node first brings its inputs up to date (read-after-write
  within one pass), then recomputes only if an input version moved.
- A recompute that produces an equal value keeps the old version, so
  dependents further down are left alone.
- A failing compute leaves the node dirty and re-raises; there is no
  partially updated cache.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from enum import Enum
from typing import Any, Callable

import numpy as np
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_SCALARS = (int, float, str, bool, bytes, type(None), Enum)


def _is_frozen_record(value) -> bool:
    """Frozen dataclass or frozen pydantic model instance."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return value.__dataclass_params__.frozen
    if isinstance(value, BaseModel):
        return bool(value.model_config.get("frozen", False))
    return False


def values_equal(old, new) -> bool:
    """Cheap equality used to suppress no-op updates.

    Scalars, tuples of scalars, numpy arrays and frozen records (geometry,
    optical parameters) compare by value; anything else (bitmaps, graphs)
    compares by identity.
    """
    if old is new:
        return True
    if isinstance(old, _SCALARS) and isinstance(new, _SCALARS):
        if isinstance(old, bool) or isinstance(new, bool):
            return type(old) is type(new) and old == new
        return bool(old == new)
    if isinstance(old, tuple) and isinstance(new, tuple):
        return len(old) == len(new) and all(values_equal(a, b) for a, b in zip(old, new))
    if isinstance(old, np.ndarray) and isinstance(new, np.ndarray):
        return old.shape == new.shape and old.dtype == new.dtype and bool(np.array_equal(old, new))
    if _is_frozen_record(old) and type(old) is type(new):
        return bool(old == new)
    return False


class _Node:
    __slots__ = ("name", "fn", "inputs", "value", "version", "seen", "dirty", "dependents")

    def __init__(self, name: str, fn: Callable | None, inputs: tuple[str, ...]):
        self.name = name
        self.fn = fn
        self.inputs = inputs
        self.value = None
        self.version = 0
        self.seen: tuple[int, ...] | None = None
        self.dirty = fn is not None
        self.dependents: list[str] = []

    @property
    def is_source(self) -> bool:
        return self.fn is None


class Scheduler:
    """Fine-grained recompute over a DAG of named nodes."""

    def __init__(self):
        self._nodes: dict[str, _Node] = {}
        self._order: list[str] = []
        self.recompute_counts: Counter = Counter()

    # --- construction ---

    def source(self, name: str, value: Any = None) -> str:
        """Declare a writable parameter node."""
        if name in self._nodes:
            raise KeyError(f"Node '{name}' already exists")
        node = _Node(name, None, ())
        node.value = value
        node.version = 1
        self._nodes[name] = node
        self._order.append(name)
        return name

    def derive(self, name: str, fn: Callable[..., Any], inputs: list[str] | tuple[str, ...]) -> str:
        """Declare a derived node computed as fn(*input_values).

        Raises:
            KeyError: If the name is taken or an input is unknown.
        """
        if name in self._nodes:
            raise KeyError(f"Node '{name}' already exists")
        inputs = tuple(inputs)
        for dep in inputs:
            if dep not in self._nodes:
                raise KeyError(f"Node '{name}' depends on unknown node '{dep}'")
        node = _Node(name, fn, inputs)
        self._nodes[name] = node
        self._order.append(name)
        for dep in inputs:
            self._nodes[dep].dependents.append(name)
        return name

    # --- writes ---

    def set(self, name: str, value: Any) -> bool:
        """Write a source. Returns True if anything was invalidated."""
        node = self._node(name)
        if not node.is_source:
            raise KeyError(f"'{name}' is derived and cannot be set")
        if values_equal(node.value, value):
            return False
        node.value = value
        node.version += 1
        self._invalidate(node)
        return True

    def update(self, **values) -> list[str]:
        """Write several sources; returns the names that actually changed."""
        return [name for name, value in values.items() if self.set(name, value)]

    def _invalidate(self, node: _Node) -> None:
        stack = list(node.dependents)
        while stack:
            dep = self._nodes[stack.pop()]
            if not dep.dirty:
                dep.dirty = True
                stack.extend(dep.dependents)

    # --- reads ---

    def get(self, name: str) -> Any:
        """Current value of a node, recomputing stale inputs first."""
        node = self._node(name)
        if node.dirty:
            self._refresh(node)
        return node.value

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def _refresh(self, node: _Node) -> None:
        for dep in node.inputs:
            dep_node = self._nodes[dep]
            if dep_node.dirty:
                self._refresh(dep_node)
        seen = tuple(self._nodes[dep].version for dep in node.inputs)
        if seen != node.seen:
            args = [self._nodes[dep].value for dep in node.inputs]
            value = node.fn(*args)
            self.recompute_counts[node.name] += 1
            logger.debug("recomputed %s", node.name)
            if node.version == 0 or not values_equal(node.value, value):
                node.value = value
                node.version += 1
            node.seen = seen
        node.dirty = False

    def flush(self) -> list[str]:
        """Recompute every dirty node in topological order.

        Returns:
            Names of nodes whose compute function actually ran.
        """
        before = Counter(self.recompute_counts)
        for name in self._order:
            node = self._nodes[name]
            if node.dirty:
                self._refresh(node)
        return [name for name in self._order if self.recompute_counts[name] > before[name]]

    # --- introspection ---

    def is_dirty(self, name: str) -> bool:
        return self._node(name).dirty

    def version(self, name: str) -> int:
        return self._node(name).version

    def inputs(self, name: str) -> tuple[str, ...]:
        return self._node(name).inputs

    def downstream(self, name: str) -> set[str]:
        """Transitive dependents of a node."""
        out = set()
        stack = list(self._node(name).dependents)
        while stack:
            dep = stack.pop()
            if dep not in out:
                out.add(dep)
                stack.extend(self._nodes[dep].dependents)
        return out

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def _node(self, name: str) -> _Node:
        try:
            return self._nodes[name]
        except KeyError:
            raise KeyError(f"Unknown node '{name}'") from None
