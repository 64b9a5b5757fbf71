"""
Instrumentation helpers for call sites.

Thin bindings over a PerformanceEngine:
- track_performance: decorator for sync and async functions
- ComponentTracker: mount lifetime, render counts and interactions of a
  named component
- FetchTracker: timing of a named data fetch, split by outcome
- instrument_input: flags slow input handlers
- ScrollJankTracker: records scroll events closer together than a frame
"""

import inspect
from functools import wraps
from typing import Any, Callable, Optional, ParamSpec, TypeVar

from perfwatch.telemetry.engine import PerformanceEngine
from perfwatch.telemetry.models import (
    CATEGORY_CUSTOM,
    CATEGORY_INTERACTION,
    CATEGORY_RESOURCE,
    UNIT_COUNT,
    UNIT_MS,
)

P = ParamSpec("P")
T = TypeVar("T")

SLOW_INPUT_THRESHOLD_MS = 50.0
# Frame interval at 60fps
FRAME_BUDGET_MS = 16.67


def track_performance(
    operation_name: str,
    engine: PerformanceEngine,
):
    """
    Decorator to track function/async function performance.

    Args:
        operation_name: Name the samples are recorded under
        engine: Engine receiving the samples

    Usage:
        @track_performance("load-patients", engine)
        async def load_patients(ward_id: int):
            # ... function body ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await engine.measure_async(operation_name, func, *args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return engine.measure_sync(operation_name, func, *args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        else:
            return sync_wrapper

    return decorator


class ComponentTracker:
    """Tracks the lifecycle of one named component."""

    def __init__(self, engine: PerformanceEngine, component_name: str):
        self._engine = engine
        self.component_name = component_name
        self.render_count = 0
        self._mounted_at: float = 0.0

    @property
    def mount_mark(self) -> str:
        return f"mount-{self.component_name}"

    def mount(self) -> None:
        self._mounted_at = self._engine.clock.now()
        self._engine.start_mark(self.mount_mark)

    def unmount(self) -> float:
        """Record the component lifetime and close the mount mark."""
        lifetime = max(0.0, self._engine.clock.now() - self._mounted_at)
        self._engine.record(
            f"lifetime-{self.component_name}", lifetime, unit=UNIT_MS, category=CATEGORY_CUSTOM
        )
        self._engine.end_mark(self.mount_mark)
        return lifetime

    def rendered(self) -> int:
        """Bump the render tally and record it as a running count sample."""
        self.render_count += 1
        self._engine.record(
            f"render-count-{self.component_name}",
            self.render_count,
            unit=UNIT_COUNT,
            category=CATEGORY_CUSTOM,
        )
        return self.render_count

    def track_interaction(self, interaction_name: str) -> Callable[[], float]:
        """
        Start timing an interaction.

        Returns:
            A function that stops the timer, records the interaction and
            returns its duration in ms.
        """
        started_at = self._engine.clock.now()

        def stop() -> float:
            duration = max(0.0, self._engine.clock.now() - started_at)
            self._engine.record_interaction(f"{self.component_name}-{interaction_name}", duration)
            return duration

        return stop


class FetchTracker:
    """Times a named fetch and records its outcome."""

    def __init__(self, engine: PerformanceEngine, query_name: str):
        self._engine = engine
        self.query_name = query_name

    @property
    def mark_name(self) -> str:
        return f"fetch-{self.query_name}"

    def start(self) -> None:
        self._engine.start_mark(self.mark_name)

    def end(self, success: bool) -> float:
        duration = self._engine.end_mark(self.mark_name)
        outcome = "success" if success else "error"
        self._engine.record(
            f"{self.mark_name}-{outcome}", duration, unit=UNIT_MS, category=CATEGORY_RESOURCE
        )
        return duration


def instrument_input(
    engine: PerformanceEngine,
    input_name: str,
    handler: Callable[..., Any],
    slow_threshold_ms: float = SLOW_INPUT_THRESHOLD_MS,
) -> Callable[..., Any]:
    """Wrap an input handler; calls slower than the threshold are recorded."""

    @wraps(handler)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        started_at = engine.clock.now()
        try:
            return handler(*args, **kwargs)
        finally:
            duration = engine.clock.now() - started_at
            if duration > slow_threshold_ms:
                engine.record(
                    f"slow-input-{input_name}", duration, unit=UNIT_MS, category=CATEGORY_INTERACTION
                )

    return wrapper


class ScrollJankTracker:
    """
    Flags scroll events that arrive faster than one frame apart.

    Feed it every scroll event via on_scroll(); each gap shorter than the
    frame budget is recorded as a "scroll-jank" interaction sample.
    """

    def __init__(self, engine: PerformanceEngine, frame_budget_ms: float = FRAME_BUDGET_MS):
        self._engine = engine
        self.frame_budget_ms = frame_budget_ms
        self.scroll_count = 0
        self._last_scroll: Optional[float] = None

    def on_scroll(self) -> Optional[float]:
        """Register a scroll event. Returns the recorded jank delta, if any."""
        now = self._engine.clock.now()
        last, self._last_scroll = self._last_scroll, now
        self.scroll_count += 1

        if last is None:
            return None
        delta = max(0.0, now - last)
        if delta >= self.frame_budget_ms:
            return None

        self._engine.record("scroll-jank", delta, unit=UNIT_MS, category=CATEGORY_INTERACTION)
        return delta
