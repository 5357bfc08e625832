"""
Context registry: which CaptureConsole (if any) is active in the current task.

The router asks this module "who is active right now?" on every console call.
The answer has to follow the flow of execution rather than the call stack:

  - A target activated in a task stays active across every `await` in that
    task, and in every task the task spawns afterwards.
  - Two sibling tasks each see the binding that was in effect when they were
    created. Activating a target in one never shows up in the other, nor in
    the parent.

Python's contextvars gives exactly these semantics. Every asyncio Task runs in
its own copy of the context it was created in, so the default registry,
ContextVarRegistry, simply keeps the active target in a ContextVar.

Hosts that already own a propagation mechanism (a tracer, a framework's own
request context...) can plug in a replacement with replace_implementation().
Any object with run / activate_for_remainder / lookup methods qualifies. The
swap has to happen before the first binding is made: once a target has been
activated through one implementation, replace_implementation() raises
RegistryInUseError instead of leaving those bindings orphaned.

Usage:
    from taskconsole.context import run, lookup

    async def job():
        lookup()            # -> capture, here and after every await

    await run(capture, job)
"""

import asyncio
import contextvars
import inspect
import weakref
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


class TaskConsoleError(RuntimeError):
    """Base class for taskconsole errors."""


class RegistryInUseError(TaskConsoleError):
    """Raised when the registry is replaced after bindings were made through it."""


@runtime_checkable
class ContextRegistry(Protocol):
    """The interface every registry implementation provides."""

    def run(self, target: Any, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any: ...

    def activate_for_remainder(self, target: Any) -> None: ...

    def lookup(self) -> Any: ...


async def _drive_in_context(ctx: contextvars.Context, awaitable: Awaitable[T], target: Any) -> T:
    """Await `awaitable` with every one of its steps running inside `ctx`.

    `target` is only held here so that it stays alive, and therefore active,
    until the awaitable is done.
    """
    if asyncio.iscoroutine(awaitable):
        task = asyncio.get_running_loop().create_task(awaitable, context=ctx)
        return await task
    # Futures and other awaitables were scheduled by fn itself, inside ctx
    return await awaitable


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


def _iterate_in_context(
    ctx: contextvars.Context, generator: Generator[Any, Any, Any], target: Any
) -> Generator[Any, Any, Any]:
    """Relay `generator`, resuming its body inside `ctx` at every step.

    Values sent in, exceptions thrown in and close() are passed through.
    `target` is held for the same reason as in _drive_in_context().
    """
    to_send: Any = None
    to_throw: BaseException | None = None
    while True:
        try:
            if to_throw is not None:
                item = ctx.run(generator.throw, to_throw)
            else:
                item = ctx.run(generator.send, to_send)
        except StopIteration as stop:
            return stop.value
        to_send, to_throw = None, None
        try:
            to_send = yield item
        except GeneratorExit:
            ctx.run(generator.close)
            raise
        except BaseException as error:
            to_throw = error


async def _aiterate_in_context(
    ctx: contextvars.Context, generator: AsyncGenerator[Any, Any], target: Any
) -> AsyncGenerator[Any, Any]:
    """Async counterpart of _iterate_in_context().

    Every step of `generator` runs as an asyncio task in `ctx`, like the
    coroutines handled by _drive_in_context().
    """
    loop = asyncio.get_running_loop()
    to_send: Any = None
    to_throw: BaseException | None = None
    while True:
        if to_throw is not None:
            step = generator.athrow(to_throw)
        else:
            step = generator.asend(to_send)
        to_send, to_throw = None, None
        try:
            item = await loop.create_task(_await(step), context=ctx)
        except StopAsyncIteration:
            return
        try:
            to_send = yield item
        except GeneratorExit:
            await loop.create_task(_await(generator.aclose()), context=ctx)
            raise
        except BaseException as error:
            to_throw = error


class ContextVarRegistry:
    """Default registry backed by a ContextVar.

    The variable holds a weak reference: the registry never keeps a target
    alive, and a target that has been garbage collected is simply no longer
    active.
    """

    def __init__(self, name: str = "taskconsole_active_target") -> None:
        self._active: contextvars.ContextVar[weakref.ref[Any] | None] = contextvars.ContextVar(
            name, default=None
        )

    def lookup(self) -> Any:
        ref = self._active.get()
        return ref() if ref is not None else None

    def activate_for_remainder(self, target: Any) -> None:
        """Make `target` active for the rest of the current task.

        Replaces the current binding instead of nesting inside it. Passing
        None clears the binding.
        """
        self._active.set(weakref.ref(target) if target is not None else None)

    def run(self, target: Any, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call `fn(*args, **kwargs)` in a child context where `target` is active.

        The binding only exists in a copy of the caller's context, so it ends
        with the call however the call ends: return, exception or, for
        coroutines, cancellation. Bindings made by `fn` itself stay in the
        child context too.

        If `fn` returns a coroutine, an awaitable is returned instead of the
        result. Awaiting it runs the coroutine as an asyncio task in the child
        context and relays its result or exception. Cancelling the awaiting
        task cancels the inner one.

        Generators and async generators are wrapped the same way: the
        returned iterator resumes the generator body in the child context
        on every step.
        """
        ctx = contextvars.copy_context()
        ctx.run(self.activate_for_remainder, target)
        result = ctx.run(fn, *args, **kwargs)
        if inspect.isgenerator(result):
            return _iterate_in_context(ctx, result, target)
        if inspect.isasyncgen(result):
            return _aiterate_in_context(ctx, result, target)
        if inspect.isawaitable(result):
            return _drive_in_context(ctx, result, target)
        return result


_registry: ContextRegistry = ContextVarRegistry()
# Set once a binding has been made through the current registry
_in_use = False


def get_registry() -> ContextRegistry:
    return _registry


def lookup() -> Any:
    """Return the active target of the current task, or None."""
    return _registry.lookup()


def run(target: Any, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run `fn` with `target` active. See ContextVarRegistry.run()."""
    global _in_use
    _in_use = True
    return _registry.run(target, fn, *args, **kwargs)


def activate_for_remainder(target: Any) -> None:
    """Make `target` active for the rest of the current task."""
    global _in_use
    _in_use = True
    _registry.activate_for_remainder(target)


def replace_implementation(custom: ContextRegistry) -> None:
    """Swap the process-wide registry for `custom`.

    Args:
        custom: Any object providing run(target, fn, *args, **kwargs),
            activate_for_remainder(target) and lookup().

    Raises:
        TypeError: If `custom` lacks one of those methods.
        RegistryInUseError: If a binding has already been made through the
            current registry. Those bindings would become invisible to the
            router, so the swap is refused rather than silently accepted.
    """
    global _registry
    if not isinstance(custom, ContextRegistry):
        raise TypeError(
            f"{type(custom).__name__} does not implement run, activate_for_remainder and lookup"
        )
    if _in_use:
        raise RegistryInUseError(
            "replace_implementation() must be called before any console is hooked"
        )
    _registry = custom


def reset_registry() -> None:
    """Restore a fresh default registry (for testing)."""
    global _registry, _in_use
    _registry = ContextVarRegistry()
    _in_use = False
