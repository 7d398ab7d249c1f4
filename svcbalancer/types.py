from collections.abc import Awaitable, Callable

NoArgAsyncCallable = Callable[[], Awaitable[None]]
