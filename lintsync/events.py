"""事件流

同步发布/订阅：多个独立的触发源汇入同一个编排器。
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Disposable:
    """可释放的订阅"""

    def __init__(self, dispose: Callable[[], None]):
        self._dispose = dispose
        self._disposed = False

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._dispose()


class EventStream(Generic[T]):
    """事件流

    使用示例:
    ```python
    stream: EventStream[str] = EventStream()
    subscription = stream.listen(lambda uri: print(uri))
    stream.emit("file:///a.js")
    subscription.dispose()
    ```
    """

    def __init__(self):
        self._listeners: List[Callable[[T], None]] = []

    def listen(self, callback: Callable[[T], None]) -> Disposable:
        """注册监听器"""
        self._listeners.append(callback)

        def remove() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return Disposable(remove)

    def emit(self, event: T) -> None:
        """通知所有监听器，单个监听器出错不影响其他监听器"""
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception("事件监听器执行失败")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
