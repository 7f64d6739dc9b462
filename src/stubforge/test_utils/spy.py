from typing import Any, Dict, List

from stubforge.reflection import DescriptorReflector
from stubforge.spec import ReflectionProtocol


class SpyReflector:
    """
    A Test Utility that records every reflection call while delegating to a
    real reflector (a DescriptorReflector by default).
    """

    def __init__(self, delegate: Any = None):
        self._delegate: ReflectionProtocol = delegate or DescriptorReflector()
        self.calls: List[Dict[str, Any]] = []

    def __getattr__(self, name: str) -> Any:
        target = getattr(self._delegate, name)
        if not callable(target):
            return target

        def record(*args: Any, **kwargs: Any) -> Any:
            self.calls.append({"method": name, "args": args, "kwargs": kwargs})
            return target(*args, **kwargs)

        return record

    def called(self, method: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method]

    def assert_not_called(self, method: str):
        seen = self.called(method)
        if seen:
            raise AssertionError(
                f"Reflector method '{method}' was called {len(seen)} time(s)"
            )
