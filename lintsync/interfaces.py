"""外部协作方接口

分析引擎、lint 规则和编辑器连接都由外部提供，这里只声明消费的接口。
"""

from __future__ import annotations

from typing import Awaitable, Callable, List, Protocol, Sequence, runtime_checkable

from .model import Analysis, LintWarning
from .protocol import PublishDiagnosticsParams, WorkspaceEdit

# 按路径加载文件内容
Loader = Callable[[str], Awaitable[str]]


@runtime_checkable
class Analyzer(Protocol):
    """分析引擎"""

    async def analyze(self, files: Sequence[str]) -> Analysis:
        """分析指定文件"""
        ...

    async def analyze_package(self) -> Analysis:
        """分析整个包"""
        ...

    async def load(self, path: str) -> str:
        """读取文件当前内容"""
        ...


@runtime_checkable
class Rule(Protocol):
    """lint 规则"""

    @property
    def code(self) -> str: ...

    @property
    def description(self) -> str: ...

    async def check(self, analysis: Analysis) -> List[LintWarning]: ...


@runtime_checkable
class Connection(Protocol):
    """编辑器协议连接"""

    def send_diagnostics(self, params: PublishDiagnosticsParams) -> None:
        """发送 textDocument/publishDiagnostics 通知"""
        ...

    async def apply_edit(self, edit: WorkspaceEdit) -> bool:
        """发送 workspace/applyEdit 请求"""
        ...
