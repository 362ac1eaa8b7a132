"""测试辅助：内存分析器、预设规则、记录连接"""

from typing import Dict, List, Optional, Sequence

from lintsync.model import (
    Action,
    Analysis,
    Edit,
    LintWarning,
    Replacement,
    Severity,
    SourcePosition,
    SourceRange,
)
from lintsync.protocol import PublishDiagnosticsParams, WorkspaceEdit

WORKSPACE_ROOT = "/workspace"


def uri(path: str) -> str:
    """工作区相对路径转 URI"""
    return f"file://{WORKSPACE_ROOT}/{path}"


def make_range(file: str, sl: int, sc: int, el: int, ec: int) -> SourceRange:
    return SourceRange(file=file, start=SourcePosition(sl, sc), end=SourcePosition(el, ec))


def replacement(file: str, sl: int, sc: int, el: int, ec: int, text: str) -> Replacement:
    return Replacement(range=make_range(file, sl, sc, el, ec), replacement_text=text)


def make_warning(
    code: str,
    file: str,
    sl: int = 0,
    sc: int = 0,
    el: int = 0,
    ec: int = 1,
    fix: Optional[Edit] = None,
    actions: Optional[List[Action]] = None,
    severity: Severity = Severity.WARNING,
) -> LintWarning:
    return LintWarning(
        code=code,
        message=f"{code} message",
        severity=severity,
        source_range=make_range(file, sl, sc, el, ec),
        fix=fix,
        actions=actions,
    )


class FakeAnalyzer:
    """内存分析器"""

    def __init__(self, documents: Optional[Dict[str, str]] = None):
        self.documents: Dict[str, str] = dict(documents or {})
        self.fail_with: Optional[Exception] = None
        self.analyze_calls: List[List[str]] = []
        self.package_calls = 0

    async def analyze(self, files: Sequence[str]) -> Analysis:
        self.analyze_calls.append(list(files))
        if self.fail_with is not None:
            raise self.fail_with
        return Analysis(documents={f: self.documents.get(f, "") for f in files})

    async def analyze_package(self) -> Analysis:
        self.package_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return Analysis(documents=dict(self.documents))

    async def load(self, path: str) -> str:
        return self.documents[path]


class StaticRule:
    """返回预设警告的规则（只返回分析中出现的文件）"""

    def __init__(self, code: str, warnings: Optional[List[LintWarning]] = None):
        self._code = code
        self.warnings: List[LintWarning] = list(warnings or [])

    @property
    def code(self) -> str:
        return self._code

    @property
    def description(self) -> str:
        return f"static rule {self._code}"

    async def check(self, analysis: Analysis) -> List[LintWarning]:
        return [w for w in self.warnings if w.source_range.file in analysis.documents]


class RecordingConnection:
    """记录所有发送内容的连接"""

    def __init__(self, accept_edits: bool = True):
        self.published: List[PublishDiagnosticsParams] = []
        self.applied: List[WorkspaceEdit] = []
        self.accept_edits = accept_edits

    def send_diagnostics(self, params: PublishDiagnosticsParams) -> None:
        self.published.append(params)

    async def apply_edit(self, edit: WorkspaceEdit) -> bool:
        self.applied.append(edit)
        return self.accept_edits

    def publishes_for(self, target_uri: str) -> List[PublishDiagnosticsParams]:
        return [p for p in self.published if p.uri == target_uri]

    def clears_for(self, target_uri: str) -> int:
        return sum(1 for p in self.publishes_for(target_uri) if not p.diagnostics)

    def reset(self) -> None:
        self.published.clear()
        self.applied.clear()


