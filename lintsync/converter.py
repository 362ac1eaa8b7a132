"""分析模型与 LSP 类型之间的转换"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterable, List, Union
from urllib.parse import unquote, urlparse

from .model import Edit, LintWarning, Severity, SourcePosition, SourceRange
from .protocol import (
    Diagnostic,
    DiagnosticSeverity,
    DocumentUri,
    Position,
    Range,
    TextDocumentIdentifier,
    TextEdit,
    WorkspaceEdit,
)

DIAGNOSTIC_SOURCE = "lintsync"

SEVERITY_MAP = {
    Severity.ERROR: DiagnosticSeverity.Error,
    Severity.WARNING: DiagnosticSeverity.Warning,
    Severity.INFO: DiagnosticSeverity.Information,
}


class AnalyzerLSPConverter:
    """工作区路径 / URI / 范围转换器"""

    def __init__(self, workspace_root: Union[str, Path]):
        self.workspace_root = Path(workspace_root).expanduser().resolve()

    def get_workspace_path_to_file(self, document: Union[TextDocumentIdentifier, DocumentUri]) -> str:
        """URI 转工作区相对路径（posix 风格）"""
        uri = document.uri if isinstance(document, TextDocumentIdentifier) else document
        parsed = urlparse(uri)
        path = Path(unquote(parsed.path))
        try:
            return path.relative_to(self.workspace_root).as_posix()
        except ValueError:
            # 工作区外的文件保留绝对路径
            return path.as_posix()

    def is_file_uri(self, uri: DocumentUri) -> bool:
        """是否为本地文件 URI（untitled: 等未保存文档返回 False）"""
        return urlparse(uri).scheme == "file"

    def get_uri_for_local_path(self, local_path: str) -> DocumentUri:
        """工作区相对路径转 URI"""
        path = PurePosixPath(local_path)
        if path.is_absolute():
            return Path(local_path).as_uri()
        return (self.workspace_root / Path(*path.parts)).as_uri()

    def convert_p_range_to_l(self, source_range: SourceRange) -> Range:
        return Range(
            start=Position(line=source_range.start.line, character=source_range.start.column),
            end=Position(line=source_range.end.line, character=source_range.end.column),
        )

    def convert_l_range_to_p(self, range: Range, document: TextDocumentIdentifier) -> SourceRange:
        return SourceRange(
            file=self.get_workspace_path_to_file(document),
            start=SourcePosition(line=range.start.line, column=range.start.character),
            end=SourcePosition(line=range.end.line, column=range.end.character),
        )

    def convert_warning_to_diagnostic(self, warning: LintWarning) -> Diagnostic:
        return Diagnostic(
            range=self.convert_p_range_to_l(warning.source_range),
            message=warning.message,
            severity=SEVERITY_MAP.get(warning.severity, DiagnosticSeverity.Warning),
            code=warning.code,
            source=DIAGNOSTIC_SOURCE,
        )

    def edit_to_workspace_edit(self, edit: Edit) -> WorkspaceEdit:
        return self.edits_to_workspace_edit([edit])

    def edits_to_workspace_edit(self, edits: Iterable[Edit]) -> WorkspaceEdit:
        """合并多个 Edit 为一个工作区编辑"""
        workspace_edit = WorkspaceEdit()
        for edit in edits:
            for replacement in edit:
                workspace_edit.add(
                    self.get_uri_for_local_path(replacement.range.file),
                    TextEdit.replace(
                        self.convert_p_range_to_l(replacement.range),
                        replacement.replacement_text,
                    ),
                )
        return workspace_edit

    def edits_to_text_edits(self, edits: Iterable[Edit]) -> List[TextEdit]:
        """展开为单文件的文本编辑列表"""
        return [
            TextEdit.replace(self.convert_p_range_to_l(r.range), r.replacement_text)
            for edit in edits
            for r in edit
        ]
