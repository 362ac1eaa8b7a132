"""LSP 协议类型定义

基于 LSP 3.17 规范定义诊断同步与代码动作所需的核心类型。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

# 基础类型
DocumentUri = str

# JSON-RPC 错误码
INTERNAL_ERROR = -32603


@dataclass
class Position:
    """文档中的位置"""

    line: int  # 0-indexed
    character: int  # 0-indexed

    def to_dict(self) -> dict:
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(line=data["line"], character=data["character"])


@dataclass
class Range:
    """文档中的范围"""

    start: Position
    end: Position

    def to_dict(self) -> dict:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "Range":
        return cls(
            start=Position.from_dict(data["start"]),
            end=Position.from_dict(data["end"]),
        )


@dataclass
class TextDocumentIdentifier:
    """文档标识符"""

    uri: DocumentUri

    def to_dict(self) -> dict:
        return {"uri": self.uri}

    @classmethod
    def from_dict(cls, data: dict) -> "TextDocumentIdentifier":
        return cls(uri=data["uri"])


class DiagnosticSeverity(IntEnum):
    """诊断严重程度"""

    Error = 1
    Warning = 2
    Information = 3
    Hint = 4


@dataclass
class Diagnostic:
    """诊断信息"""

    range: Range
    message: str
    severity: Optional[DiagnosticSeverity] = None
    code: Optional[Union[int, str]] = None
    source: Optional[str] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"range": self.range.to_dict(), "message": self.message}
        if self.severity is not None:
            result["severity"] = int(self.severity)
        if self.code is not None:
            result["code"] = self.code
        if self.source is not None:
            result["source"] = self.source
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Diagnostic":
        severity = None
        if "severity" in data:
            severity = DiagnosticSeverity(data["severity"])

        return cls(
            range=Range.from_dict(data["range"]),
            message=data["message"],
            severity=severity,
            code=data.get("code"),
            source=data.get("source"),
        )


@dataclass
class PublishDiagnosticsParams:
    """发布诊断参数（空列表表示清除）"""

    uri: DocumentUri
    diagnostics: List[Diagnostic]
    version: Optional[int] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {
            "uri": self.uri,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
        if self.version is not None:
            result["version"] = self.version
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "PublishDiagnosticsParams":
        return cls(
            uri=data["uri"],
            diagnostics=[Diagnostic.from_dict(d) for d in data["diagnostics"]],
            version=data.get("version"),
        )


@dataclass
class TextEdit:
    """文本编辑"""

    range: Range
    newText: str

    @classmethod
    def replace(cls, range: Range, new_text: str) -> "TextEdit":
        return cls(range=range, newText=new_text)

    def to_dict(self) -> dict:
        return {"range": self.range.to_dict(), "newText": self.newText}

    @classmethod
    def from_dict(cls, data: dict) -> "TextEdit":
        return cls(range=Range.from_dict(data["range"]), newText=data["newText"])


@dataclass
class WorkspaceEdit:
    """工作区编辑（按 URI 分组的文本编辑）"""

    changes: Dict[DocumentUri, List[TextEdit]] = field(default_factory=dict)

    def add(self, uri: DocumentUri, edit: TextEdit) -> None:
        self.changes.setdefault(uri, []).append(edit)

    def to_dict(self) -> dict:
        return {
            "changes": {
                uri: [edit.to_dict() for edit in edits] for uri, edits in self.changes.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkspaceEdit":
        return cls(
            changes={
                uri: [TextEdit.from_dict(e) for e in edits]
                for uri, edits in data.get("changes", {}).items()
            }
        )


@dataclass
class Command:
    """编辑器可调用的命令"""

    title: str
    command: str
    arguments: Optional[List[Any]] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"title": self.title, "command": self.command}
        if self.arguments is not None:
            result["arguments"] = self.arguments
        return result


@dataclass
class CodeActionContext:
    """代码动作上下文"""

    diagnostics: List[Diagnostic] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "CodeActionContext":
        return cls(diagnostics=[Diagnostic.from_dict(d) for d in data.get("diagnostics", [])])


@dataclass
class CodeActionParams:
    """代码动作请求参数"""

    textDocument: TextDocumentIdentifier
    range: Range
    context: CodeActionContext

    @classmethod
    def from_dict(cls, data: dict) -> "CodeActionParams":
        return cls(
            textDocument=TextDocumentIdentifier.from_dict(data["textDocument"]),
            range=Range.from_dict(data["range"]),
            context=CodeActionContext.from_dict(data.get("context", {})),
        )


class ResponseError(Exception):
    """请求级别的协议错误"""

    def __init__(self, message: str, code: int = INTERNAL_ERROR, data: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result
