"""警告与编辑模型

lint 引擎产出的共享值类型：
- SourcePosition / SourceRange: 基于工作区相对路径的 0-indexed 位置
- Replacement / Edit: 可跨文件的原子文本替换
- LintWarning: 一条可诊断的发现，可附带修复 (fix) 与动作 (actions)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set


@dataclass(frozen=True, order=True)
class SourcePosition:
    """源码位置"""

    line: int  # 0-indexed
    column: int  # 0-indexed


@dataclass(frozen=True)
class SourceRange:
    """源码范围"""

    file: str  # 工作区相对路径
    start: SourcePosition
    end: SourcePosition


@dataclass(frozen=True)
class Replacement:
    """单个文本替换"""

    range: SourceRange
    replacement_text: str


# 一个 Edit 内的替换需要作为整体原子地应用
Edit = List[Replacement]


class Severity(Enum):
    """警告严重程度"""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Action:
    """警告附带的动作（非自动修复）"""

    kind: str
    code: str
    description: str
    edit: Edit = field(default_factory=list)


@dataclass(frozen=True)
class LintWarning:
    """lint 警告"""

    code: str
    message: str
    severity: Severity
    source_range: SourceRange
    fix: Optional[Edit] = None
    actions: Optional[List[Action]] = None

    @property
    def has_edit_action(self) -> bool:
        """是否含有 kind 为 edit 的动作"""
        return any(action.kind == "edit" for action in self.actions or ())


@dataclass
class Analysis:
    """一次分析的快照"""

    documents: Dict[str, str] = field(default_factory=dict)  # path -> contents
    warnings: List[LintWarning] = field(default_factory=list)

    def get_contents(self, path: str) -> Optional[str]:
        return self.documents.get(path)


class WarningList(list):
    """警告列表，同时记录产生它们的分析结果"""

    def __init__(self, warnings: Iterable[LintWarning] = (), analysis: Optional[Analysis] = None):
        super().__init__(warnings)
        self.analysis = analysis if analysis is not None else Analysis()


def is_position_inside_range(
    position: SourcePosition,
    range: SourceRange,
    include_edges: bool = False,
) -> bool:
    """判断位置是否在范围内"""
    if include_edges:
        return range.start <= position <= range.end
    return range.start < position < range.end


def is_range_inside(inner: SourceRange, outer: SourceRange) -> bool:
    """inner 是否完整包含在 outer 内（含边界）"""
    return is_position_inside_range(inner.start, outer, True) and is_position_inside_range(
        inner.end, outer, True
    )


def files_of_edit(edit: Edit) -> Set[str]:
    """获取编辑涉及的所有文件"""
    return {replacement.range.file for replacement in edit}
