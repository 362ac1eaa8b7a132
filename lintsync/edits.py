"""编辑应用

把一组 Edit 应用到文件内容上：
- 与已接受的替换重叠的 Edit 整体排除
- 接受的替换按文件从后往前拼接（按需进行）
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .interfaces import Analyzer, Loader
from .model import Analysis, Edit, Replacement, SourcePosition

logger = logging.getLogger(__name__)


@dataclass
class EditResult:
    """编辑应用结果

    applied_edits / incompatible_edits 在 apply_edits 返回时就已确定。
    文件内容只在调用 edited_files() 时才通过 loader 读取并拼接。
    """

    applied_edits: List[Edit] = field(default_factory=list)
    incompatible_edits: List[Edit] = field(default_factory=list)
    loader: Optional[Loader] = field(default=None, repr=False)

    def replacements_by_file(self) -> Dict[str, List[Replacement]]:
        by_file: Dict[str, List[Replacement]] = {}
        for edit in self.applied_edits:
            for replacement in edit:
                by_file.setdefault(replacement.range.file, []).append(replacement)
        return by_file

    async def edited_files(self) -> Dict[str, str]:
        """读取并拼接被修改的文件，返回 path -> 新内容"""
        if self.loader is None:
            raise ValueError("没有 loader，无法生成文件内容")
        contents_by_file: Dict[str, str] = {}
        for path, replacements in self.replacements_by_file().items():
            source = SourceText(await self.loader(path))
            contents = source.contents
            ordered = sorted(
                replacements,
                key=lambda r: (r.range.start, r.range.end),
                reverse=True,
            )
            for replacement in ordered:
                start = source.position_to_offset(replacement.range.start)
                end = source.position_to_offset(replacement.range.end)
                contents = contents[:start] + replacement.replacement_text + contents[end:]
            contents_by_file[path] = contents
        return contents_by_file


class SourceText:
    """带行偏移索引的文本"""

    def __init__(self, contents: str):
        self.contents = contents
        self._line_starts = [0]
        for index, char in enumerate(contents):
            if char == "\n":
                self._line_starts.append(index + 1)

    def position_to_offset(self, position: SourcePosition) -> int:
        """行列转偏移，超出的列截断到行尾"""
        if position.line >= len(self._line_starts):
            return len(self.contents)
        start = self._line_starts[position.line]
        if position.line + 1 < len(self._line_starts):
            line_end = self._line_starts[position.line + 1] - 1
        else:
            line_end = len(self.contents)
        return min(start + position.column, line_end)

    def offset_to_position(self, offset: int) -> SourcePosition:
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return SourcePosition(line=line, column=offset - self._line_starts[line])


def are_replacements_compatible(a: Replacement, b: Replacement) -> bool:
    """两个替换能否同时应用"""
    if a.range.file != b.range.file:
        return True
    if a.range.start == b.range.start and a.range.end == b.range.end:
        return False
    # 首尾相接不算重叠
    return not (a.range.start < b.range.end and b.range.start < a.range.end)


def _can_apply(edit: Edit, accepted: Dict[str, List[Replacement]]) -> bool:
    for i, replacement in enumerate(edit):
        for other in accepted.get(replacement.range.file, ()):
            if not are_replacements_compatible(replacement, other):
                return False
        for other in edit[i + 1 :]:
            if not are_replacements_compatible(replacement, other):
                return False
    return True


def apply_edits(edits: Sequence[Edit], loader: Optional[Loader] = None) -> EditResult:
    """应用编辑，排除互相冲突的编辑

    按顺序处理：先到的编辑优先，后到且与之冲突的编辑被整体丢弃。
    这里不读取任何文件，需要新内容时调用 EditResult.edited_files()。
    """
    result = EditResult(loader=loader)
    accepted: Dict[str, List[Replacement]] = {}

    for edit in edits:
        if _can_apply(edit, accepted):
            result.applied_edits.append(edit)
            for replacement in edit:
                accepted.setdefault(replacement.range.file, []).append(replacement)
        else:
            result.incompatible_edits.append(edit)

    if result.incompatible_edits:
        logger.debug(f"排除 {len(result.incompatible_edits)} 个冲突编辑")
    return result


def make_loader(analyzer: Analyzer, analysis: Analysis) -> Loader:
    """创建加载器：优先使用分析快照中的内容"""

    async def load(path: str) -> str:
        contents = analysis.get_contents(path)
        if contents is not None:
            return contents
        return await analyzer.load(path)

    return load
