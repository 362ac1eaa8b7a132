"""批量修复

把多个修复合并为一个工作区编辑，互相冲突的修复被排除。
"""

from __future__ import annotations

import logging
from typing import List

from .converter import AnalyzerLSPConverter
from .edits import apply_edits, make_loader
from .interfaces import Analyzer
from .linter import Linter
from .model import Edit, files_of_edit
from .protocol import DocumentUri, TextEdit, WorkspaceEdit

logger = logging.getLogger(__name__)


class FixApplier:
    """修复应用器"""

    def __init__(self, analyzer: Analyzer, converter: AnalyzerLSPConverter):
        self.analyzer = analyzer
        self.converter = converter

    async def get_all_fixes(self, linter: Linter) -> WorkspaceEdit:
        """修复整个包"""
        warnings = await linter.lint_package()
        fixes = [warning.fix for warning in warnings if warning.fix]
        result = apply_edits(fixes, make_loader(self.analyzer, warnings.analysis))
        logger.info(
            f"应用 {len(result.applied_edits)} 个修复，排除 {len(result.incompatible_edits)} 个冲突修复"
        )
        return self.converter.edits_to_workspace_edit(result.applied_edits)

    async def get_fixes_for_file(self, linter: Linter, uri: DocumentUri) -> List[TextEdit]:
        """只修复单个文件"""
        path = self.converter.get_workspace_path_to_file(uri)
        warnings = await linter.lint([path])
        edits: List[Edit] = []
        for warning in warnings:
            if not warning.fix:
                continue
            # 修复可能跨文件，这里只能修改当前文档，跨文件的修复整体跳过
            if files_of_edit(warning.fix) != {path}:
                continue
            edits.append(warning.fix)
        result = apply_edits(edits, make_loader(self.analyzer, warnings.analysis))
        return self.converter.edits_to_text_edits(result.applied_edits)
