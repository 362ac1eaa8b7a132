"""Linter

在一次分析结果上运行一组规则。
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .interfaces import Analyzer, Rule
from .model import Analysis, LintWarning, WarningList

logger = logging.getLogger(__name__)


class Linter:
    """组合分析引擎与规则集"""

    def __init__(self, rules: Iterable[Rule], analyzer: Analyzer):
        self.rules: List[Rule] = list(rules)
        self.analyzer = analyzer

    async def lint(self, files: Sequence[str]) -> WarningList:
        """lint 指定文件，仅保留位于这些文件中的警告"""
        analysis = await self.analyzer.analyze(files)
        wanted = set(files)
        warnings = [
            warning
            for warning in await self._run_rules(analysis)
            if warning.source_range.file in wanted
        ]
        return WarningList(warnings, analysis)

    async def lint_package(self) -> WarningList:
        """lint 整个包"""
        analysis = await self.analyzer.analyze_package()
        return WarningList(await self._run_rules(analysis), analysis)

    async def _run_rules(self, analysis: Analysis) -> List[LintWarning]:
        warnings: List[LintWarning] = list(analysis.warnings)
        for rule in self.rules:
            warnings.extend(await rule.check(analysis))
        logger.debug(f"{len(self.rules)} 条规则产生 {len(warnings)} 条警告")
        return warnings
