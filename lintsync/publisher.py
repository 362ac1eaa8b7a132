"""诊断差分与发布

把一批警告转成按文件分组的诊断，并与上一轮已报告的文件集合比对，
对不再有警告的文件恰好发送一次清除。
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Set

from .converter import AnalyzerLSPConverter
from .interfaces import Connection
from .model import LintWarning
from .protocol import Diagnostic, DocumentUri, PublishDiagnosticsParams

logger = logging.getLogger(__name__)


class DiagnosticPublisher:
    """诊断发布器

    _reported_uris 只在同步方法中读写，两次读写之间没有 await，
    并发的报告周期不会看到更新了一半的集合。
    """

    def __init__(self, converter: AnalyzerLSPConverter, connection: Connection):
        self.converter = converter
        self.connection = connection
        # 上一轮整包报告中有诊断的 URI
        self._reported_uris: Set[DocumentUri] = set()

    @property
    def reported_uris(self) -> FrozenSet[DocumentUri]:
        """已报告 URI 的只读快照"""
        return frozenset(self._reported_uris)

    def group_by_uri(self, warnings: Iterable[LintWarning]) -> Dict[DocumentUri, List[Diagnostic]]:
        """按文件分组，保持警告原有顺序"""
        diagnostics_by_uri: Dict[DocumentUri, List[Diagnostic]] = {}
        for warning in warnings:
            uri = self.converter.get_uri_for_local_path(warning.source_range.file)
            diagnostics_by_uri.setdefault(uri, []).append(
                self.converter.convert_warning_to_diagnostic(warning)
            )
        return diagnostics_by_uri

    def publish_open_documents(self, warnings: Iterable[LintWarning]) -> None:
        """只分析打开文档时的发布：不做清除，关闭时的清除由编排器负责"""
        diagnostics_by_uri = self.group_by_uri(warnings)
        for uri, diagnostics in diagnostics_by_uri.items():
            self._send(uri, diagnostics)

    def publish_package(self, warnings: Iterable[LintWarning]) -> None:
        """整包发布

        读取旧集合、发布、清除、替换新集合在同一个同步步骤中完成。
        """
        reported_last_time = set(self._reported_uris)
        diagnostics_by_uri = self.group_by_uri(warnings)

        for uri, diagnostics in diagnostics_by_uri.items():
            self._send(uri, diagnostics)

        stale = reported_last_time - diagnostics_by_uri.keys()
        for uri in sorted(stale):
            self._send(uri, [])

        self._reported_uris = set(diagnostics_by_uri)
        logger.debug(f"发布 {len(diagnostics_by_uri)} 个文件的诊断，清除 {len(stale)} 个文件")

    def clear(self, uri: DocumentUri) -> None:
        """清除单个文件的诊断"""
        self._send(uri, [])

    def clear_reported(self) -> None:
        """清除所有已报告文件的诊断，并忘记它们"""
        reported, self._reported_uris = self._reported_uris, set()
        for uri in sorted(reported):
            self._send(uri, [])

    def mark_reported(self, uris: Iterable[DocumentUri]) -> None:
        """把给定 URI 视为已报告（替换原集合）"""
        self._reported_uris = set(uris)

    def _send(self, uri: DocumentUri, diagnostics: List[Diagnostic]) -> None:
        self.connection.send_diagnostics(PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))
