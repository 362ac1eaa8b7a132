"""Lint 编排器

持有当前生效的 Linter，把各类触发事件转成 lint 周期：
- 项目配置变更：重建规则集，再跑一轮
- 文件变更：跑一轮完整的报告周期
- 文档关闭：只分析打开文档时，立即清除该文档的诊断
- 分析模式切换：先整理已报告集合，再跑一轮

所有工作都在同一个事件循环上以任务形式运行。并发的周期不取消，
最后完成的周期生效。
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Dict, List, Optional, Set, TypeVar

from .code_actions import QuickFixProvider
from .commands import ALL_COMMANDS, CommandHandler
from .converter import AnalyzerLSPConverter
from .documents import DocumentTracker
from .events import Disposable
from .fixes import FixApplier
from .interfaces import Analyzer, Connection, Rule
from .linter import Linter
from .protocol import CodeActionParams, Command, DocumentUri, ResponseError, TextEdit, WorkspaceEdit
from .publisher import DiagnosticPublisher
from .rules import RuleRegistry, UnknownRuleError, registry
from .settings import ProjectConfig, Settings, SettingsChange

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LintOrchestrator:
    """诊断同步与修复编排器

    使用示例:
    ```python
    orchestrator = LintOrchestrator(analyzer, converter, connection, settings, documents)
    orchestrator.start()
    commands = await orchestrator.code_actions(params)
    await orchestrator.wait_idle()
    orchestrator.dispose()
    ```
    """

    def __init__(
        self,
        analyzer: Analyzer,
        converter: AnalyzerLSPConverter,
        connection: Connection,
        settings: Settings,
        documents: DocumentTracker,
        rule_registry: Optional[RuleRegistry] = None,
    ):
        self.analyzer = analyzer
        self.converter = converter
        self.connection = connection
        self.settings = settings
        self.documents = documents
        self.registry = rule_registry if rule_registry is not None else registry

        self.publisher = DiagnosticPublisher(converter, connection)
        self.quick_fixes = QuickFixProvider(converter)
        self.fix_applier = FixApplier(analyzer, converter)
        self.commands = CommandHandler(connection, self.get_all_fixes)

        self.linter = Linter(self._resolve_rules(), analyzer)
        self._tasks: Set[asyncio.Task] = set()
        self._disposables: List[Disposable] = [
            settings.project_config_change_stream.listen(self._on_project_config_change),
            settings.change_stream.listen(self._on_settings_change),
            documents.file_changes.listen(self._on_file_changes),
            documents.close_stream.listen(self._on_document_close),
        ]

    # ------------------------------------------------------------------ #
    # 生命周期
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """调度首轮报告（需要在运行中的事件循环内调用）"""
        self._schedule(self.report_warnings)

    def dispose(self) -> None:
        """解除所有事件订阅"""
        for disposable in self._disposables:
            disposable.dispose()
        self._disposables.clear()

    async def wait_idle(self) -> None:
        """等待所有已调度的工作完成"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    @property
    def server_capabilities(self) -> Dict[str, Any]:
        """initialize 响应中声明的能力"""
        return {
            "codeActionProvider": True,
            "executeCommandProvider": {"commands": list(ALL_COMMANDS)},
        }

    # ------------------------------------------------------------------ #
    # 触发事件
    # ------------------------------------------------------------------ #

    def update_linter(self) -> None:
        """按当前项目配置重建 Linter，并调度一轮报告"""
        self.linter = Linter(self._resolve_rules(), self.analyzer)
        self._schedule(self.report_warnings)

    def _resolve_rules(self) -> List[Rule]:
        lint_config = self.settings.project_config.lint
        if not lint_config or not lint_config.rules:
            return []
        try:
            return self.registry.get_rules(lint_config.rules)
        except UnknownRuleError as e:
            # TODO: 把配置错误作为诊断报告到项目配置文件上
            logger.warning(f"{e}，本次不启用任何规则")
            return []

    def _on_project_config_change(self, config: ProjectConfig) -> None:
        self.update_linter()

    def _on_file_changes(self, uris: List[DocumentUri]) -> None:
        self._schedule(self.report_warnings)

    def _on_document_close(self, uri: DocumentUri) -> None:
        if not self.settings.analyze_whole_package:
            # 关闭后不再更新该文件的诊断，保留下来只会是过期的警告
            self.publisher.clear(uri)

    def _on_settings_change(self, change: SettingsChange) -> None:
        if change.newer.analyze_whole_package == change.older.analyze_whole_package:
            return
        if change.newer.analyze_whole_package:
            self.publisher.mark_reported(self.documents.keys())
        else:
            self.publisher.clear_reported()
        self._schedule(self.report_warnings)

    # ------------------------------------------------------------------ #
    # 公共操作
    # ------------------------------------------------------------------ #

    async def report_warnings(self) -> None:
        """执行一轮报告周期，lint 失败时向上抛出且不修改已报告集合"""
        linter = self.linter
        if self.settings.analyze_whole_package:
            warnings = await linter.lint_package()
            self.publisher.publish_package(warnings)
            return

        files = []
        for uri in self.documents.keys():
            if not self.converter.is_file_uri(uri):
                logger.debug(f"跳过非本地文件文档: {uri}")
                continue
            files.append(self.converter.get_workspace_path_to_file(uri))
        if not files:
            logger.debug("没有打开的文档，跳过 lint")
            return
        warnings = await linter.lint(files)
        self.publisher.publish_open_documents(warnings)

    async def code_actions(self, params: CodeActionParams) -> List[Command]:
        """textDocument/codeAction"""
        return await self.quick_fixes.get_code_actions(self.linter, params)

    async def get_all_fixes(self) -> WorkspaceEdit:
        """修复整个包的所有警告"""
        return await self.fix_applier.get_all_fixes(self.linter)

    async def get_fixes_for_file(self, uri: DocumentUri) -> List[TextEdit]:
        """只修复指定文件"""
        return await self.fix_applier.get_fixes_for_file(self.linter, uri)

    async def execute_command(self, command: str, arguments: Optional[List[Any]] = None) -> bool:
        """workspace/executeCommand"""
        return await self.commands.execute(command, arguments)

    async def handle_request(self, request: Awaitable[T]) -> T:
        """执行请求，把内部异常转换为协议错误"""
        try:
            return await request
        except ResponseError:
            raise
        except Exception as e:
            logger.exception("请求处理失败")
            raise ResponseError(f"{type(e).__name__}: {e}") from e

    # ------------------------------------------------------------------ #
    # 内部
    # ------------------------------------------------------------------ #

    def _schedule(self, work: Callable[[], Coroutine[Any, Any, None]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("没有运行中的事件循环，本轮 lint 未调度")
            return
        task = loop.create_task(self._run_in_background(work()))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_in_background(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except Exception:
            logger.exception("后台 lint 周期失败")
