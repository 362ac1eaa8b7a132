"""Lint 编排器测试"""

import asyncio
import logging

import pytest

from helpers import FakeAnalyzer, make_warning, replacement, uri
from lintsync.commands import APPLY_ALL_FIXES_COMMAND, APPLY_EDIT_COMMAND
from lintsync.orchestrator import LintOrchestrator
from lintsync.protocol import (
    CodeActionContext,
    CodeActionParams,
    Diagnostic,
    Position,
    Range,
    ResponseError,
    TextDocumentIdentifier,
)
from lintsync.settings import EditorSettings, LintConfig, ProjectConfig, Settings, SettingsChange


class GatedAnalyzer(FakeAnalyzer):
    """整包分析需要手动放行的分析器"""

    def __init__(self, documents):
        super().__init__(documents)
        self.gates = []

    async def analyze_package(self):
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return await super().analyze_package()


def make_orchestrator(analyzer, converter, connection, settings, documents, rule_registry):
    settings.set_project_config(ProjectConfig(lint=LintConfig(rules=["static-rule"])))
    return LintOrchestrator(
        analyzer, converter, connection, settings, documents, rule_registry=rule_registry
    )


@pytest.fixture
def orchestrator(analyzer, converter, connection, settings, documents, rule_registry):
    orchestrator = make_orchestrator(
        analyzer, converter, connection, settings, documents, rule_registry
    )
    yield orchestrator
    orchestrator.dispose()


class TestOpenDocumentsMode:
    """只分析打开文档"""

    @pytest.mark.asyncio
    async def test_open_triggers_lint_of_open_documents(self, orchestrator, documents, rule, analyzer, connection):
        """打开文档后只 lint 打开的文档"""
        rule.warnings = [make_warning("w", "a.js"), make_warning("w", "c.js")]
        documents.open(uri("a.js"), "var a = 1;\n")
        await orchestrator.wait_idle()

        assert analyzer.analyze_calls == [["a.js"]]
        assert analyzer.package_calls == 0
        assert [p.uri for p in connection.published] == [uri("a.js")]

    @pytest.mark.asyncio
    async def test_untitled_document_skipped(self, orchestrator, documents, rule, analyzer, connection):
        """未保存的 untitled 文档不参与 lint，也不影响其他文档"""
        rule.warnings = [make_warning("w", "a.js")]
        documents.open("untitled:Untitled-1", "var x;\n")
        documents.open(uri("a.js"), "var a = 1;\n")
        await orchestrator.wait_idle()

        assert analyzer.analyze_calls == [["a.js"], ["a.js"]]
        assert {p.uri for p in connection.published} == {uri("a.js")}

    @pytest.mark.asyncio
    async def test_no_open_documents(self, orchestrator, analyzer, connection):
        """没有打开的文档时不 lint"""
        orchestrator.start()
        await orchestrator.wait_idle()
        assert analyzer.analyze_calls == []
        assert connection.published == []

    @pytest.mark.asyncio
    async def test_close_clears_immediately(self, orchestrator, documents, rule, connection):
        """关闭文档立即清除其诊断"""
        rule.warnings = [make_warning("w", "a.js")]
        documents.open(uri("a.js"), "")
        await orchestrator.wait_idle()
        connection.reset()

        documents.close(uri("a.js"))
        assert connection.clears_for(uri("a.js")) == 1
        assert orchestrator.pending_tasks == 0


class TestWholePackageMode:
    """整包分析"""

    @pytest.fixture
    def settings(self):
        return Settings(editor_settings=EditorSettings(analyze_whole_package=True))

    @pytest.mark.asyncio
    async def test_fixed_externally_cleared_once(self, orchestrator, documents, rule, connection):
        """a.js 在外部被修复：恰好一次清除，b.js 不受影响"""
        rule.warnings = [
            make_warning("W1", "a.js", fix=[replacement("a.js", 0, 0, 0, 3, "let")])
        ]
        orchestrator.start()
        await orchestrator.wait_idle()
        assert [p.uri for p in connection.published] == [uri("a.js")]
        assert connection.published[0].diagnostics[0].code == "W1"
        connection.reset()

        rule.warnings = []
        documents.notify_watched_files([uri("a.js")])
        await orchestrator.wait_idle()
        assert connection.clears_for(uri("a.js")) == 1
        assert connection.publishes_for(uri("b.js")) == []

        documents.notify_watched_files([uri("a.js")])
        await orchestrator.wait_idle()
        assert connection.clears_for(uri("a.js")) == 1

    @pytest.mark.asyncio
    async def test_identical_cycles(self, orchestrator, documents, rule, connection):
        """相同警告的两轮没有清除"""
        rule.warnings = [make_warning("w", "a.js")]
        orchestrator.start()
        await orchestrator.wait_idle()
        documents.notify_watched_files([uri("b.js")])
        await orchestrator.wait_idle()

        assert [p.uri for p in connection.published] == [uri("a.js"), uri("a.js")]
        assert connection.clears_for(uri("a.js")) == 0

    @pytest.mark.asyncio
    async def test_close_does_not_clear(self, orchestrator, documents, connection):
        """整包模式下关闭文档不清除"""
        documents.open(uri("a.js"), "")
        await orchestrator.wait_idle()
        connection.reset()

        documents.close(uri("a.js"))
        assert connection.published == []

    @pytest.mark.asyncio
    async def test_failed_cycle_keeps_reported_set(self, orchestrator, documents, rule, analyzer, connection, caplog):
        """失败的周期不修改已报告集合，下一轮仍能正确清除"""
        rule.warnings = [make_warning("w", "a.js")]
        orchestrator.start()
        await orchestrator.wait_idle()
        connection.reset()

        analyzer.fail_with = RuntimeError("parse failure")
        with caplog.at_level(logging.ERROR, logger="lintsync.orchestrator"):
            documents.notify_watched_files([uri("a.js")])
            await orchestrator.wait_idle()
        assert "后台 lint 周期失败" in caplog.text
        assert connection.published == []
        assert orchestrator.publisher.reported_uris == {uri("a.js")}

        analyzer.fail_with = None
        rule.warnings = []
        documents.notify_watched_files([uri("a.js")])
        await orchestrator.wait_idle()
        assert connection.clears_for(uri("a.js")) == 1

    @pytest.mark.asyncio
    async def test_report_warnings_propagates(self, orchestrator, analyzer):
        """直接调用报告周期时异常向上抛出"""
        analyzer.fail_with = RuntimeError("parse failure")
        with pytest.raises(RuntimeError):
            await orchestrator.report_warnings()

    @pytest.mark.asyncio
    async def test_overlapping_cycles_clear_once(
        self, converter, connection, settings, documents, rule, rule_registry
    ):
        """交错完成的两个周期只清除一次"""
        analyzer = GatedAnalyzer({"a.js": "", "b.js": ""})
        orchestrator = make_orchestrator(
            analyzer, converter, connection, settings, documents, rule_registry
        )
        orchestrator.publisher.publish_package([make_warning("w", "a.js")])
        connection.reset()

        rule.warnings = []
        documents.notify_watched_files([uri("a.js")])
        documents.notify_watched_files([uri("b.js")])
        for _ in range(5):
            await asyncio.sleep(0)
        assert len(analyzer.gates) == 2

        # 后开始的周期先完成
        analyzer.gates[1].set()
        for _ in range(5):
            await asyncio.sleep(0)
        analyzer.gates[0].set()
        await orchestrator.wait_idle()

        assert connection.clears_for(uri("a.js")) == 1
        assert orchestrator.publisher.reported_uris == frozenset()
        orchestrator.dispose()


class TestModeToggle:
    """分析模式切换"""

    @pytest.mark.asyncio
    async def test_into_whole_package(self, orchestrator, documents, settings, rule, connection):
        """a.js 打开且无警告，c.js 未打开但有警告"""
        rule.warnings = [make_warning("w", "c.js")]
        documents.open(uri("a.js"), "")
        await orchestrator.wait_idle()
        assert connection.published == []

        settings.update({"analyzeWholePackage": True})
        await orchestrator.wait_idle()
        assert [d.code for d in connection.publishes_for(uri("c.js"))[0].diagnostics] == ["w"]
        assert all(not p.diagnostics for p in connection.publishes_for(uri("a.js")))
        assert connection.clears_for(uri("a.js")) == 1

        documents.notify_watched_files([uri("c.js")])
        await orchestrator.wait_idle()
        assert connection.clears_for(uri("a.js")) == 1
        assert connection.clears_for(uri("c.js")) == 0

    @pytest.mark.asyncio
    async def test_into_whole_package_clears_open_only_warnings(self, orchestrator, documents, settings, rule, connection):
        """打开文档在旧模式下报告的诊断，在整包模式下消失时被清除"""
        rule.warnings = [make_warning("w", "a.js")]
        documents.open(uri("a.js"), "")
        await orchestrator.wait_idle()
        assert len(connection.publishes_for(uri("a.js"))) == 1

        rule.warnings = []
        settings.update({"analyzeWholePackage": True})
        await orchestrator.wait_idle()
        assert connection.clears_for(uri("a.js")) == 1

    @pytest.mark.asyncio
    async def test_out_of_whole_package(self, orchestrator, documents, settings, rule, analyzer, connection):
        """离开整包模式时清除所有已报告的文件"""
        settings.update({"analyzeWholePackage": True})
        rule.warnings = [make_warning("w", "a.js"), make_warning("w", "c.js")]
        await orchestrator.wait_idle()
        documents.notify_watched_files([uri("a.js")])
        await orchestrator.wait_idle()
        connection.reset()

        settings.update({"analyzeWholePackage": False})
        assert connection.clears_for(uri("a.js")) == 1
        assert connection.clears_for(uri("c.js")) == 1
        await orchestrator.wait_idle()
        assert len(connection.published) == 2
        assert orchestrator.publisher.reported_uris == frozenset()

    @pytest.mark.asyncio
    async def test_unrelated_setting_change(self, orchestrator, settings, connection):
        """模式未变化时不触发"""
        settings.change_stream.emit(SettingsChange(newer=EditorSettings(), older=EditorSettings()))
        assert orchestrator.pending_tasks == 0
        assert connection.published == []


class TestProjectConfig:
    """项目配置变更"""

    @pytest.mark.asyncio
    async def test_unknown_rule_falls_back_to_empty(self, orchestrator, documents, settings, rule, connection, caplog):
        """未知规则名退回空规则集，不报告给编辑器"""
        rule.warnings = [make_warning("w", "a.js")]
        documents.open(uri("a.js"), "")
        await orchestrator.wait_idle()
        connection.reset()

        with caplog.at_level(logging.WARNING, logger="lintsync.orchestrator"):
            settings.set_project_config(
                ProjectConfig(lint=LintConfig(rules=["static-rule", "no-such-rule"]))
            )
            await orchestrator.wait_idle()
        assert orchestrator.linter.rules == []
        assert "no-such-rule" in caplog.text
        assert connection.published == []

    @pytest.mark.asyncio
    async def test_config_change_rebuilds_and_reports(self, orchestrator, documents, settings, rule, connection):
        """配置变更后重建规则集并跑一轮"""
        rule.warnings = [make_warning("w", "a.js")]
        settings.set_project_config(ProjectConfig())
        documents.open(uri("a.js"), "")
        await orchestrator.wait_idle()
        assert orchestrator.linter.rules == []
        assert connection.published == []

        settings.set_project_config(ProjectConfig(lint=LintConfig(rules=["static-rule"])))
        await orchestrator.wait_idle()
        assert [r.code for r in orchestrator.linter.rules] == ["static-rule"]
        assert [p.uri for p in connection.published] == [uri("a.js")]


class TestRequests:
    """公共请求"""

    @pytest.mark.asyncio
    async def test_code_actions(self, orchestrator, rule):
        """代码动作"""
        rule.warnings = [make_warning("w", "a.js", fix=[replacement("a.js", 0, 0, 0, 1, "x")])]
        lsp_range = Range(Position(0, 0), Position(0, 1))
        params = CodeActionParams(
            textDocument=TextDocumentIdentifier(uri("a.js")),
            range=lsp_range,
            context=CodeActionContext(diagnostics=[Diagnostic(range=lsp_range, message="m")]),
        )
        commands = await orchestrator.code_actions(params)
        assert [c.title for c in commands] == ["Quick fix the 'w' warning"]

    @pytest.mark.asyncio
    async def test_handle_request_wraps_errors(self, orchestrator, analyzer):
        """lint 失败转换为协议错误"""
        analyzer.fail_with = RuntimeError("analysis failed")
        with pytest.raises(ResponseError) as exc_info:
            await orchestrator.handle_request(orchestrator.get_fixes_for_file(uri("a.js")))
        assert "analysis failed" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_handle_request_passes_result(self, orchestrator, rule):
        """成功时原样返回"""
        rule.warnings = [make_warning("w", "a.js", fix=[replacement("a.js", 0, 0, 0, 1, "x")])]
        edits = await orchestrator.handle_request(orchestrator.get_fixes_for_file(uri("a.js")))
        assert [e.newText for e in edits] == ["x"]

    @pytest.mark.asyncio
    async def test_apply_all_fixes_command(self, orchestrator, rule, connection):
        """applyAllFixes 命令"""
        rule.warnings = [
            make_warning("w", "a.js", fix=[replacement("a.js", 0, 0, 0, 1, "x")]),
            make_warning("w", "b.js", fix=[replacement("b.js", 0, 0, 0, 1, "y")]),
        ]
        assert await orchestrator.execute_command(APPLY_ALL_FIXES_COMMAND)
        assert sorted(connection.applied[0].changes) == [uri("a.js"), uri("b.js")]

    def test_server_capabilities(self, orchestrator):
        """声明所有可执行命令"""
        capabilities = orchestrator.server_capabilities
        assert capabilities["codeActionProvider"] is True
        assert capabilities["executeCommandProvider"]["commands"] == [
            APPLY_EDIT_COMMAND,
            APPLY_ALL_FIXES_COMMAND,
        ]


class TestDispose:
    """释放"""

    @pytest.mark.asyncio
    async def test_dispose_detaches_listeners(self, orchestrator, documents, settings, connection):
        """释放后不再响应事件"""
        orchestrator.dispose()
        documents.open(uri("a.js"), "")
        settings.update({"analyzeWholePackage": True})
        assert orchestrator.pending_tasks == 0
        assert documents.file_changes.listener_count == 0


class TestWithoutEventLoop:
    """事件循环外触发"""

    def test_trigger_outside_loop_logs_warning(self, orchestrator, settings, caplog):
        """没有运行中的事件循环时记录警告，不创建任务"""
        with caplog.at_level(logging.WARNING, logger="lintsync.orchestrator"):
            settings.update({"analyzeWholePackage": True})
        assert orchestrator.pending_tasks == 0
        assert "没有运行中的事件循环" in caplog.text
