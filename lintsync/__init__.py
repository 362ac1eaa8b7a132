"""
lintsync - 增量诊断同步与修复编排

位于 lint 引擎与编辑器协议连接之间：
决定何时 lint 哪些文件，对比上一轮已报告的诊断并恰好清除一次，
把警告转成编辑器命令，并在多文件间无冲突地应用修复。
"""

__version__ = "0.1.0"

from .analyzer import WorkspaceAnalyzer
from .code_actions import QuickFixProvider
from .commands import (
    APPLY_ALL_FIXES_COMMAND,
    APPLY_EDIT_COMMAND,
    CommandHandler,
    UnknownCommandError,
)
from .converter import AnalyzerLSPConverter
from .documents import DocumentTracker
from .edits import EditResult, apply_edits, make_loader
from .events import Disposable, EventStream
from .fixes import FixApplier
from .interfaces import Analyzer, Connection, Loader, Rule
from .linter import Linter
from .model import (
    Action,
    Analysis,
    Edit,
    LintWarning,
    Replacement,
    Severity,
    SourcePosition,
    SourceRange,
    WarningList,
    is_position_inside_range,
    is_range_inside,
)
from .orchestrator import LintOrchestrator
from .protocol import ResponseError
from .publisher import DiagnosticPublisher
from .rules import RuleRegistry, UnknownRuleError, registry
from .settings import EditorSettings, ProjectConfig, Settings, SettingsChange

__all__ = [
    # Model
    "Action",
    "Analysis",
    "Edit",
    "LintWarning",
    "Replacement",
    "Severity",
    "SourcePosition",
    "SourceRange",
    "WarningList",
    "is_position_inside_range",
    "is_range_inside",
    # Interfaces
    "Analyzer",
    "Connection",
    "Loader",
    "Rule",
    # Rules
    "RuleRegistry",
    "UnknownRuleError",
    "registry",
    # Lint
    "Linter",
    "WorkspaceAnalyzer",
    # Edits
    "EditResult",
    "apply_edits",
    "make_loader",
    # Settings
    "EditorSettings",
    "ProjectConfig",
    "Settings",
    "SettingsChange",
    # Events
    "Disposable",
    "EventStream",
    "DocumentTracker",
    # Orchestration
    "AnalyzerLSPConverter",
    "DiagnosticPublisher",
    "QuickFixProvider",
    "FixApplier",
    "LintOrchestrator",
    "ResponseError",
    # Commands
    "APPLY_EDIT_COMMAND",
    "APPLY_ALL_FIXES_COMMAND",
    "CommandHandler",
    "UnknownCommandError",
]
