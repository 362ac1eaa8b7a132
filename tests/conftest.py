"""pytest 配置"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录和测试目录到 Python 路径
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))
sys.path.insert(0, str(Path(__file__).parent))

from helpers import WORKSPACE_ROOT, FakeAnalyzer, RecordingConnection, StaticRule  # noqa: E402
from lintsync.converter import AnalyzerLSPConverter  # noqa: E402
from lintsync.documents import DocumentTracker  # noqa: E402
from lintsync.rules import RuleRegistry  # noqa: E402
from lintsync.settings import Settings  # noqa: E402


@pytest.fixture
def converter():
    return AnalyzerLSPConverter(WORKSPACE_ROOT)


@pytest.fixture
def connection():
    return RecordingConnection()


@pytest.fixture
def analyzer():
    return FakeAnalyzer(
        {
            "a.js": "var a = 1;\nvar b = 2;\n",
            "b.js": "let c = 3;\n",
            "c.js": "const d = 4;\n",
        }
    )


@pytest.fixture
def rule():
    return StaticRule("static-rule")


@pytest.fixture
def rule_registry(rule):
    registry = RuleRegistry()
    registry.register(rule)
    return registry


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def documents():
    return DocumentTracker()
