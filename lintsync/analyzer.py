"""工作区分析器

从磁盘（以及编辑器中尚未保存的打开文档）读取源文件，生成 Analysis 快照。
不做任何语法解析，规则自行处理文本。
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .converter import AnalyzerLSPConverter
from .documents import DocumentTracker
from .model import Analysis
from .settings import Settings

logger = logging.getLogger(__name__)


class WorkspaceAnalyzer:
    """基于工作区目录的分析器"""

    def __init__(
        self,
        workspace_root: Union[str, Path],
        settings: Settings,
        documents: Optional[DocumentTracker] = None,
        converter: Optional[AnalyzerLSPConverter] = None,
    ):
        self.workspace_root = Path(workspace_root).expanduser().resolve()
        self.settings = settings
        self.documents = documents
        self.converter = converter or AnalyzerLSPConverter(self.workspace_root)

    async def analyze(self, files: Sequence[str]) -> Analysis:
        """分析指定文件，读取失败直接抛出"""
        documents: Dict[str, str] = {}
        for path in files:
            documents[path] = await self.load(path)
        return Analysis(documents=documents)

    async def analyze_package(self) -> Analysis:
        """分析包内所有源文件"""
        loop = asyncio.get_running_loop()
        files = await loop.run_in_executor(None, self.list_package_files)
        logger.debug(f"包内共 {len(files)} 个源文件")
        return await self.analyze(files)

    async def load(self, path: str) -> str:
        """读取文件，打开的文档优先"""
        if self.documents is not None:
            document = self.documents.get(self.converter.get_uri_for_local_path(path))
            if document is not None:
                return document.text
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_file, path)

    def list_package_files(self) -> List[str]:
        """按 sources 模式列出包内文件（跳过隐藏目录）"""
        found = set()
        for pattern in self.settings.project_config.sources:
            for file_path in self.workspace_root.glob(pattern):
                if not file_path.is_file():
                    continue
                relative = file_path.relative_to(self.workspace_root)
                if any(part.startswith(".") for part in relative.parts):
                    continue
                found.add(relative.as_posix())
        return sorted(found)

    def _read_file(self, path: str) -> str:
        with open(self.workspace_root / path, "r", encoding="utf-8") as f:
            return f.read()
