"""文档跟踪

记录编辑器中打开的文档，并把打开、修改、关闭以及磁盘文件变化转成事件。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .events import EventStream
from .protocol import DocumentUri

logger = logging.getLogger(__name__)


@dataclass
class TrackedDocument:
    """打开的文档"""

    uri: DocumentUri
    text: str
    version: int = 0


class DocumentTracker:
    """打开文档管理器"""

    def __init__(self):
        self._documents: Dict[DocumentUri, TrackedDocument] = {}
        self.file_changes: EventStream[List[DocumentUri]] = EventStream()
        self.close_stream: EventStream[DocumentUri] = EventStream()

    def open(self, uri: DocumentUri, text: str, version: int = 0) -> None:
        """textDocument/didOpen"""
        self._documents[uri] = TrackedDocument(uri=uri, text=text, version=version)
        self.file_changes.emit([uri])

    def change(self, uri: DocumentUri, text: str, version: Optional[int] = None) -> None:
        """textDocument/didChange（全量同步）"""
        document = self._documents.get(uri)
        if document is None:
            logger.warning(f"修改未打开的文档: {uri}")
            document = TrackedDocument(uri=uri, text=text)
            self._documents[uri] = document
        document.text = text
        document.version = version if version is not None else document.version + 1
        self.file_changes.emit([uri])

    def close(self, uri: DocumentUri) -> None:
        """textDocument/didClose"""
        if self._documents.pop(uri, None) is None:
            return
        self.close_stream.emit(uri)

    def notify_watched_files(self, uris: Sequence[DocumentUri]) -> None:
        """workspace/didChangeWatchedFiles"""
        if uris:
            self.file_changes.emit(list(uris))

    def get(self, uri: DocumentUri) -> Optional[TrackedDocument]:
        return self._documents.get(uri)

    def keys(self) -> List[DocumentUri]:
        """当前打开的文档 URI"""
        return list(self._documents)

    def __contains__(self, uri: DocumentUri) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)
