"""编辑器命令

代码动作生成的命令通过 workspace/executeCommand 回到这里执行。
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from .interfaces import Connection
from .protocol import WorkspaceEdit

logger = logging.getLogger(__name__)

APPLY_EDIT_COMMAND = "lintsync/applyEdit"
APPLY_ALL_FIXES_COMMAND = "lintsync/applyAllFixes"

ALL_COMMANDS = [APPLY_EDIT_COMMAND, APPLY_ALL_FIXES_COMMAND]


class UnknownCommandError(Exception):
    """未知命令"""

    pass


class CommandHandler:
    """命令执行器"""

    def __init__(
        self,
        connection: Connection,
        get_all_fixes: Callable[[], Awaitable[WorkspaceEdit]],
    ):
        self.connection = connection
        self._get_all_fixes = get_all_fixes

    async def execute(self, command: str, arguments: Optional[List[Any]] = None) -> bool:
        """执行命令，返回编辑器是否接受了编辑"""
        if command == APPLY_EDIT_COMMAND:
            if not arguments:
                raise ValueError(f"{command} 缺少编辑参数")
            edit = WorkspaceEdit.from_dict(arguments[0])
        elif command == APPLY_ALL_FIXES_COMMAND:
            edit = await self._get_all_fixes()
        else:
            raise UnknownCommandError(command)

        if not edit.changes:
            logger.info(f"{command}: 没有可应用的编辑")
            return True

        applied = await self.connection.apply_edit(edit)
        if not applied:
            logger.warning(f"{command}: 编辑器拒绝了编辑")
        return applied
