"""快速修复命令生成

为请求范围内带修复或编辑动作的警告生成命令。
"""

from __future__ import annotations

from typing import List

from .commands import APPLY_EDIT_COMMAND
from .converter import AnalyzerLSPConverter
from .linter import Linter
from .model import Edit, is_range_inside
from .protocol import CodeActionParams, Command


class QuickFixProvider:
    """代码动作提供者"""

    def __init__(self, converter: AnalyzerLSPConverter):
        self.converter = converter

    async def get_code_actions(self, linter: Linter, params: CodeActionParams) -> List[Command]:
        commands: List[Command] = []
        if not params.context.diagnostics:
            # 只支持针对警告的代码动作，没有诊断就不必 lint
            return commands

        path = self.converter.get_workspace_path_to_file(params.textDocument)
        warnings = await linter.lint([path])
        requested_range = self.converter.convert_l_range_to_p(params.range, params.textDocument)

        for warning in warnings:
            if not (warning.fix or warning.has_edit_action):
                continue
            if not is_range_inside(warning.source_range, requested_range):
                continue
            if warning.fix:
                commands.append(
                    self.create_apply_edit_command(
                        f"Quick fix the '{warning.code}' warning", warning.fix
                    )
                )
            for action in warning.actions or ():
                if action.kind != "edit":
                    continue
                # 只取第一行
                title = action.description.split("\n")[0]
                commands.append(self.create_apply_edit_command(title, action.edit))
        return commands

    def create_apply_edit_command(self, title: str, edit: Edit) -> Command:
        return Command(
            title=title,
            command=APPLY_EDIT_COMMAND,
            arguments=[self.converter.edit_to_workspace_edit(edit).to_dict()],
        )
