"""设置管理

两类配置：
- 编辑器设置 (workspace/didChangeConfiguration)，决定分析模式
- 项目配置文件 (YAML)，决定启用的 lint 规则和包的源文件范围
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .events import EventStream

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILENAME = "lintsync.yaml"


class EditorSettings(BaseModel):
    """编辑器设置"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    analyze_whole_package: bool = Field(default=False, alias="analyzeWholePackage")


class LintConfig(BaseModel):
    """lint 配置段"""

    rules: List[str] = Field(default_factory=list)


class ProjectConfig(BaseModel):
    """项目配置"""

    lint: Optional[LintConfig] = None
    sources: List[str] = Field(default_factory=lambda: ["**/*"])


@dataclass
class SettingsChange:
    """编辑器设置变更"""

    newer: EditorSettings
    older: EditorSettings


def _hash_config(data: Dict[str, Any]) -> str:
    serialized = yaml.dump(data, sort_keys=True)
    return hashlib.md5(serialized.encode()).hexdigest()


class Settings:
    """设置

    使用示例:
    ```python
    settings = Settings()
    settings.change_stream.listen(lambda change: print(change.newer))
    settings.update({"analyzeWholePackage": True})
    settings.load_project_config(workspace_root)
    ```
    """

    def __init__(
        self,
        editor_settings: Optional[EditorSettings] = None,
        project_config: Optional[ProjectConfig] = None,
    ):
        self._editor_settings = editor_settings or EditorSettings()
        self._project_config = project_config or ProjectConfig()
        self._project_config_hash: Optional[str] = None
        self.project_config_error: Optional[str] = None

        self.change_stream: EventStream[SettingsChange] = EventStream()
        self.project_config_change_stream: EventStream[ProjectConfig] = EventStream()

    @property
    def editor_settings(self) -> EditorSettings:
        return self._editor_settings

    @property
    def analyze_whole_package(self) -> bool:
        return self._editor_settings.analyze_whole_package

    @property
    def project_config(self) -> ProjectConfig:
        return self._project_config

    def update(self, data: Dict[str, Any]) -> EditorSettings:
        """更新编辑器设置，有变化时通知

        Raises:
            pydantic.ValidationError: 设置格式不合法
        """
        newer = EditorSettings.model_validate(data)
        older = self._editor_settings
        if newer == older:
            return older
        self._editor_settings = newer
        logger.debug(f"编辑器设置变更: {older} -> {newer}")
        self.change_stream.emit(SettingsChange(newer=newer, older=older))
        return newer

    def set_project_config(self, config: ProjectConfig) -> None:
        """直接设置项目配置并通知"""
        self._project_config = config
        self._project_config_hash = _hash_config(config.model_dump())
        self.project_config_error = None
        self.project_config_change_stream.emit(config)

    def load_project_config(self, path: Union[str, Path]) -> ProjectConfig:
        """从 YAML 文件加载项目配置

        path 为目录时读取其中的 lintsync.yaml。
        文件缺失或不合法时退回默认配置，错误信息记录在 project_config_error。
        内容未变化时不通知。
        """
        path = Path(path).expanduser()
        if path.is_dir():
            path = path / PROJECT_CONFIG_FILENAME
        error: Optional[str] = None
        config = ProjectConfig()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("配置文件顶层必须是映射")
            config = ProjectConfig.model_validate(data)
        except FileNotFoundError:
            logger.debug(f"项目配置不存在: {path}")
        except (yaml.YAMLError, ValidationError, ValueError) as e:
            error = f"{path}: {e}"
            logger.warning(f"项目配置无效，使用默认配置: {error}")
            config = ProjectConfig()

        self.project_config_error = error
        config_hash = _hash_config(config.model_dump())
        if config_hash == self._project_config_hash:
            return self._project_config

        self._project_config = config
        self._project_config_hash = config_hash
        self.project_config_change_stream.emit(config)
        return config
