"""规则注册表

按名称查找 lint 规则。名称既可以是单条规则的 code，也可以是规则集合名。
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .interfaces import Rule

logger = logging.getLogger(__name__)


class UnknownRuleError(KeyError):
    """未知的规则或规则集合名"""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"未知的 lint 规则: {self.name}"


class RuleRegistry:
    """规则注册表"""

    def __init__(self):
        self._rules: Dict[str, Rule] = {}
        self._collections: Dict[str, List[str]] = {}

    def register(self, rule: Rule) -> Rule:
        """注册规则"""
        if rule.code in self._rules:
            logger.warning(f"规则 '{rule.code}' 已存在，将替换")
        self._rules[rule.code] = rule
        return rule

    def register_collection(self, name: str, rule_codes: Sequence[str]) -> None:
        """注册规则集合

        集合中可以引用单条规则，也可以引用其他集合。
        """
        if name in self._rules:
            raise ValueError(f"集合名与规则重名: {name}")
        self._collections[name] = list(rule_codes)

    def get(self, code: str) -> Optional[Rule]:
        return self._rules.get(code)

    def get_rules(self, names: Iterable[str]) -> List[Rule]:
        """解析规则名列表，返回去重后的规则

        Raises:
            UnknownRuleError: 任一名称无法解析
        """
        resolved: Dict[str, Rule] = {}
        for name in names:
            for rule in self._resolve(name, seen=set()):
                resolved.setdefault(rule.code, rule)
        return list(resolved.values())

    def _resolve(self, name: str, seen: set) -> List[Rule]:
        if name in self._rules:
            return [self._rules[name]]
        if name not in self._collections:
            raise UnknownRuleError(name)
        if name in seen:
            # 集合循环引用
            return []
        seen.add(name)
        rules: List[Rule] = []
        for child in self._collections[name]:
            rules.extend(self._resolve(child, seen))
        return rules

    @property
    def codes(self) -> List[str]:
        """已注册的规则 code"""
        return sorted(self._rules)

    @property
    def collections(self) -> List[str]:
        """已注册的集合名"""
        return sorted(self._collections)

    def __contains__(self, name: str) -> bool:
        return name in self._rules or name in self._collections

    def __len__(self) -> int:
        return len(self._rules)


# 全局规则注册表
registry = RuleRegistry()
