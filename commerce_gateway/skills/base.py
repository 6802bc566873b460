"""定义通用 Skill 抽象，用于统一封装项目中的各类“能力”。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Skill(ABC):
    """所有具体技能的共同接口。

    设计要点：
    - 每个 Skill 都有稳定的 ``name``，与 MCP 工具名一致；
    - ``description`` 用于向调用者暴露用途说明；
    - ``invoke`` 为基于关键字参数的异步调用，返回 JSON 可序列化的文档。
    """

    name: str
    description: str

    @abstractmethod
    async def invoke(self, **kwargs: Any) -> Dict[str, Any]:  # pragma: no cover - 接口定义
        """执行技能主体逻辑，入参全部通过 ``**kwargs`` 传递。"""

    def to_descriptor(self) -> Dict[str, Any]:
        """返回一个通用的元数据描述，可用于构建工具列表等场景。"""
        return {
            "name": self.name,
            "description": self.description,
        }
