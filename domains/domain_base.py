# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: DomainModel 基类与公共工具（统一配置/时间戳）

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


class DomainModel(BaseModel):
    # 允许字段名包含 model_*，避免 pydantic protected namespace 告警
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    def to_dict(self, *, exclude_none: bool = False, by_alias: bool = False) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=exclude_none, by_alias=by_alias)


class FrozenDomainModel(DomainModel):
    """Immutable domain value: refreshes build a new instance instead of mutating."""

    model_config = ConfigDict(from_attributes=True, protected_namespaces=(), frozen=True)
