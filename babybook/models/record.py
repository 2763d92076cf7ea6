"""
成长记录数据模型
定义喂奶、睡眠、体温等记录的结构
记录值按记录类型拆分为不同的模型，而不是一个松散的字典
"""

from datetime import datetime
from typing import Optional, Union, Literal, Dict, Annotated
from pydantic import BaseModel, Field, model_validator


RecordType = Literal[
    "milk",         # ミルク
    "breast",       # 母乳
    "baby_food",    # 離乳食
    "snack",        # おやつ
    "poop",         # うんち
    "pee",          # おしっこ
    "sleep",        # 睡眠
    "bath",         # お風呂
    "walk",         # さんぽ
    "temperature",  # 体温
    "medicine",     # くすり
    "condition",    # 体調
]


class MilkValue(BaseModel):
    """ミルク：毫升数"""
    kind: Literal["milk"] = "milk"
    amount_ml: Optional[float] = None


class BreastValue(BaseModel):
    """母乳：左右分钟数"""
    kind: Literal["breast"] = "breast"
    left_minutes: Optional[int] = None
    right_minutes: Optional[int] = None


class SleepValue(BaseModel):
    """睡眠：入睡 / 醒来"""
    kind: Literal["sleep"] = "sleep"
    state: Optional[Literal["asleep", "awake"]] = None


class TemperatureValue(BaseModel):
    """体温（摄氏度）"""
    kind: Literal["temperature"] = "temperature"
    celsius: Optional[float] = None


class ConditionValue(BaseModel):
    """体调：咳嗽、皮疹、呕吐、受伤"""
    kind: Literal["condition"] = "condition"
    condition: Optional[Literal["cough", "rash", "vomit", "injury"]] = None


class EmptyValue(BaseModel):
    """没有附加数据的记录"""
    kind: Literal["empty"] = "empty"


RecordValue = Annotated[
    Union[MilkValue, BreastValue, SleepValue, TemperatureValue, ConditionValue, EmptyValue],
    Field(discriminator="kind"),
]


# 数据库原始字段 -> 模型字段
_RAW_VALUE_KEYS: Dict[str, Dict[str, str]] = {
    "milk": {"amount": "amount_ml"},
    "breast": {"left_minutes": "left_minutes", "right_minutes": "right_minutes"},
    "sleep": {"sleep_type": "state"},
    "temperature": {"temperature": "celsius"},
    "condition": {"condition_type": "condition"},
}


class EventRecord(BaseModel):
    """成长记录模型"""

    type: RecordType
    recorded_at: datetime
    value: RecordValue = Field(default_factory=EmptyValue)
    memo: Optional[str] = None

    model_config = {"from_attributes": True, "frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _build_value(cls, data):
        """
        根据记录类型把数据库中的 value 字典转换为对应的模型

        Args:
            data: 原始输入

        Returns:
            value 已经带上 kind 的输入
        """
        if not isinstance(data, dict):
            return data

        raw = data.get("value")
        if isinstance(raw, BaseModel) or (isinstance(raw, dict) and "kind" in raw):
            return data

        mapping = _RAW_VALUE_KEYS.get(data.get("type"))
        if mapping is None:
            return {**data, "value": {"kind": "empty"}}

        raw = raw or {}
        payload = {"kind": data["type"]}
        for raw_key, field_name in mapping.items():
            if raw.get(raw_key) is not None:
                payload[field_name] = raw[raw_key]
            elif raw.get(field_name) is not None:
                payload[field_name] = raw[field_name]

        return {**data, "value": payload}
