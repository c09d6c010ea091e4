"""请求构造 -- 纯函数，无副作用

prompt 包装为单条 user 内容，附带已解析的生成配置与固定的四项安全阈值。
空 prompt 同样构造请求，校验由 validate_prompt 负责。
"""

import json

from .models import GenerationOptions, SafetySetting

BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"

# 固定安全策略，调用方不可配置
SAFETY_SETTINGS: tuple[SafetySetting, ...] = (
    SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold=BLOCK_MEDIUM_AND_ABOVE),
    SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold=BLOCK_MEDIUM_AND_ABOVE),
    SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold=BLOCK_MEDIUM_AND_ABOVE),
    SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold=BLOCK_MEDIUM_AND_ABOVE),
)


def build_request(prompt: str, options: GenerationOptions | None = None) -> dict:
    """构造 generateContent 请求体

    Args:
        prompt: 用户 prompt（不做校验）
        options: 生成参数，None 时全部取默认值

    Returns:
        可直接 JSON 序列化的请求 dict
    """
    config = (options or GenerationOptions()).resolved()
    return {
        "contents": [
            {
                "role": "user",
                "parts": [{"text": prompt}],
            }
        ],
        "generationConfig": config.to_wire(),
        "safetySettings": [s.model_dump() for s in SAFETY_SETTINGS],
    }


def serialize_request(payload: dict) -> bytes:
    """紧凑 UTF-8 JSON 编码，发送与 request_size 统计共用同一份字节"""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
