"""从生成服务的文本回答中提取图片地址."""
import re
from typing import Optional

URL_PATTERN = re.compile(r"https?://[^\s]+")

# 默认不裁剪：回答中紧跟 URL 的标点会被一并匹配
TRAILING_PUNCTUATION = ".,;:!?)]}>'\""


def extract_first_url(text: Optional[str], trim_punctuation: bool = False) -> Optional[str]:
    """
    提取文本中的第一个 http(s) 地址.

    Args:
        text: 任意文本，可以为空
        trim_punctuation: 是否去掉地址末尾的常见标点

    Returns:
        Optional[str]: 第一个匹配的地址，没有匹配时返回 None
    """
    if not text:
        return None

    match = URL_PATTERN.search(text)
    if not match:
        return None

    url = match.group(0)
    if trim_punctuation:
        url = url.rstrip(TRAILING_PUNCTUATION)
        # 只剩协议头时视为没有地址
        if not URL_PATTERN.fullmatch(url):
            return None
    return url
