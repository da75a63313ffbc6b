"""
相似度匹配

使用编辑距离判断查询词与搜索结果标题/slug 的接近程度。
"""

import jellyfish

from minebrew.models import SearchResult

# 过滤搜索结果时允许的最大编辑距离
LENIENCY = 2


def distance(query: str, hit: SearchResult) -> int:
    """查询词到标题或 slug 的最小编辑距离，比较前统一转为小写"""
    q = query.lower()
    return min(
        jellyfish.levenshtein_distance(q, hit.title.lower()),
        jellyfish.levenshtein_distance(q, hit.slug.lower()),
    )


def matches(query: str, hit: SearchResult, leniency: int = LENIENCY) -> bool:
    return distance(query, hit) <= leniency
