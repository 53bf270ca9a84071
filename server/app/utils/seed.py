"""默认消费分类 - 与记账模块的预置分类保持一致"""


PRESET_CATEGORIES: list[str] = [
    "Groceries",
    "Meat & Seafood",
    "Dairy & Eggs",
    "Bakery",
    "Beverages",
    "Snacks",
    "Frozen Foods",
    "Health & Beauty",
    "Household",
    "Other",
]

# 预算分类只做软校验：不在此集合中仅记录告警
DEFAULT_EXPENSE_CATEGORIES: frozenset[str] = frozenset(PRESET_CATEGORIES)
