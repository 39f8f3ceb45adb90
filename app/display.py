"""
Display Metadata

Labels, icons and colors for the UI. Kept out of the core models so the
ledger never depends on presentation.
"""

from src.models.ledger import AssetType, TransactionCategory


ASSET_TYPE_DISPLAY: dict[AssetType, dict[str, str]] = {
    AssetType.CASH: {"label": "Cash", "icon": "💵", "color": "#10b981"},
    AssetType.SAVINGS: {"label": "Savings", "icon": "🏦", "color": "#3b82f6"},
    AssetType.BOND: {"label": "Bonds", "icon": "📜", "color": "#6366f1"},
    AssetType.STOCK: {"label": "Stocks", "icon": "📈", "color": "#ef4444"},
    AssetType.CRYPTO: {"label": "Crypto", "icon": "🪙", "color": "#f59e0b"},
    AssetType.CAR: {"label": "Car", "icon": "🚗", "color": "#64748b"},
    AssetType.REAL_ESTATE: {"label": "Real estate", "icon": "🏠", "color": "#8b5cf6"},
    AssetType.COMMODITY: {"label": "Commodities", "icon": "🥇", "color": "#eab308"},
    AssetType.LOAN: {"label": "Loan", "icon": "💳", "color": "#f43f5e"},
}

CATEGORY_DISPLAY: dict[TransactionCategory, dict[str, str]] = {
    TransactionCategory.FOOD: {"label": "Food", "icon": "🍽️", "color": "#f97316"},
    TransactionCategory.TRANSPORT: {"label": "Transport", "icon": "🚌", "color": "#3b82f6"},
    TransactionCategory.SHOPPING: {"label": "Shopping", "icon": "🛍️", "color": "#ec4899"},
    TransactionCategory.LEISURE: {"label": "Leisure", "icon": "🎬", "color": "#a855f7"},
    TransactionCategory.HEALTH: {"label": "Health", "icon": "🩺", "color": "#ef4444"},
    TransactionCategory.HOUSING: {"label": "Housing & telecom", "icon": "🏠", "color": "#f59e0b"},
    TransactionCategory.HOUSEHOLD: {"label": "Household", "icon": "🧴", "color": "#eab308"},
    TransactionCategory.SALARY: {"label": "Salary", "icon": "💰", "color": "#22c55e"},
    TransactionCategory.INVESTMENT: {"label": "Investment", "icon": "📊", "color": "#6366f1"},
    TransactionCategory.OTHER: {"label": "Other", "icon": "❔", "color": "#6b7280"},
}


def asset_type_label(asset_type: AssetType) -> str:
    meta = ASSET_TYPE_DISPLAY[asset_type]
    return f"{meta['icon']} {meta['label']}"


def category_label(category: TransactionCategory) -> str:
    meta = CATEGORY_DISPLAY[category]
    return f"{meta['icon']} {meta['label']}"


def format_amount(value: float) -> str:
    return f"{value:,.0f}"


def format_gain_rate(rate: float) -> str:
    """Signed percentage, e.g. '+12.5%'."""
    return f"{rate:+.1f}%"
