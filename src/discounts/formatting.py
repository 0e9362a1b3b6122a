from src.config import Config


def format_money(amount: int) -> str:
    """Render an integer amount the way shoppers read prices, e.g. 100000 -> "100.000đ"."""
    grouped = f"{int(amount):,}".replace(",", Config.CURRENCY_THOUSANDS_SEPARATOR)
    return f"{grouped}{Config.CURRENCY_SYMBOL}"
