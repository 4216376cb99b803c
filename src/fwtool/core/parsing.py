"""
Centralized parsing helpers for command arguments.

Leaf commands import these rather than re-implementing number parsing.
"""


def parse_int(value: str, label: str = "value") -> int:
    """
    Parse an integer argument.

    Accepts:
        - Decimal: "15"
        - Hex with 0x prefix: "0x0f" or "0X0F"

    Raises:
        ValueError: If value cannot be parsed.
    """
    text = value.strip()
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise ValueError(
            f"Invalid {label} '{value}'. Use decimal (15) or hex (0x0f)."
        )
