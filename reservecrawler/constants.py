"""
Source codes understood by the German reserve data portals.
"""

from datetime import date

# Transmission system operators ("uenb") on regelleistung.net
# Format: (code, display_name)
UENB_CODES = [
    ("1", "TransnetBW"),
    ("2", "TenneT"),
    ("3", "Amprion"),
    ("4", "50Hertz"),
    ("6", "Netzregelverbund"),
    ("11", "IGCC"),
]

# Call data types on the regelleistung.net data page
CALL_RESERVE_TYPES = [
    "SRL",
    "MRL",
    "RZ_SALDO",
    "REBAP",
    "ZUSATZMASSNAHMEN",
    "NOTHILFE",
]

# Tender products on the regelleistung.net auction page
# Format: (code, display_name)
AUCTION_PRODUCTS = [
    ("1", "PRL"),
    ("2", "SRL"),
    ("3", "MRL"),
    ("4", "sofort abschaltbare Lasten"),
    ("5", "schnell abschaltbare Lasten"),
    ("6", "Primärregelleistung NL"),
]

UENB_TO_DISPLAY = {code: name for code, name in UENB_CODES}
AUCTION_PRODUCT_TO_DISPLAY = {code: name for code, name in AUCTION_PRODUCTS}

# Oldest data offered by the portals
NEEDS_FIRST_DATE = date(2010, 7, 1)
CALLS_FIRST_DATE = date(2011, 6, 27)

DIRECTIONS = ("POS", "NEG")
TARIFFS = ("HT", "NT")

# Sampling grids
NEEDS_RESOLUTION_SECONDS = 4
CALL_WINDOW_MINUTES = 15
MINUTES_PER_WINDOW = 15


def validate_uenb(uenb) -> str:
    """Return the uenb code as string, raising ValueError for unknown codes."""
    code = str(uenb).strip()
    if code not in UENB_TO_DISPLAY:
        raise ValueError(
            f"Unknown uenb '{uenb}'. Valid codes: "
            + ", ".join(f"{c} ({n})" for c, n in UENB_CODES)
        )
    return code


def validate_call_reserve_type(reserve_type) -> str:
    rl = str(reserve_type).strip().upper()
    if rl not in CALL_RESERVE_TYPES:
        raise ValueError(
            f"Unknown reserve type '{reserve_type}'. Valid types: {', '.join(CALL_RESERVE_TYPES)}"
        )
    return rl


def validate_auction_product(product) -> str:
    code = str(product).strip()
    if code not in AUCTION_PRODUCT_TO_DISPLAY:
        raise ValueError(
            f"Unknown auction product '{product}'. Valid codes: "
            + ", ".join(f"{c} ({n})" for c, n in AUCTION_PRODUCTS)
        )
    return code
