"""
Closed vocabulary of route checkpoints and fuel-ledger columns.

Every fixed checkpoint belongs to one journey direction and feeds exactly
one liter column on a FuelRecord. Custom checkpoints (unlisted stations)
only carry a direction; their column is chosen per entry.
"""

GOING = "going"
RETURNING = "returning"

DIRECTION_CHOICES = [
    (GOING, "Going"),
    (RETURNING, "Returning"),
]

# ---------- Ledger columns ----------
# Yard allocations are credited to the journey (stored positive)
YARD_COLUMNS = ("mmsa_yard", "tanga_yard", "dar_yard")

# Yards that dispense fuel, and the column each one credits
YARDS = {
    "DAR YARD": "dar_yard",
    "TANGA YARD": "tanga_yard",
    "MMSA YARD": "mmsa_yard",
}
YARD_CHOICES = [(name, name.title()) for name in YARDS]

# Checkpoint draws are stored as negative magnitudes
GOING_COLUMNS = (
    "dar_going",
    "moro_going",
    "mbeya_going",
    "tdm_going",
    "zambia_going",
    "congo_fuel",
)
RETURN_COLUMNS = (
    "zambia_return",
    "tunduma_return",
    "mbeya_return",
    "moro_return",
    "dar_return",
    "tanga_return",
)
CHECKPOINT_COLUMNS = GOING_COLUMNS + RETURN_COLUMNS
LEDGER_COLUMNS = YARD_COLUMNS + CHECKPOINT_COLUMNS

COLUMN_CHOICES = [(c, c.replace("_", " ").title()) for c in LEDGER_COLUMNS]


# ---------- Checkpoints ----------
# name: (direction, ledger column, display name)
FIXED_CHECKPOINTS = {
    "DAR_GOING": (GOING, "dar_going", "Dar Going"),
    "MORO_GOING": (GOING, "moro_going", "Moro Going"),
    "MBEYA_GOING": (GOING, "mbeya_going", "Mbeya Going"),
    "INFINITY_GOING": (GOING, "mbeya_going", "Infinity (Mbeya)"),
    "TDM_GOING": (GOING, "tdm_going", "TDM/Tunduma Going"),
    "ZAMBIA_GOING": (GOING, "zambia_going",
                     "Zambia Going (Lake Chilabombwe)"),
    "CONGO_GOING": (GOING, "congo_fuel", "Congo Going"),
    # ZAMBIA_RETURNING is split across two stations
    "ZAMBIA_NDOLA": (RETURNING, "zambia_return",
                     "Zambia Returning (Ndola - 50L)"),
    "ZAMBIA_KAPIRI": (RETURNING, "zambia_return",
                      "Zambia Returning (Kapiri - 350L)"),
    "TDM_RETURN": (RETURNING, "tunduma_return", "TDM/Tunduma Return"),
    "MBEYA_RETURN": (RETURNING, "mbeya_return", "Mbeya Return"),
    "MORO_RETURN": (RETURNING, "moro_return", "Moro Return"),
    "DAR_RETURN": (RETURNING, "dar_return", "Dar Return"),
    "TANGA_RETURN": (RETURNING, "tanga_return", "Tanga Return"),
    "CONGO_RETURNING": (RETURNING, "congo_fuel", "Congo Returning"),
}

CUSTOM_GOING = "CUSTOM_GOING"
CUSTOM_RETURN = "CUSTOM_RETURN"
CUSTOM_CHECKPOINTS = {
    CUSTOM_GOING: (GOING, "Custom station (Going)"),
    CUSTOM_RETURN: (RETURNING, "Custom station (Returning)"),
}

CHECKPOINT_CHOICES = [
    (name, display) for name, (_, _, display) in FIXED_CHECKPOINTS.items()
] + [(name, display) for name, (_, display) in CUSTOM_CHECKPOINTS.items()]

FIXED_GOING_CHOICES = [
    (name, display)
    for name, (direction, _, display) in FIXED_CHECKPOINTS.items()
    if direction == GOING
]
FIXED_RETURNING_CHOICES = [
    (name, display)
    for name, (direction, _, display) in FIXED_CHECKPOINTS.items()
    if direction == RETURNING
]

# Station names seeded into FuelStation, with the checkpoint they serve
DEFAULT_STATION_CHECKPOINTS = {
    "DAR GOING": "DAR_GOING",
    "MORO GOING": "MORO_GOING",
    "MBEYA GOING": "MBEYA_GOING",
    "INFINITY": "INFINITY_GOING",
    "TDM GOING": "TDM_GOING",
    "ZAMBIA GOING": "ZAMBIA_GOING",
    "LAKE CHILABOMBWE": "ZAMBIA_GOING",
    "LAKE NDOLA": "ZAMBIA_NDOLA",
    "LAKE KAPIRI": "ZAMBIA_KAPIRI",
    "TDM RETURN": "TDM_RETURN",
    "MBEYA RETURN": "MBEYA_RETURN",
    "MORO RETURN": "MORO_RETURN",
    "DAR RETURN": "DAR_RETURN",
    "TANGA RETURN": "TANGA_RETURN",
}


def is_custom(name):
    return name in CUSTOM_CHECKPOINTS


def direction_of(name):
    if name in FIXED_CHECKPOINTS:
        return FIXED_CHECKPOINTS[name][0]
    if name in CUSTOM_CHECKPOINTS:
        return CUSTOM_CHECKPOINTS[name][0]
    return None


def display_name(name):
    if name in FIXED_CHECKPOINTS:
        return FIXED_CHECKPOINTS[name][2]
    if name in CUSTOM_CHECKPOINTS:
        return CUSTOM_CHECKPOINTS[name][1]
    return name


def columns_for_direction(direction):
    return GOING_COLUMNS if direction == GOING else RETURN_COLUMNS


def column_sign(column):
    """+1 for credited yard columns, -1 for checkpoint draws."""
    return 1 if column in YARD_COLUMNS else -1


def normalize_station_name(name):
    # "  lake  ndola " -> "LAKE NDOLA"
    return " ".join((name or "").upper().split())
