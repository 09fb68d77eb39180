import re

_SEPARATORS = re.compile(r"[\s-]")
_TRUCK_PATTERN = re.compile(r"^(T\d{3,4})([A-Z]{3})$")


def normalize_truck_no(truck_no):
    """
    "T991 EFN", "T991-EFN" and "t991efn" all become "T991EFN".
    Used for every truck comparison.
    """
    if not truck_no:
        return ""
    return _SEPARATORS.sub("", truck_no).upper().strip()


def is_truck_no_match(first, second):
    return normalize_truck_no(first) == normalize_truck_no(second)


def format_truck_no_display(truck_no):
    # "T991EFN" -> "T991 EFN"; anything off-pattern is returned normalized
    normalized = normalize_truck_no(truck_no)
    match = _TRUCK_PATTERN.match(normalized)
    if match:
        return f"{match.group(1)} {match.group(2)}"
    return normalized


def is_valid_truck_no(truck_no):
    return bool(_TRUCK_PATTERN.match(normalize_truck_no(truck_no)))
