import csv

NIL = "NIL"
CANCELLED = "CANCELLED"

LPO_EXPORT_FIELDS = [
    "sn", "date", "lpo_no", "station", "do_sdo", "truck_no", "ltrs",
    "price_per_ltr", "amount", "destinations", "status",
]
DRIVER_ACCOUNT_EXPORT_FIELDS = [
    "date", "lpo_no", "truck_no", "driver_name", "do_sdo", "destinations",
    "liters", "rate", "amount", "station", "status", "settled_by",
]


def lpo_export_row(entry):
    # driver's-account lines never show their reference DO
    if entry.is_driver_account:
        do_sdo, destinations = NIL, NIL
    elif entry.is_cancelled:
        do_sdo, destinations = CANCELLED, entry.destinations
    else:
        do_sdo, destinations = entry.do_sdo, entry.destinations
    return {
        "sn": entry.sn,
        "date": entry.date.isoformat(),
        "lpo_no": entry.lpo_no,
        "station": entry.diesel_at,
        "do_sdo": do_sdo,
        "truck_no": entry.truck_no,
        "ltrs": entry.ltrs,
        "price_per_ltr": entry.price_per_ltr,
        "amount": entry.amount,
        "destinations": destinations,
        "status": CANCELLED.lower() if entry.is_cancelled else entry.status,
    }


def driver_account_export_row(entry):
    return {
        "date": entry.date.isoformat(),
        "lpo_no": entry.lpo_no,
        "truck_no": entry.truck_no,
        "driver_name": entry.driver_name,
        "do_sdo": NIL,
        "destinations": NIL,
        "liters": entry.liters,
        "rate": entry.rate,
        "amount": entry.amount,
        "station": entry.station,
        "status": entry.status,
        "settled_by": entry.settled_by,
    }


def write_csv(stream, fieldnames, rows):
    writer = csv.DictWriter(stream, fieldnames=fieldnames)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return stream
