from typing import Optional


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
    """
    Build the customer-facing invoice number.

    Format: {prefix}-{year}-{sequence zero-padded to 3 digits}, e.g. INV-2024-004
    """
    return f"{prefix}-{year}-{str(sequence).zfill(3)}"


def parse_invoice_sequence(invoice_no: Optional[str]) -> Optional[int]:
    """Sequence part of an invoice number (last dash-separated segment), or None"""
    if not invoice_no:
        return None
    tail = invoice_no.rsplit("-", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        return None
