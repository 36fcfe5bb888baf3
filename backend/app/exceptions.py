class LedgerValidationError(ValueError):
    """Raised when a request is missing required data; nothing is written."""


class NotFoundError(LookupError):
    """Raised when a referenced invoice, payment, product or contact does not exist."""


class LedgerIntegrityError(RuntimeError):
    """Raised when an invoice's cached paid amount or status disagrees with its payments."""

    def __init__(self, invoice_id: str, fields: list):
        self.invoice_id = invoice_id
        self.fields = fields
        super().__init__(
            f"Invoice {invoice_id} cached ledger fields disagree with recompute: {', '.join(fields)}"
        )
