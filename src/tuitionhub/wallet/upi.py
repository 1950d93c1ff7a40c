"""UPI intent links and their QR codes."""

from __future__ import annotations

import base64
import time
from io import BytesIO
from urllib.parse import quote, urlencode

import qrcode
import qrcode.constants
from qrcode.main import QRCode


def format_amount(amount: float) -> str:
    """Render an amount the way UPI apps expect: no trailing zeros, at most 2 decimals."""
    text = f"{amount:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def build_upi_link(
    vpa: str,
    payee_name: str,
    amount: float,
    currency: str = "INR",
    note: str | None = None,
) -> str:
    """
    Build a ``upi://pay`` deep link.

    ``note`` defaults to the current epoch milliseconds so each intent is
    distinguishable in the payer's UPI history.
    """
    params = {
        "pa": vpa,
        "pn": payee_name,
        "am": format_amount(amount),
        "cu": currency,
        "tn": note if note is not None else str(int(time.time() * 1000)),
    }
    return "upi://pay?" + urlencode(params, safe="@", quote_via=quote)


def qr_data_uri(data: str, box_size: int = 8, border: int = 4) -> str:
    """Encode ``data`` as a PNG QR code and return it as a ``data:`` URI."""
    qr = QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffered.getvalue()).decode()
