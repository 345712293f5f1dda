"""
QR challenge rendering for the device-linking screen.
"""
import base64
from io import BytesIO
from typing import Optional

import qrcode


def qr_data_url(challenge: Optional[str]) -> Optional[str]:
    """PNG data URL for a pairing challenge, or None when there is none"""
    if not challenge:
        return None
    image = qrcode.make(challenge)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
