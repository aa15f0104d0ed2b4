# certichain/services/qr.py
import io

import qrcode


def verification_url(base_url: str, record_id: int) -> str:
    return f"{base_url.rstrip('/')}/api/v1/verify/{record_id}"


def qr_png(text: str) -> bytes:
    img = qrcode.make(text)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

