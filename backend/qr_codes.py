import base64
import io

import cv2 # type: ignore
import numpy as np # type: ignore
import qrcode

from backend.config import QR_BORDER, QR_BOX_SIZE

QR_DETECTOR = cv2.QRCodeDetector()


def render_qr_data_url(data: str) -> str:
    """Render `data` as a PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,  # ~15% error correction
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def decode_qr_image(image_bytes: bytes):
    """
    Returns:
      (payload:str|None, reason:str|None)
    """
    if not image_bytes:
        return None, "empty_image"

    img_array = np.frombuffer(image_bytes, np.uint8)
    frame = cv2.imdecode(img_array, cv2.IMREAD_COLOR)
    if frame is None:
        return None, "invalid_image"

    payload, points, _ = QR_DETECTOR.detectAndDecode(frame)
    if points is None or not payload:
        # retry on grayscale
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        payload, points, _ = QR_DETECTOR.detectAndDecode(gray)

    if points is None or not payload:
        return None, "no_qr_code"

    return payload, None
