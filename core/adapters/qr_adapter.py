"""Adapter over the ``qrcode`` library.

Turns an opaque string (a login credential or a UPI payment link) into a PNG
data URL the frontend can drop straight into an <img> tag.
"""

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


class QRAdapter:
	"""
	Stateless QR image encoder
	"""

	box_size = 10
	border = 2

	@staticmethod
	def to_png(data: str) -> bytes:
		qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=QRAdapter.box_size, border=QRAdapter.border)
		qr.add_data(data)
		qr.make(fit=True)
		img = qr.make_image(fill_color="black", back_color="white")
		buf = io.BytesIO()
		img.save(buf, format="PNG")
		return buf.getvalue()

	@staticmethod
	def to_data_url(data: str) -> str:
		encoded = base64.b64encode(QRAdapter.to_png(data)).decode("ascii")
		return f"data:image/png;base64,{encoded}"
