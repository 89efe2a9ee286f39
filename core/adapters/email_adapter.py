"""Adapter over Django's mail framework.

Delivery failures are reported as ``False`` rather than raised: a user who was
registered but whose QR mail bounced is still registered.
"""

import base64
import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import EmailMultiAlternatives

logger = logging.getLogger(__name__)


class EmailAdapter:

	@staticmethod
	def send_qr(email: str, name: str, qr_data_url: str) -> bool:
		"""
		Mail the user's login QR as a PNG attachment
		"""
		subject = "Your Smart Canteen login QR"
		body = (
			f"Hi {name},\n\n"
			"Your canteen account is ready. Scan the attached QR code at the counter "
			"and enter your 4-digit PIN to log in.\n\n"
			"Keep this code private.\n"
		)
		msg = EmailMultiAlternatives(subject, body, settings.DEFAULT_FROM_EMAIL, [email])
		_, b64 = qr_data_url.split(",", 1)
		msg.attach("canteen-qr.png", base64.b64decode(b64), "image/png")
		try:
			sent = msg.send(fail_silently=False)
		except (SMTPException, OSError) as e:
			logger.warning("QR email to %s failed: %s", email, e)
			return False
		return sent > 0
