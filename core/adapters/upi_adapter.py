"""UPI deep-link builder for wallet recharges.

The payment itself happens in the payer's UPI app; the gateway later reports the
outcome to /api/wallet/verify-payment with the same transaction reference.
"""

import secrets
from urllib.parse import urlencode, quote

from django.conf import settings
from django.utils import timezone


class UPIAdapter:

	@staticmethod
	def new_transaction_id(user_id: str) -> str:
		return f"TXN_{user_id}_{timezone.now():%Y%m%d%H%M%S}_{secrets.token_hex(3)}"

	@staticmethod
	def payment_link(amount, transaction_id: str) -> str:
		"""
		Standard upi://pay link: payee, name, amount, currency, note, reference
		"""
		params = {
			"pa": settings.UPI_ID,
			"pn": settings.UPI_NAME,
			"am": f"{amount:.2f}",
			"cu": "INR",
			"tn": f"Wallet Recharge - {transaction_id}",
			"tr": transaction_id,
		}
		return "upi://pay?" + urlencode(params, quote_via=quote)
