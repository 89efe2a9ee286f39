from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
	default_auto_field = "django.db.models.BigAutoField"
	name = "core"

	def ready(self):
		"""
		Build the service graph once per process. Views reach it through
		api.views_common.services() instead of constructing their own.
		"""
		from .auth import QRLogin
		from .services import CanteenServices

		self.services = CanteenServices.build()
		self.qr_login = QRLogin()
		logger.debug("Canteen services ready")
