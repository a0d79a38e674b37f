from django.apps import AppConfig
import logging
import os

logger = logging.getLogger(__name__)


class PortfolioConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "portfolio"

    def ready(self):
        """Apply the configured log level and warn about missing image host credentials."""
        from django.conf import settings
        from .config import get_section

        # LOG_LEVEL in the environment wins over the YAML setting
        if not os.getenv('LOG_LEVEL'):
            level = str(get_section('logging').get('level', 'INFO')).upper()
            logging.getLogger('portfolio').setLevel(level)

        if not settings.CLOUDFLARE_ACCOUNT_ID or not settings.CLOUDFLARE_API_TOKEN:
            logger.warning(
                "CLOUDFLARE_ACCOUNT_ID or CLOUDFLARE_API_TOKEN is not set; "
                "uploads and deletions will fail until they are configured"
            )
        logger.info("Portfolio app ready")
