import asyncio
import logging
import smtplib
from email.message import EmailMessage
from functools import partial
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

import config
from models.order import OrderDetailDTO

logger = logging.getLogger(__name__)

templates_dir = Path(__file__).parent.parent / "templates"
templates = Environment(
    loader=FileSystemLoader(str(templates_dir)),
    autoescape=select_autoescape(["html"])
)

ORDER_CONFIRMATION_SUBJECT = "Payment Processing Update for Your Order"


class NotificationService:

    @staticmethod
    def render_order_confirmation(order: OrderDetailDTO, payment_link: str | None) -> str:
        """Order confirmation mail body. Shows the frozen order snapshot, never live prices."""
        template = templates.get_template("order_confirmation.html")
        return template.render(
            order=order,
            payment_link=payment_link or "",
            currency=order.currency.value if order.currency else config.CURRENCY.value,
            shop_name=config.MAIL_FROM_NAME
        )

    @staticmethod
    def _send_mail(recipient: str, subject: str, html: str) -> None:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f'"{config.MAIL_FROM_NAME}" <{config.MAIL_USERNAME}>'
        message["To"] = recipient
        message.set_content("Please view this message in an HTML capable mail client.")
        message.add_alternative(html, subtype="html")

        # 465 is implicit TLS, anything else (587) upgrades with STARTTLS
        if config.MAIL_PORT == 465:
            smtp = smtplib.SMTP_SSL(config.MAIL_HOST, config.MAIL_PORT, timeout=30)
        else:
            smtp = smtplib.SMTP(config.MAIL_HOST, config.MAIL_PORT, timeout=30)
            smtp.starttls()
        with smtp:
            if config.MAIL_USERNAME and config.MAIL_PASSWORD:
                smtp.login(config.MAIL_USERNAME, config.MAIL_PASSWORD)
            smtp.send_message(message)

    @staticmethod
    async def send_order_confirmation(order: OrderDetailDTO, payment_link: str | None) -> bool:
        """
        Best-effort confirmation mail.

        Returns:
            True if the mail server accepted the message, False otherwise
            (the failure is logged, the order is unaffected)
        """
        html = NotificationService.render_order_confirmation(order, payment_link)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, partial(NotificationService._send_mail, order.email, ORDER_CONFIRMATION_SUBJECT, html)
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Order confirmation mail for order {order.id} failed: {e}")
            return False
        logger.info(f"📧 Order confirmation mail sent for order {order.id}")
        return True
