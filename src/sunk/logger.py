import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import colorlog
import httpx

POSTMARK_URL = "https://api.postmarkapp.com/email"
CONSOLE_HANDLER_NAME = "sunk.console"
FILE_HANDLER_NAME = "sunk.file"
POSTMARK_HANDLER_NAME = "sunk.postmark"


def setup_logging(level: Optional[str] = None, logger_name: Optional[str] = None) -> None:
    """Configure the centralised logging settings.

    Calling it again only updates the level; handlers are added once.

    Args:
        level: Log level name; defaults to SUNK_LOG_LEVEL or INFO
        logger_name: Logger to configure (defaults to the root logger)
    """
    log_level = (level or os.getenv('SUNK_LOG_LEVEL', 'INFO')).upper()
    log_file = os.getenv('SUNK_LOG_FILE')
    max_bytes = int(os.getenv('LOG_FILE_MAX_BYTES', '10485760'))  # 10 MB
    backup_count = int(os.getenv('LOG_FILE_BACKUP_COUNT', '5'))
    postmark_api_token = os.getenv('POSTMARK_API_TOKEN')
    postmark_sender_email = os.getenv('POSTMARK_SENDER_EMAIL')
    postmark_receiver_emails = os.getenv('POSTMARK_RECEIVER_EMAILS')
    postmark_alert_subject = os.getenv('POSTMARK_ALERT_SUBJECT', 'Subsonic Client Error Alert')

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    if any(handler.get_name() == CONSOLE_HANDLER_NAME for handler in logger.handlers):
        return

    console_handler = logging.StreamHandler()
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_formatter = colorlog.ColoredFormatter(
        "%(log_color)s%(levelname)s:%(name)s:%(message)s",
        log_colors={
            'DEBUG': 'bold_blue',
            'INFO': 'bold_green',
            'WARNING': 'bold_yellow',
            'ERROR': 'bold_red',
            'CRITICAL': 'bold_purple'
        }
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.set_name(FILE_HANDLER_NAME)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s - (%(filename)s:%(lineno)d)'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    if postmark_api_token and postmark_sender_email and postmark_receiver_emails:
        postmark_handler = PostmarkHandler(
            api_token=postmark_api_token,
            sender_email=postmark_sender_email,
            receiver_emails=[email.strip() for email in postmark_receiver_emails.split(',')],
            subject=postmark_alert_subject
        )
        postmark_handler.set_name(POSTMARK_HANDLER_NAME)
        postmark_handler.setLevel(logging.ERROR)
        logger.addHandler(postmark_handler)


class PostmarkHandler(logging.Handler):
    """Logging handler that e-mails error records through PostmarkApp.

    Records emitted from inside a running event loop (for example by
    AsyncSubsonicClient) are sent from the loop's default executor so the
    HTTP call does not block the loop.
    """

    def __init__(self, api_token: str, sender_email: str, receiver_emails: List[str], subject: str) -> None:
        """
        Initialize the handler.

        Args:
            api_token: Postmark API token.
            sender_email: Sender email address.
            receiver_emails: List of receiver email addresses.
            subject: Subject line for the alert emails.
        """
        super().__init__()
        self.api_token = api_token
        self.sender_email = sender_email
        self.receiver_emails = receiver_emails
        self.subject = subject

    def build_payload(self, record: logging.LogRecord) -> dict:
        return {
            'From': self.sender_email,
            'To': ','.join(self.receiver_emails),
            'Subject': self.subject,
            'TextBody': self.format(record)
        }

    def emit(self, record: logging.LogRecord) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.send(record)
        else:
            loop.run_in_executor(None, self.send, record)

    def send(self, record: logging.LogRecord) -> None:
        """POST the record to Postmark, reporting failures via handleError."""
        headers = {
            'X-Postmark-Server-Token': self.api_token,
            'Content-Type': 'application/json'
        }
        try:
            response = httpx.post(POSTMARK_URL, json=self.build_payload(record), headers=headers)
            response.raise_for_status()
        except httpx.HTTPError:
            self.handleError(record)
