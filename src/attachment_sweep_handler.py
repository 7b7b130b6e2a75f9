"""
AWS Lambda handler for the scheduled attachment sweep.

Thin orchestration layer that wires the Gmail and S3 adapters into
AttachmentSweeper. Triggered by an EventBridge schedule; the event payload
is not used. Errors are logged to CloudWatch and reported in the result.
"""

import logging
import os
from typing import Dict, Any

from domain.attachment_sweeper import AttachmentSweeper
from domain.models import SweepConfig, SweepResult
from services import gmail as gmail_service
from services import s3 as s3_service
from services.s3_folders import S3FolderStorage

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Run one attachment sweep.

    Args:
        event: Scheduled event (ignored)
        context: Lambda context

    Returns:
        Dict form of the SweepResult
    """
    logger.info("=" * 70)
    logger.info("Gmail Attachment Sweep - Started")
    logger.info("=" * 70)

    # Filled in place so an aborted run still reports what it got done
    result = SweepResult()

    try:
        sweeper = build_sweeper()
        sweeper.run(result)
    except Exception as e:
        logger.error(f"Sweep aborted: {e}", exc_info=True)
        result.success = False
        result.error_message = str(e)

    # Log summary
    logger.info("=" * 70)
    if result.success:
        logger.info("Sweep complete")
    else:
        logger.warning(f"Sweep finished with ERRORS: {result.error_message}")
    logger.info(f"  Labels: {result.labels}")
    logger.info(f"  Threads: {result.threads}")
    logger.info(f"  Messages: {result.messages}")
    logger.info(f"  Saved: {result.saved}")
    logger.info(f"  Skipped: {result.skipped}")
    logger.info("=" * 70)

    return result.to_dict()


def build_sweeper() -> AttachmentSweeper:
    """
    Build the sweeper from environment configuration.

    Raises:
        ValueError: If configuration is missing or invalid
    """
    config = SweepConfig.from_env()

    bucket = os.environ.get('ATTACHMENTS_S3_BUCKET', '')
    if not bucket:
        raise ValueError("ATTACHMENTS_S3_BUCKET environment variable is not set")

    storage = S3FolderStorage(
        bucket=bucket,
        prefix=os.environ.get('ATTACHMENTS_S3_PREFIX', '')
    )

    credentials = gmail_service.load_credentials(_load_gmail_token())
    mailbox = gmail_service.GmailMailbox(gmail_service.build_gmail_service(credentials))

    logger.info(
        f"Sweeping label {config.root_label!r} into s3://{bucket}/{storage.get_root()} "
        f"(batch_size={config.batch_size}, timezone={config.timezone})"
    )

    return AttachmentSweeper(mailbox, storage, config)


def _load_gmail_token() -> str:
    """
    Get the Gmail OAuth token JSON.

    GMAIL_TOKEN_JSON takes precedence; otherwise the token is read from
    GMAIL_TOKEN_S3_BUCKET / GMAIL_TOKEN_S3_KEY.
    """
    token_json = os.environ.get('GMAIL_TOKEN_JSON')
    if token_json:
        return token_json

    bucket = os.environ.get('GMAIL_TOKEN_S3_BUCKET', '')
    key = os.environ.get('GMAIL_TOKEN_S3_KEY', '')
    if not bucket or not key:
        raise ValueError(
            "Gmail token not configured: set GMAIL_TOKEN_JSON or "
            "GMAIL_TOKEN_S3_BUCKET and GMAIL_TOKEN_S3_KEY"
        )

    logger.info(f"Loading Gmail token from s3://{bucket}/{key}")
    return s3_service.read_text(bucket, key)
