"""
Shared S3 client and small read helpers.

The folder storage and the Gmail token bootstrap both talk to S3 through
the client defined here.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# One attempt, bounded connect/read so a stuck call cannot eat the Lambda timeout
s3_client = boto3.client(
    's3',
    config=Config(
        retries={'max_attempts': 1, 'mode': 'standard'},
        connect_timeout=10,
        read_timeout=60
    )
)

MISSING_CODES = {
    'NoSuchKey': 'object',
    'NoSuchBucket': 'bucket',
}


def read_text(bucket: str, key: str, encoding: str = 'utf-8') -> str:
    """
    Read a small text object, such as the Gmail OAuth token.

    Args:
        bucket: S3 bucket name
        key: S3 object key
        encoding: Text encoding of the object

    Returns:
        str: Decoded object body

    Raises:
        ValueError: If the location is empty or does not exist
        ClientError: For any other S3 failure
    """
    if not bucket or not key:
        raise ValueError(f"Incomplete S3 location: bucket={bucket!r}, key={key!r}")

    try:
        body = s3_client.get_object(Bucket=bucket, Key=key)['Body'].read()
    except ClientError as e:
        missing = MISSING_CODES.get(e.response.get('Error', {}).get('Code', ''))
        if missing:
            raise ValueError(f"S3 {missing} does not exist: s3://{bucket}/{key}")
        raise

    logger.info(f"Read {len(body):,} bytes from s3://{bucket}/{key}")
    return body.decode(encoding)
