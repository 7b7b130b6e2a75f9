"""
Folder storage on Amazon S3.

S3 has no real folders, so a folder is a key prefix ending in "/". Creating
a folder writes a zero-byte marker object at that prefix, which keeps empty
folders visible in the console and makes lookups cheap.
"""

import logging
from typing import Optional

from botocore.exceptions import ClientError

from domain.models import Attachment
from services import s3 as s3_service

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')


class S3FolderStorage:
    """
    Folder handles are key prefixes: "" for the bucket root, otherwise
    a prefix ending in "/".

    Args:
        bucket: Destination bucket
        prefix: Optional key prefix acting as the storage root
        client: S3 client (defaults to the shared client in services.s3)
    """

    def __init__(self, bucket: str, prefix: str = '', client=None):
        if not bucket:
            raise ValueError("S3 bucket name cannot be empty")

        self.bucket = bucket
        self.root = _normalize_prefix(prefix)
        self.client = client or s3_service.s3_client

    def get_root(self) -> str:
        return self.root

    def find_folder(self, parent: str, name: str) -> Optional[str]:
        key = f"{parent}{name}/"

        # Any object under the prefix counts, marker or not
        response = self.client.list_objects_v2(
            Bucket=self.bucket,
            Prefix=key,
            MaxKeys=1
        )
        if response.get('KeyCount', 0) > 0:
            return key
        return None

    def create_folder(self, parent: str, name: str) -> str:
        key = f"{parent}{name}/"
        self.client.put_object(Bucket=self.bucket, Key=key, Body=b'')
        logger.info(f"Created folder: s3://{self.bucket}/{key}")
        return key

    def has_file(self, folder: str, name: str) -> bool:
        key = f"{folder}{name}"
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in NOT_FOUND_CODES:
                return False
            logger.error(f"Failed to check s3://{self.bucket}/{key}: {e}")
            raise

    def create_file(self, folder: str, name: str, attachment: Attachment) -> None:
        key = f"{folder}{name}"
        logger.info(
            f"Uploading attachment to S3: bucket={self.bucket}, key={key}, "
            f"size={attachment.size} bytes"
        )

        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=attachment.content,
            ContentType=attachment.content_type
        )


def _normalize_prefix(prefix: str) -> str:
    """
    Turn a user supplied prefix into a folder handle.

    Args:
        prefix: Prefix such as "archive", "/archive/" or ""

    Returns:
        "" or the prefix with a single trailing "/"
    """
    segments = [s for s in prefix.split('/') if s]
    if not segments:
        return ''
    return '/'.join(segments) + '/'
