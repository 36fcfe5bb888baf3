import boto3
from botocore.exceptions import ClientError
from functools import lru_cache
from typing import Any, Optional
import json
import os
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class SnapshotStorage:
    """
    Key/value storage of JSON snapshots for the local fallback store.

    Uses S3-compatible object storage when credentials are configured,
    otherwise the local filesystem. Every key is written independently.
    """

    def __init__(self, base_dir: Optional[str] = None, use_object_storage: bool = True):
        self.bucket_name = settings.storage_bucket_name
        self.s3_client = None

        # Require both access key and secret key to use S3
        if use_object_storage and settings.storage_access_key_id and settings.storage_secret_access_key:
            s3_config = {
                'aws_access_key_id': settings.storage_access_key_id,
                'aws_secret_access_key': settings.storage_secret_access_key,
            }
            if settings.storage_endpoint_url:
                s3_config['endpoint_url'] = settings.storage_endpoint_url
            if settings.storage_region:
                s3_config['region_name'] = settings.storage_region

            try:
                self.s3_client = boto3.client('s3', **s3_config)
                logger.info("S3 snapshot storage initialized successfully")
            except Exception as e:
                logger.warning(f"Failed to initialize S3 client, falling back to local storage: {str(e)}")
                self.s3_client = None
        else:
            logger.info("No S3 credentials found, using local filesystem snapshot storage")

        self.local_storage_dir = os.path.abspath(base_dir or settings.local_storage_dir)
        os.makedirs(self.local_storage_dir, exist_ok=True)

    def _check_segment(self, value: str) -> None:
        # Namespaces and keys become one path segment each, locally and in S3
        if not value or value in (".", "..") or "/" in value or "\\" in value or os.path.isabs(value):
            raise ValueError(f"Invalid snapshot path segment: {value!r}")

    def _object_key(self, namespace: str, key: str) -> str:
        self._check_segment(namespace)
        self._check_segment(key)
        return f"snapshots/{namespace}/{key}.json"

    def _local_path(self, namespace: str, key: str) -> str:
        self._check_segment(namespace)
        self._check_segment(key)
        base_dir = os.path.realpath(self.local_storage_dir)
        local_path = os.path.realpath(os.path.join(base_dir, namespace, f"{key}.json"))
        if os.path.commonpath([local_path, base_dir]) != base_dir:
            raise ValueError(f"Snapshot path escapes the storage directory: {namespace}/{key}")
        return local_path

    def get_json(self, namespace: str, key: str, default: Any = None) -> Any:
        """
        Read one snapshot.

        Returns default when the key has never been written.
        """
        if self.s3_client:
            try:
                response = self.s3_client.get_object(
                    Bucket=self.bucket_name,
                    Key=self._object_key(namespace, key)
                )
                return json.loads(response['Body'].read())
            except ClientError as e:
                if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                    return default
                raise Exception(f"Failed to read snapshot from S3: {str(e)}")

        local_path = self._local_path(namespace, key)
        if not os.path.exists(local_path):
            return default
        with open(local_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def put_json(self, namespace: str, key: str, value: Any) -> None:
        body = json.dumps(value, default=str)

        if self.s3_client:
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=self._object_key(namespace, key),
                    Body=body.encode('utf-8'),
                    ContentType='application/json'
                )
                return
            except ClientError as e:
                raise Exception(f"Failed to write snapshot to S3: {str(e)}")

        local_path = self._local_path(namespace, key)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        # Write then rename so a crash never leaves a truncated snapshot
        tmp_path = f"{local_path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(body)
        os.replace(tmp_path, local_path)
        logger.debug(f"Snapshot written: {local_path}")


@lru_cache()
def get_snapshot_storage() -> SnapshotStorage:
    """Shared storage instance, created on first use"""
    return SnapshotStorage()
