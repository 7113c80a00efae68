"""Custom storage backend for proxying S3 media through Django."""

from storages.backends.s3boto3 import S3Boto3Storage


class ProxiedS3Storage(S3Boto3Storage):
    """S3 storage that hands out local /media/ URLs for stored files."""

    def url(self, name):
        return f"/media/{name}"
