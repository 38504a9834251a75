# storefront/core/storage_utils.py
from storefront.core.config import get_settings
from storefront.core.supabase_client import supabase_admin

settings = get_settings()


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return the public URL.

    An existing object at `path` is overwritten ('upsert').

    Args:
        path: object path inside the bucket, e.g. "products/12/cover.webp"
        file_bytes: file content
        content_type: MIME type stored with the object
    """
    bucket = supabase_admin().storage.from_(settings.SUPABASE_BUCKET)
    bucket.upload(
        path,
        file_bytes,
        {"upsert": "true", "content-type": content_type},
    )
    return bucket.get_public_url(path)


def delete_public_url(url: str) -> None:
    """
    Delete an object by its public URL.
    No-op if the URL does not belong to the configured bucket.
    """
    marker = f"/storage/v1/object/public/{settings.SUPABASE_BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return
    path = url[idx + len(marker):]
    supabase_admin().storage.from_(settings.SUPABASE_BUCKET).remove([path])
