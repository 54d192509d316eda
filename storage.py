import logging
from io import BytesIO
from pathlib import Path

import boto3
import pandas as pd
from botocore.exceptions import BotoCoreError, ClientError

from config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "reports"


def get_s3_client(settings: Settings):
    return boto3.client("s3", region_name=settings.aws_region)


def _body(data: bytes | str | pd.DataFrame) -> bytes:
    if isinstance(data, pd.DataFrame):
        csv_buffer = BytesIO()
        data.to_csv(csv_buffer, index=False)
        return csv_buffer.getvalue()
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def save_file(
    file_name: str,
    data: bytes | str | pd.DataFrame,
    folder: str = DEFAULT_FOLDER,
    settings: Settings | None = None,
) -> bool:
    """
    Saves an export to the S3 bucket when one is configured, else under the
    local export folder.
    """
    settings = settings or get_settings()
    body = _body(data)

    if settings.s3_bucket:
        key = f"{folder}/{file_name}"
        try:
            get_s3_client(settings).put_object(Bucket=settings.s3_bucket, Key=key, Body=body)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload of %s failed: %s", key, e)
            return False
        logger.info("Uploaded s3://%s/%s", settings.s3_bucket, key)
        return True

    local_path = Path(settings.export_folder) / folder / file_name
    local_path.parent.mkdir(parents=True, exist_ok=True)
    local_path.write_bytes(body)
    logger.info("Saved %s", local_path)
    return True


def load_file(file_name: str, folder: str = DEFAULT_FOLDER, settings: Settings | None = None) -> bytes | None:
    """Raw bytes of a stored export, or None when it does not exist."""
    settings = settings or get_settings()

    if settings.s3_bucket:
        key = f"{folder}/{file_name}"
        s3 = get_s3_client(settings)
        try:
            obj = s3.get_object(Bucket=settings.s3_bucket, Key=key)
            return obj["Body"].read()
        except s3.exceptions.NoSuchKey:
            return None
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 download of %s failed: %s", key, e)
            return None

    local_path = Path(settings.export_folder) / folder / file_name
    if local_path.exists():
        return local_path.read_bytes()
    return None


def load_frame(file_name: str, folder: str = DEFAULT_FOLDER, settings: Settings | None = None) -> pd.DataFrame | None:
    raw = load_file(file_name, folder, settings)
    if raw is None:
        return None
    return pd.read_csv(BytesIO(raw), encoding="utf-8-sig")


def list_files(folder: str = DEFAULT_FOLDER, settings: Settings | None = None) -> list[str]:
    """
    Lists stored exports in a folder (local or S3).
    """
    settings = settings or get_settings()

    if settings.s3_bucket:
        try:
            response = get_s3_client(settings).list_objects_v2(Bucket=settings.s3_bucket, Prefix=f"{folder}/")
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 listing of %s failed: %s", folder, e)
            return []
        return sorted(obj["Key"].split("/")[-1] for obj in response.get("Contents", []))

    local_path = Path(settings.export_folder) / folder
    if local_path.exists():
        return sorted(f.name for f in local_path.glob("*") if f.is_file())
    return []
