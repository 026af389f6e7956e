"""Durable key-value storage for cart snapshots.

The cart store is the only writer. Snapshots are opaque serialized blobs; the
storage layer never parses them, so a corrupt blob is the cart store's
concern, not the backend's.

Use ``DynamoDBCartStorage`` whenever more than one process serves the same
carts (several uvicorn workers, Lambda containers). ``FileCartStorage`` is
only shared by processes on one host.
"""

import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_ordering.errors import InvalidCartKeyError, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_CART_KEY = "carddz_cart"

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]{1,200}$")


class CartStorage(ABC):
    """Abstract base class for cart snapshot backends.

    - read returns None when nothing is stored
    - read, write and delete raise PersistenceError when the backend fails
    - every method raises InvalidCartKeyError for keys outside ``[A-Za-z0-9_.-]``
    """

    def check_key(self, key: str) -> str:
        """Return key unchanged if every backend can store it.

        Raises:
            InvalidCartKeyError: If the key is empty, too long or has unsafe characters
        """
        if not _SAFE_KEY.match(key):
            raise InvalidCartKeyError(f"Invalid cart storage key: {key!r}")
        return key

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the stored blob for key, or None if nothing is stored."""

    @abstractmethod
    def write(self, key: str, blob: str) -> None:
        """Store blob under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the blob stored under key, if any."""


class InMemoryCartStorage(CartStorage):
    """Process-local storage, used for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self.blobs: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self.blobs.get(self.check_key(key))

    def write(self, key: str, blob: str) -> None:
        self.blobs[self.check_key(key)] = blob

    def delete(self, key: str) -> None:
        self.blobs.pop(self.check_key(key), None)


class FileCartStorage(CartStorage):
    """Stores each cart snapshot as a JSON file inside a directory.

    Writes go through a temporary file and an atomic rename so a crash never
    leaves a half-written snapshot behind.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        """Initialize storage.

        Args:
            directory: Directory holding one ``<key>.json`` file per cart
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{self.check_key(key)}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Failed to read cart snapshot {path}: {e}")
            raise PersistenceError(f"Failed to read cart {key}") from e

    def write(self, key: str, blob: str) -> None:
        path = self._path(key)
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(blob)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error(f"Failed to write cart snapshot {path}: {e}")
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Failed to save cart {key}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete cart snapshot {path}: {e}")
            raise PersistenceError(f"Failed to delete cart {key}") from e


class DynamoDBCartStorage(CartStorage):
    """Stores cart snapshots in a DynamoDB table keyed by ``cart_key``.

    Each item holds the serialized snapshot in ``snapshot`` and the time of
    the last write in ``updated_at``. Reads are strongly consistent so a
    request always sees the write made by the previous one.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize storage.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the carts table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def read(self, key: str) -> str | None:
        try:
            response = self.table.get_item(
                Key={"cart_key": self.check_key(key)}, ConsistentRead=True
            )
        except ClientError as e:
            logger.error(f"Failed to read cart {key} from {self.table_name}: {e}")
            raise PersistenceError(f"Failed to read cart {key}") from e

        item = response.get("Item")
        if item is None:
            return None
        return str(item["snapshot"])

    def write(self, key: str, blob: str) -> None:
        try:
            self.table.put_item(
                Item={
                    "cart_key": self.check_key(key),
                    "snapshot": blob,
                    "updated_at": datetime.now(UTC).isoformat(),
                }
            )
        except ClientError as e:
            logger.error(f"Failed to save cart {key} to {self.table_name}: {e}")
            raise PersistenceError(f"Failed to save cart {key}") from e

    def delete(self, key: str) -> None:
        try:
            self.table.delete_item(Key={"cart_key": self.check_key(key)})
        except ClientError as e:
            logger.error(f"Failed to delete cart {key} from {self.table_name}: {e}")
            raise PersistenceError(f"Failed to delete cart {key}") from e
